from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from insights.filters import MealTime, MetricConfig, SearchConfig, SearchMode


class FilterSnapshotModel(BaseModel):
    fleets: List[str] = Field(default_factory=list)
    ships: List[str] = Field(default_factory=list)
    fromDate: Optional[str] = None
    toDate: Optional[str] = None
    sailingNumbers: List[str] = Field(default_factory=list)
    sheets: List[str] = Field(default_factory=list)


class MetricConfigModel(BaseModel):
    metric: str = ""
    filterBelow: Optional[float] = None

    def to_config(self) -> MetricConfig:
        return MetricConfig(metric_name=self.metric, threshold_below=self.filterBelow)


class SearchConfigModel(BaseModel):
    query: str = ""
    searchType: SearchMode = SearchMode.SEMANTIC
    mealTime: Optional[MealTime] = MealTime.ALL
    numResults: int = 10
    cutOff: float = 7.0

    def to_config(self) -> SearchConfig:
        return SearchConfig(
            query_text=self.query,
            mode=self.searchType,
            meal_time=self.mealTime,
            result_limit=self.numResults,
            similarity_cutoff=self.cutOff,
        )


class MetricRatingRequest(BaseModel):
    filters: FilterSnapshotModel = Field(default_factory=FilterSnapshotModel)
    config: MetricConfigModel = Field(default_factory=MetricConfigModel)


class SearchRequest(BaseModel):
    filters: FilterSnapshotModel = Field(default_factory=FilterSnapshotModel)
    config: SearchConfigModel = Field(default_factory=SearchConfigModel)


class FleetModel(BaseModel):
    fleet: str
    ships: List[str]


class MetaFleetsResponse(BaseModel):
    fleets: List[FleetModel]
    warnings: List[str] = Field(default_factory=list)


class MetaListResponse(BaseModel):
    values: List[str]
    warnings: List[str] = Field(default_factory=list)
