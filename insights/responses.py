from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _Envelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: Optional[str] = None


class ListResponse(_Envelope):
    data: List[Any] = Field(default_factory=list)


class RatingSummaryResponse(_Envelope):
    count: Optional[int] = None
    data: List[Dict[str, Any]] = Field(default_factory=list)


class MetricRatingRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    ship: Optional[str] = None
    sailingNumber: Any = None
    averageRating: Any = None
    ratingCount: Optional[int] = None
    filteredCount: Optional[int] = None
    filteredReviews: List[str] = Field(default_factory=list)


class MetricRatingResponse(_Envelope):
    results: List[MetricRatingRow] = Field(default_factory=list)


class SearchMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    fleet: Optional[str] = None
    ship: Optional[str] = None
    sailing_number: Any = None


class SearchHit(BaseModel):
    model_config = ConfigDict(extra="allow")

    comment: str = ""
    metadata: SearchMetadata = Field(default_factory=SearchMetadata)
    sheet_name: Optional[str] = None
    meal_time: Optional[str] = None


class SearchResponse(_Envelope):
    results: List[SearchHit] = Field(default_factory=list)


class IssuesSummaryResponse(_Envelope):
    data: Dict[str, Any] = Field(default_factory=dict)
