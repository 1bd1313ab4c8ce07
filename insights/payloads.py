"""Backend payload builders, one per query kind.

`build_payload` reads a FilterSnapshot (never the live state) and returns
either a kind-specific payload object or an IncompletePayload describing
which preconditions are missing. Nothing here performs I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from insights.errors import IncompletePayload
from insights.filters import DateRange, FilterSnapshot, MealTime, MetricConfig, SearchConfig, SearchMode


RESULT_LIMIT_MIN = 5
RESULT_LIMIT_MAX = 100
CUTOFF_MIN = 0.0
CUTOFF_MAX = 10.0
CUTOFF_SCALE = 10.0
THRESHOLD_MIN = 0.0
THRESHOLD_MAX = 10.0


class QueryKind(str, Enum):
    RATING_SUMMARY = "rating_summary"
    METRIC_RATING = "metric_rating"
    SEMANTIC_SEARCH = "semantic_search"
    ISSUES_SUMMARY = "issues_summary"


def _iso(value: date) -> str:
    return value.isoformat()


@dataclass(frozen=True)
class RatingSummaryPayload:
    from_date: date
    to_date: date

    kind: ClassVar[QueryKind] = QueryKind.RATING_SUMMARY

    def to_wire(self) -> Dict[str, Any]:
        return {"filter_by": "date", "filters": {"fromDate": _iso(self.from_date), "toDate": _iso(self.to_date)}}


@dataclass(frozen=True)
class MetricRatingPayload:
    fleets: Tuple[str, ...]
    ships: Tuple[str, ...]
    from_date: date
    to_date: date
    sailing_numbers: Tuple[str, ...]
    metric: str
    filter_below: Optional[float] = None

    kind: ClassVar[QueryKind] = QueryKind.METRIC_RATING

    def to_wire(self) -> Dict[str, Any]:
        return {
            "fleets": list(self.fleets),
            "ships": list(self.ships),
            "fromDate": _iso(self.from_date),
            "toDate": _iso(self.to_date),
            "sailingNumbers": list(self.sailing_numbers),
            "filter_by": "date",
            "metric": self.metric,
            "filterBelow": self.filter_below,
            "compareToAverage": True,
        }


@dataclass(frozen=True)
class SemanticSearchPayload:
    query: str
    fleets: Tuple[str, ...]
    ships: Tuple[str, ...]
    filter_params: Dict[str, Any]
    sheet_names: Tuple[str, ...]
    meal_time: Optional[str]
    semantic: bool
    similarity_score_range: Tuple[float, float]
    num_results: int

    kind: ClassVar[QueryKind] = QueryKind.SEMANTIC_SEARCH

    def to_wire(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "query": self.query,
            "fleets": list(self.fleets),
            "ships": list(self.ships),
            "filter_params": dict(self.filter_params),
            "sheet_names": list(self.sheet_names),
        }
        if self.meal_time is not None:
            body["meal_time"] = self.meal_time
        body["semanticSearch"] = self.semantic
        body["similarity_score_range"] = list(self.similarity_score_range)
        body["num_results"] = self.num_results
        return body


@dataclass(frozen=True)
class IssuesSummaryPayload:
    from_date: date
    to_date: date
    sheets: Tuple[str, ...] = field(default_factory=tuple)

    kind: ClassVar[QueryKind] = QueryKind.ISSUES_SUMMARY

    def to_wire(self) -> Dict[str, Any]:
        return {
            "filter_by": "date",
            "filters": {"fromDate": _iso(self.from_date), "toDate": _iso(self.to_date)},
            "sheets": list(self.sheets),
        }


Payload = Union[RatingSummaryPayload, MetricRatingPayload, SemanticSearchPayload, IssuesSummaryPayload]


def _date_problems(date_range: DateRange, *, required: bool) -> Tuple[List[str], Optional[str]]:
    if date_range.is_empty and not required:
        return [], None
    missing = []
    if date_range.from_date is None:
        missing.append("fromDate")
    if date_range.to_date is None:
        missing.append("toDate")
    if missing:
        return missing, "a start and end date are required"
    if not date_range.is_ordered:
        return ["dateRange"], "the start date must not be after the end date"
    return [], None


def _sheet_problems(snapshot: FilterSnapshot) -> Tuple[List[str], Optional[str]]:
    if snapshot.unknown_sheets and not snapshot.sheet_selection:
        return ["sheets"], f"none of the selected sheets are available: {', '.join(snapshot.unknown_sheets)}"
    return [], None


def _incomplete(kind: QueryKind, missing: List[str], messages: List[str]) -> IncompletePayload:
    return IncompletePayload(kind=kind.value, missing=tuple(missing), message="; ".join(messages))


def _build_rating_summary(snapshot: FilterSnapshot, extra: object) -> Union[Payload, IncompletePayload]:
    missing, message = _date_problems(snapshot.date_range, required=True)
    if missing:
        return _incomplete(QueryKind.RATING_SUMMARY, missing, [message])
    return RatingSummaryPayload(from_date=snapshot.date_range.from_date, to_date=snapshot.date_range.to_date)


def _build_metric_rating(snapshot: FilterSnapshot, extra: object) -> Union[Payload, IncompletePayload]:
    config = extra if extra is not None else MetricConfig()
    if not isinstance(config, MetricConfig):
        raise TypeError(f"metric_rating expects MetricConfig, got {type(config).__name__}")

    missing, message = _date_problems(snapshot.date_range, required=True)
    messages = [message] if message else []
    metric = (config.metric_name or "").strip()
    if not metric:
        missing.append("metric")
        messages.append("please select a metric")
    threshold = config.threshold_below
    if threshold is not None and not (THRESHOLD_MIN <= float(threshold) <= THRESHOLD_MAX):
        missing.append("filterBelow")
        messages.append(f"the rating threshold must lie between {THRESHOLD_MIN:g} and {THRESHOLD_MAX:g}")
    if missing:
        return _incomplete(QueryKind.METRIC_RATING, missing, messages)

    return MetricRatingPayload(
        fleets=snapshot.fleets,
        ships=snapshot.ships,
        from_date=snapshot.date_range.from_date,
        to_date=snapshot.date_range.to_date,
        sailing_numbers=snapshot.sailing_numbers,
        metric=metric,
        filter_below=float(threshold) if threshold is not None else None,
    )


def _search_filter_params(snapshot: FilterSnapshot) -> Dict[str, Any]:
    params: Dict[str, Any] = {}
    if snapshot.date_range.is_complete:
        params["fromDate"] = _iso(snapshot.date_range.from_date)
        params["toDate"] = _iso(snapshot.date_range.to_date)
    if snapshot.sailing_numbers:
        params["sailingNumbers"] = list(snapshot.sailing_numbers)
    return params


def similarity_range(mode: SearchMode, cutoff: float) -> Tuple[float, float]:
    """Convert the 0-10 operator cut-off into the backend's 0-1 similarity range."""
    if SearchMode(mode) is SearchMode.SEMANTIC:
        return (cutoff / CUTOFF_SCALE, 1.0)
    return (0, 1)


def _build_semantic_search(snapshot: FilterSnapshot, extra: object) -> Union[Payload, IncompletePayload]:
    config = extra if extra is not None else SearchConfig()
    if not isinstance(config, SearchConfig):
        raise TypeError(f"semantic_search expects SearchConfig, got {type(config).__name__}")
    mode = SearchMode(config.mode)

    missing: List[str] = []
    messages: List[str] = []
    if not (config.query_text or "").strip():
        missing.append("query")
        messages.append("please enter a search query")
    if not (RESULT_LIMIT_MIN <= int(config.result_limit) <= RESULT_LIMIT_MAX):
        missing.append("num_results")
        messages.append(f"the number of results must lie between {RESULT_LIMIT_MIN} and {RESULT_LIMIT_MAX}")
    if mode is SearchMode.SEMANTIC and not (CUTOFF_MIN <= float(config.similarity_cutoff) <= CUTOFF_MAX):
        missing.append("similarity_score_range")
        messages.append(f"the cut-off score must lie between {CUTOFF_MIN:g} and {CUTOFF_MAX:g}")
    date_missing, date_message = _date_problems(snapshot.date_range, required=False)
    if date_missing:
        missing.extend(date_missing)
        messages.append(date_message)
    sheet_missing, sheet_message = _sheet_problems(snapshot)
    if sheet_missing:
        missing.extend(sheet_missing)
        messages.append(sheet_message)
    if missing:
        return _incomplete(QueryKind.SEMANTIC_SEARCH, missing, messages)

    meal_time = MealTime(config.meal_time) if config.meal_time is not None else MealTime.ALL
    return SemanticSearchPayload(
        query=config.query_text,
        fleets=snapshot.fleets,
        ships=snapshot.ships,
        filter_params=_search_filter_params(snapshot),
        sheet_names=snapshot.sheet_selection,
        meal_time=None if meal_time is MealTime.ALL else meal_time.value,
        semantic=mode is SearchMode.SEMANTIC,
        similarity_score_range=similarity_range(mode, float(config.similarity_cutoff)),
        num_results=int(config.result_limit),
    )


def _build_issues_summary(snapshot: FilterSnapshot, extra: object) -> Union[Payload, IncompletePayload]:
    missing, message = _date_problems(snapshot.date_range, required=True)
    messages = [message] if message else []
    sheet_missing, sheet_message = _sheet_problems(snapshot)
    if sheet_missing:
        missing.extend(sheet_missing)
        messages.append(sheet_message)
    if missing:
        return _incomplete(QueryKind.ISSUES_SUMMARY, missing, messages)
    # Only this kind expands an empty sheet selection before sending it.
    sheets = snapshot.sheet_selection or snapshot.sheet_catalog
    return IssuesSummaryPayload(
        from_date=snapshot.date_range.from_date,
        to_date=snapshot.date_range.to_date,
        sheets=tuple(sheets),
    )


_BUILDERS: Dict[QueryKind, Callable[[FilterSnapshot, object], Union[Payload, IncompletePayload]]] = {
    QueryKind.RATING_SUMMARY: _build_rating_summary,
    QueryKind.METRIC_RATING: _build_metric_rating,
    QueryKind.SEMANTIC_SEARCH: _build_semantic_search,
    QueryKind.ISSUES_SUMMARY: _build_issues_summary,
}


def build_payload(
    kind: Union[QueryKind, str],
    snapshot: FilterSnapshot,
    extra: Union[SearchConfig, MetricConfig, None] = None,
) -> Union[Payload, IncompletePayload]:
    return _BUILDERS[QueryKind(kind)](snapshot, extra)
