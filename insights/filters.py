from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Sequence, Tuple

from insights.catalog import FleetCatalog, unique_strings


logger = logging.getLogger(__name__)

ALL_SHEETS = "all"


class SearchMode(str, Enum):
    SEMANTIC = "semantic"
    KEYWORD = "keyword"


class MealTime(str, Enum):
    ALL = "all"
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    OTHER = "other"


@dataclass(frozen=True)
class DateRange:
    from_date: Optional[date] = None
    to_date: Optional[date] = None

    @property
    def is_complete(self) -> bool:
        return self.from_date is not None and self.to_date is not None

    @property
    def is_empty(self) -> bool:
        return self.from_date is None and self.to_date is None

    @property
    def is_ordered(self) -> bool:
        return self.is_complete and self.from_date <= self.to_date


@dataclass(frozen=True)
class SearchConfig:
    query_text: str = ""
    mode: SearchMode = SearchMode.SEMANTIC
    meal_time: Optional[MealTime] = MealTime.ALL
    result_limit: int = 10
    similarity_cutoff: float = 7.0


@dataclass(frozen=True)
class MetricConfig:
    metric_name: str = ""
    threshold_below: Optional[float] = None


@dataclass(frozen=True)
class FilterSnapshot:
    """Immutable read of a FilterState taken at submission time."""

    fleets: Tuple[str, ...] = ()
    ships: Tuple[str, ...] = ()
    date_range: DateRange = field(default_factory=DateRange)
    sailing_numbers: Tuple[str, ...] = ()
    sheet_selection: Tuple[str, ...] = ()
    sheet_catalog: Tuple[str, ...] = ()
    # Sheets the analyst picked that the catalog does not know, kept only when
    # none of the picked sheets survived. An empty selection then does not mean "all".
    unknown_sheets: Tuple[str, ...] = ()


def as_date(value: object) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        logger.debug("Ignoring unparsable date %r", value)
        return None


class FilterState:
    """Hierarchical selection state for one dashboard view.

    Fleet and ship selections live in one aggregate: every transition keeps
    `selected_ships` a subset of the ships reachable through the selected
    fleets. Nothing here raises; ordering problems such as from > to are
    left in place and rejected when a payload is built.
    """

    def __init__(self, catalog: Optional[FleetCatalog] = None, sheets: Sequence[str] = ()) -> None:
        self._catalog = catalog or FleetCatalog()
        self._sheet_catalog: Tuple[str, ...] = unique_strings(sheets)
        self._fleets: set = set()
        self._ships: set = set()
        self._date_range = DateRange()
        self._sailing_numbers: Tuple[str, ...] = ()
        self._sheet_selection: Tuple[str, ...] = ()
        self._unknown_sheets: Tuple[str, ...] = ()

    @classmethod
    def from_selection(
        cls,
        catalog: FleetCatalog,
        *,
        sheets: Sequence[str] = (),
        fleets: Iterable[str] = (),
        ships: Iterable[str] = (),
        from_date: object = None,
        to_date: object = None,
        sailing_numbers: Iterable[str] = (),
        sheet_selection: Iterable[str] = (),
    ) -> "FilterState":
        """Rebuild a state by replaying the transitions, so the cascade rules apply."""
        state = cls(catalog, sheets)
        for fleet_id in unique_strings(fleets):
            state.set_fleet_selected(fleet_id, True)
        for ship in unique_strings(ships):
            state.set_ship_selected(ship, True)
        state.set_date_range(from_date, to_date)
        state.set_sailing_numbers(sailing_numbers)
        state.set_sheet_selection(sheet_selection)
        return state

    @property
    def catalog(self) -> FleetCatalog:
        return self._catalog

    @property
    def sheet_catalog(self) -> Tuple[str, ...]:
        return self._sheet_catalog

    @property
    def selected_fleets(self) -> FrozenSet[str]:
        return frozenset(self._fleets)

    @property
    def selected_ships(self) -> FrozenSet[str]:
        return frozenset(self._ships)

    @property
    def date_range(self) -> DateRange:
        return self._date_range

    @property
    def sailing_numbers(self) -> Tuple[str, ...]:
        return self._sailing_numbers

    @property
    def sheet_selection(self) -> Tuple[str, ...]:
        return self._sheet_selection

    @property
    def unknown_sheets(self) -> Tuple[str, ...]:
        return self._unknown_sheets

    @property
    def available_ships(self) -> List[str]:
        return self._catalog.ships_for(self._fleets)

    @property
    def can_apply(self) -> bool:
        return self._date_range.is_complete

    def set_catalogs(self, catalog: Optional[FleetCatalog] = None, sheets: Optional[Sequence[str]] = None) -> None:
        """Swap in reloaded vocabularies and drop selections they no longer contain."""
        if catalog is not None:
            self._catalog = catalog
            self._fleets &= set(catalog.fleet_ids())
            self._prune_ships()
        if sheets is not None:
            self._sheet_catalog = unique_strings(sheets)
            self.set_sheet_selection(self._sheet_selection or self._unknown_sheets)

    def set_fleet_selected(self, fleet_id: str, selected: bool) -> None:
        if self._catalog.get(fleet_id) is None:
            logger.debug("Ignoring unknown fleet %r", fleet_id)
            return
        if selected:
            self._fleets.add(fleet_id)
        else:
            self._fleets.discard(fleet_id)
            self._prune_ships()

    def set_ship_selected(self, ship: str, selected: bool) -> None:
        if not selected:
            self._ships.discard(ship)
            return
        if ship not in self.available_ships:
            logger.debug("Ignoring ship %r outside the selected fleets", ship)
            return
        self._ships.add(ship)

    def _prune_ships(self) -> None:
        self._ships &= set(self.available_ships)

    def set_date_range(self, from_date: object, to_date: object) -> None:
        self._date_range = DateRange(from_date=as_date(from_date), to_date=as_date(to_date))

    def set_from_date(self, value: object) -> None:
        self._date_range = DateRange(from_date=as_date(value), to_date=self._date_range.to_date)

    def set_to_date(self, value: object) -> None:
        self._date_range = DateRange(from_date=self._date_range.from_date, to_date=as_date(value))

    def set_sailing_numbers(self, numbers: Iterable[str]) -> None:
        self._sailing_numbers = unique_strings(numbers)

    def set_sheet_selection(self, subset: Iterable[str]) -> None:
        chosen = unique_strings(subset)
        if ALL_SHEETS in chosen:
            chosen = ()
        dropped: Tuple[str, ...] = ()
        if self._sheet_catalog:
            known = set(self._sheet_catalog)
            dropped = tuple(s for s in chosen if s not in known)
            chosen = tuple(s for s in chosen if s in known)
        if dropped:
            logger.warning("Dropping sheets missing from the catalog: %s", ", ".join(dropped))
        self._sheet_selection = chosen
        self._unknown_sheets = dropped if not chosen else ()

    def snapshot(self) -> FilterSnapshot:
        fleets = tuple(f for f in self._catalog.fleet_ids() if f in self._fleets)
        ships = tuple(s for s in self.available_ships if s in self._ships)
        return FilterSnapshot(
            fleets=fleets,
            ships=ships,
            date_range=self._date_range,
            sailing_numbers=self._sailing_numbers,
            sheet_selection=self._sheet_selection,
            sheet_catalog=self._sheet_catalog,
            unknown_sheets=self._unknown_sheets,
        )
