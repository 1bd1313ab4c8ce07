from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from insights.client import BackendClient
from insights.errors import CatalogUnavailable, TransportFailure


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fleet:
    fleet_id: str
    ships: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FleetCatalog:
    fleets: Tuple[Fleet, ...] = ()

    def fleet_ids(self) -> List[str]:
        return [f.fleet_id for f in self.fleets]

    def get(self, fleet_id: str) -> Optional[Fleet]:
        return next((f for f in self.fleets if f.fleet_id == fleet_id), None)

    def ships_for(self, fleet_ids: Iterable[str]) -> List[str]:
        """Union of ships for the given fleets, in catalog order, without duplicates."""
        wanted = set(fleet_ids)
        out: List[str] = []
        seen = set()
        for fleet in self.fleets:
            if fleet.fleet_id not in wanted:
                continue
            for ship in fleet.ships:
                if ship not in seen:
                    seen.add(ship)
                    out.append(ship)
        return out

    def __len__(self) -> int:
        return len(self.fleets)


def unique_strings(values: Optional[Iterable[object]]) -> Tuple[str, ...]:
    if not values or isinstance(values, (str, bytes)):
        return ()
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in out:
            out.append(s)
    return tuple(out)


def parse_fleet_catalog(raw: Optional[Iterable[object]]) -> FleetCatalog:
    """Build a FleetCatalog from the wire shape `[{"fleet": ..., "ships": [...]}]`."""
    fleets: List[Fleet] = []
    seen = set()
    for entry in raw or []:
        if not isinstance(entry, dict):
            logger.warning("Skipping fleet entry that is not an object: %r", entry)
            continue
        fleet_id = str(entry.get("fleet") or "").strip()
        if not fleet_id:
            logger.warning("Skipping fleet entry without a fleet id: %r", entry)
            continue
        if fleet_id in seen:
            logger.warning("Skipping duplicate fleet %s", fleet_id)
            continue
        seen.add(fleet_id)
        fleets.append(Fleet(fleet_id=fleet_id, ships=unique_strings(entry.get("ships"))))
    return FleetCatalog(fleets=tuple(fleets))


class CatalogLoader:
    """Loads each reference vocabulary at most once per view.

    A failed load yields an empty catalog and a CatalogUnavailable warning;
    it never raises.
    """

    def __init__(self, client: BackendClient) -> None:
        self._client = client
        self._cache: Dict[str, object] = {}
        self.warnings: List[CatalogUnavailable] = []

    def _fetch(self, name: str, fetch: Callable[[], object], empty: object) -> object:
        if name in self._cache:
            return self._cache[name]
        try:
            value = fetch()
        except TransportFailure as exc:
            logger.warning("Catalog %s unavailable: %s", name, exc)
            self.warnings.append(CatalogUnavailable(catalog=name, reason=str(exc)))
            value = empty
        self._cache[name] = value
        return value

    def load_fleets(self) -> FleetCatalog:
        return self._fetch("fleets", lambda: parse_fleet_catalog(self._client.get_fleets().data), FleetCatalog())

    def load_sheets(self) -> Tuple[str, ...]:
        return self._fetch("sheets", lambda: unique_strings(self._client.get_sheets().data), ())

    def load_metrics(self) -> Tuple[str, ...]:
        return self._fetch("metrics", lambda: unique_strings(self._client.get_metrics().data), ())

    def reload(self) -> None:
        self._cache.clear()
        self.warnings.clear()
