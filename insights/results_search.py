from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from insights.interpret import as_text, trim_excerpts
from insights.payloads import SemanticSearchPayload
from insights.responses import SearchHit, SearchResponse


def _hit(hit: SearchHit) -> Dict[str, Any]:
    return {
        "comment": hit.comment,
        "fleet": as_text(hit.metadata.fleet),
        "ship": as_text(hit.metadata.ship),
        "sailing_number": as_text(hit.metadata.sailing_number),
        "sheet_name": as_text(hit.sheet_name),
        "meal_time": as_text(hit.meal_time),
    }


def group_hits(hits: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group flat hits by (fleet, ship, sailing) in first-seen order, trimming each group's comments."""
    order: List[Tuple[Optional[str], Optional[str], Optional[str]]] = []
    comments: Dict[Tuple[Optional[str], Optional[str], Optional[str]], List[str]] = {}
    for hit in hits:
        key = (hit["fleet"], hit["ship"], hit["sailing_number"])
        if key not in comments:
            order.append(key)
            comments[key] = []
        comments[key].append(hit["comment"])
    return [
        {
            "fleet": fleet,
            "ship": ship,
            "sailing_number": sailing,
            "comments": trim_excerpts(comments[(fleet, ship, sailing)]).to_dict(),
        }
        for fleet, ship, sailing in order
    ]


def compute_search(payload: Optional[SemanticSearchPayload], response: SearchResponse) -> Dict[str, Any]:
    hits = [_hit(h) for h in response.results]
    return {
        "payload": payload.to_wire() if payload is not None else None,
        "count": len(hits),
        "results": hits,
        "groups": group_hits(hits),
    }
