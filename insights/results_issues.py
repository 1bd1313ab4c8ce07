from __future__ import annotations

from typing import Any, Dict, List, Optional

from insights.interpret import as_text, count_or_zero
from insights.payloads import IssuesSummaryPayload
from insights.responses import IssuesSummaryResponse


TOTAL_FIELDS = ["total_issues", "resolved_issues", "unresolved_issues"]

# Backend trend enum -> display label. Severity is never recomputed here.
TREND_LABELS: Dict[str, str] = {
    "up": "Worsening",
    "down": "Improving",
    "same": "Stable",
}
UNKNOWN_TREND = "Unknown"


def trend_label(trend: object) -> str:
    key = (as_text(trend) or "").lower()
    return TREND_LABELS.get(key, UNKNOWN_TREND)


def _sailing_entry(raw: Dict[str, Any]) -> Dict[str, Any]:
    issues = [str(i) for i in (raw.get("issues") or []) if i is not None]
    trend = as_text(raw.get("trend"))
    return {
        "ship": as_text(raw.get("ship")),
        "sailing": as_text(raw.get("sailing")),
        "issues": issues,
        "issue_count": len(issues),
        "trend": trend,
        "trend_label": trend_label(trend),
    }


def compute_issues_summary(payload: Optional[IssuesSummaryPayload], response: IssuesSummaryResponse) -> Dict[str, Any]:
    data = response.data or {}
    totals = {name: count_or_zero(data.get(name)) for name in TOTAL_FIELDS}
    sailings: List[Dict[str, Any]] = [
        _sailing_entry(s) for s in (data.get("sailings") or []) if isinstance(s, dict)
    ]
    return {
        "payload": payload.to_wire() if payload is not None else None,
        "totals": totals,
        "sailings": sailings,
    }
