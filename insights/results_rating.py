from __future__ import annotations

import io
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from insights.interpret import format_rating, rating_buckets
from insights.payloads import RatingSummaryPayload
from insights.responses import RatingSummaryResponse


SHIP_COL = "Ship Name"
SAILING_COL = "Sailing Number"
FLEET_COL = "Fleet"
ID_COLUMNS = [SHIP_COL, SAILING_COL, FLEET_COL]

RATING_GROUPS: Dict[str, Dict[str, Any]] = {
    "overall": {
        "title": "Overall & Pre/Post",
        "metrics": ["Overall Holiday", "Embarkation/Disembarkation", "Value for Money", "Pre-Cruise Hotel Accommodation"],
    },
    "accommodation": {
        "title": "Onboard Accommodation",
        "metrics": ["Cabins", "Cabin Cleanliness", "Crew Friendliness", "Ship Condition/Cleanliness (Public Areas)"],
    },
    "food": {
        "title": "Food & Beverage",
        "metrics": ["F&B Quality", "F&B Staff Service", "Bar Service", "Drinks Offerings and Menu"],
    },
    "activities": {
        "title": "Activities & Services",
        "metrics": ["Entertainment", "Excursions", "Prior Customer Service", "Flight", "App Booking"],
    },
}


def rating_rows_frame(response: RatingSummaryResponse) -> pd.DataFrame:
    """Backend rows as a DataFrame; id columns first, every known metric column present."""
    df = pd.DataFrame(response.data)
    known_metrics = [m for group in RATING_GROUPS.values() for m in group["metrics"]]
    for col in ID_COLUMNS + known_metrics:
        if col not in df.columns:
            df[col] = None
    extra = [c for c in df.columns if c not in ID_COLUMNS and c not in known_metrics]
    return df[ID_COLUMNS + known_metrics + extra]


def _plain(value: object) -> Any:
    if value is None:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and pd.isna(value):
        return None
    return value


def _cell(value: object, bucket: str) -> Dict[str, Any]:
    return {"value": format_rating(value), "bucket": str(bucket)}


def _group_rows(df: pd.DataFrame, metrics: List[str]) -> List[Dict[str, Any]]:
    buckets = {m: rating_buckets(df[m]) for m in metrics}
    rows: List[Dict[str, Any]] = []
    for idx, row in df.iterrows():
        rows.append(
            {
                "ship": _plain(row[SHIP_COL]),
                "sailing": _plain(row[SAILING_COL]),
                "fleet": _plain(row[FLEET_COL]),
                "cells": {m: _cell(row[m], buckets[m].loc[idx]) for m in metrics},
            }
        )
    return rows


def compute_rating_summary(payload: Optional[RatingSummaryPayload], response: RatingSummaryResponse) -> Dict[str, Any]:
    df = rating_rows_frame(response)
    count = response.count if response.count is not None else int(len(df))
    groups = []
    for key, group in RATING_GROUPS.items():
        groups.append(
            {
                "key": key,
                "title": group["title"],
                "metrics": list(group["metrics"]),
                "rows": _group_rows(df, group["metrics"]) if not df.empty else [],
            }
        )
    return {
        "payload": payload.to_wire() if payload is not None else None,
        "count": count,
        "groups": groups,
    }


def export_rating_summary(response: RatingSummaryResponse, fmt: str = "csv") -> bytes:
    df = rating_rows_frame(response)
    if fmt == "csv":
        return df.to_csv(index=False).encode("utf-8")
    if fmt == "xlsx":
        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="Rating Summary")
        return buffer.getvalue()
    raise ValueError(f"unsupported export format: {fmt}")
