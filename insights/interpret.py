from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Tuple

import numpy as np
import pandas as pd


MAX_EXCERPTS = 3


class RatingBucket(str, Enum):
    CRITICAL = "critical"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    UNAVAILABLE = "unavailable"


# (lower bound inclusive, bucket), highest first.
RATING_THRESHOLDS: Tuple[Tuple[float, RatingBucket], ...] = (
    (8.0, RatingBucket.HIGH),
    (6.0, RatingBucket.MEDIUM),
    (4.0, RatingBucket.LOW),
)


def as_rating(value: object) -> Optional[float]:
    """Parse a backend rating value; None when it is missing or not numeric."""
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(out):
        return None
    return out


def rating_bucket(value: object) -> RatingBucket:
    r = as_rating(value)
    if r is None:
        return RatingBucket.UNAVAILABLE
    for lower, bucket in RATING_THRESHOLDS:
        if r >= lower:
            return bucket
    return RatingBucket.CRITICAL


def rating_buckets(values: pd.Series) -> pd.Series:
    """Vectorized `rating_bucket` for a column of ratings."""
    numeric = values.map(as_rating).astype(float)
    conditions = [numeric.isna()] + [numeric >= lower for lower, _ in RATING_THRESHOLDS]
    choices = [RatingBucket.UNAVAILABLE.value] + [bucket.value for _, bucket in RATING_THRESHOLDS]
    out = np.select(conditions, choices, default=RatingBucket.CRITICAL.value)
    return pd.Series(out, index=values.index, dtype=object)


def format_rating(value: object) -> Optional[float]:
    r = as_rating(value)
    if r is None:
        return None
    return round(r, 1)


@dataclass(frozen=True)
class Excerpts:
    shown: Tuple[Any, ...]
    remaining: int

    @property
    def total(self) -> int:
        return len(self.shown) + self.remaining

    def to_dict(self) -> dict:
        return {"shown": list(self.shown), "remaining": self.remaining, "total": self.total}


def trim_excerpts(items: Optional[Sequence[Any]], limit: int = MAX_EXCERPTS) -> Excerpts:
    """First `limit` items plus a count of the rest. The input is not modified."""
    items = list(items or [])
    return Excerpts(shown=tuple(items[:limit]), remaining=max(0, len(items) - limit))


def count_or_zero(value: object) -> int:
    r = as_rating(value)
    if r is None:
        return 0
    return int(r)


def as_text(value: object) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None
