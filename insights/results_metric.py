from __future__ import annotations

from typing import Any, Dict, List, Optional

from insights.interpret import as_text, count_or_zero, format_rating, rating_bucket, trim_excerpts
from insights.payloads import MetricRatingPayload
from insights.responses import MetricRatingResponse, MetricRatingRow


def _metric_row(row: MetricRatingRow) -> Dict[str, Any]:
    reviews = trim_excerpts(row.filteredReviews)
    return {
        "ship": row.ship,
        "sailing_number": as_text(row.sailingNumber),
        "average_rating": format_rating(row.averageRating),
        "bucket": rating_bucket(row.averageRating).value,
        "rating_count": count_or_zero(row.ratingCount),
        "filtered_count": count_or_zero(row.filteredCount),
        "reviews": reviews.to_dict(),
    }


def compute_metric_rating(payload: Optional[MetricRatingPayload], response: MetricRatingResponse) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = [_metric_row(r) for r in response.results]
    return {
        "payload": payload.to_wire() if payload is not None else None,
        "metric": payload.metric if payload is not None else None,
        "filter_below": payload.filter_below if payload is not None else None,
        "results": rows,
    }
