"""HTTP client for the sailing feedback backend.

One method per backend operation. Every failure (network error, non-2xx
status, undecodable or malformed body, error status in the envelope) is
raised as TransportFailure; retries and caching are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from insights.config import Settings, get_settings
from insights.errors import TransportFailure
from insights.responses import (
    IssuesSummaryResponse,
    ListResponse,
    MetricRatingResponse,
    RatingSummaryResponse,
    SearchResponse,
)


logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

ERROR_STATUSES = {"error", "fail", "failed", "failure"}


class BackendClient:
    def __init__(self, http: Optional[httpx.Client] = None, *, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._prefix = settings.api_prefix
        self._owns_http = http is None
        self._http = http or httpx.Client(
            base_url=settings.base_url,
            timeout=settings.timeout_s,
            headers={"Content-Type": "application/json"},
        )

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "BackendClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        operation: str,
        method: str,
        endpoint: str,
        model: Type[ResponseT],
        payload: Optional[Dict[str, Any]] = None,
    ) -> ResponseT:
        url = f"{self._prefix}{endpoint}"
        logger.debug("%s %s (%s)", method, url, operation)
        try:
            response = self._http.request(method, url, json=payload)
        except httpx.HTTPError as exc:
            raise TransportFailure(operation, f"request failed: {exc}") from exc

        if response.is_error:
            raise TransportFailure(
                operation,
                f"API Error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise TransportFailure(operation, "response is not JSON", status_code=response.status_code) from exc
        if not isinstance(body, dict):
            raise TransportFailure(operation, "response is not a JSON object", status_code=response.status_code)

        status = str(body.get("status") or "").strip().lower()
        if status in ERROR_STATUSES:
            detail = body.get("message") or body.get("error") or status
            raise TransportFailure(operation, f"backend reported {detail}", status_code=response.status_code)

        try:
            return model.model_validate(body)
        except ValidationError as exc:
            raise TransportFailure(operation, f"malformed response: {exc.error_count()} error(s)") from exc

    def get_fleets(self) -> ListResponse:
        return self._request("fleets", "GET", "/fleets", ListResponse)

    def get_sheets(self) -> ListResponse:
        return self._request("sheets", "GET", "/sheets", ListResponse)

    def get_metrics(self) -> ListResponse:
        return self._request("metrics", "GET", "/metrics", ListResponse)

    def get_rating_summary(self, payload: Dict[str, Any]) -> RatingSummaryResponse:
        return self._request("ratingSummary", "POST", "/getRatingSmry", RatingSummaryResponse, payload)

    def get_metric_rating(self, payload: Dict[str, Any]) -> MetricRatingResponse:
        return self._request("metricRating", "POST", "/getMetricRating", MetricRatingResponse, payload)

    def semantic_search(self, payload: Dict[str, Any]) -> SearchResponse:
        return self._request("semanticSearch", "POST", "/semanticSearch", SearchResponse, payload)

    def get_issues_summary(self, payload: Dict[str, Any]) -> IssuesSummaryResponse:
        return self._request("issuesSummary", "POST", "/issuesSmry", IssuesSummaryResponse, payload)
