from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Union

from insights.catalog import CatalogLoader
from insights.client import BackendClient
from insights.errors import IncompletePayload, TransportFailure
from insights.filters import FilterState, MetricConfig, SearchConfig
from insights.payloads import Payload, QueryKind, build_payload
from insights.results_issues import compute_issues_summary
from insights.results_metric import compute_metric_rating
from insights.results_rating import compute_rating_summary
from insights.results_search import compute_search


logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_INCOMPLETE = "incomplete"
STATUS_FAILED = "failed"
STATUS_BUSY = "busy"


@dataclass(frozen=True)
class SubmissionResult:
    kind: QueryKind
    status: str
    payload: Optional[Payload] = None
    rejection: Optional[IncompletePayload] = None
    error: Optional[TransportFailure] = None
    result: Optional[Dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


def execute(client: BackendClient, payload: Payload) -> Dict[str, Any]:
    """Send a built payload and interpret the response. TransportFailure propagates."""
    body = payload.to_wire()
    if payload.kind is QueryKind.RATING_SUMMARY:
        return compute_rating_summary(payload, client.get_rating_summary(body))
    if payload.kind is QueryKind.METRIC_RATING:
        return compute_metric_rating(payload, client.get_metric_rating(body))
    if payload.kind is QueryKind.SEMANTIC_SEARCH:
        return compute_search(payload, client.semantic_search(body))
    return compute_issues_summary(payload, client.get_issues_summary(body))


class DashboardSession:
    """One dashboard view: its catalogs, its FilterState and its submissions.

    At most one submission per query kind is in flight; a second one for the
    same kind is refused with status "busy" until the first finishes.

    `submit` runs the request synchronously, so within one thread the busy
    guard only trips when the executor re-enters the session (for example a
    UI callback fired while a request is running). Front ends should disable
    a kind's trigger while `is_pending(kind)` is true.
    """

    def __init__(self, client: BackendClient, *, executor: Callable[[BackendClient, Payload], Dict[str, Any]] = execute) -> None:
        self.client = client
        self.catalogs = CatalogLoader(client)
        self.filters = FilterState()
        self._execute = executor
        self._pending: Set[QueryKind] = set()

    def mount(self) -> None:
        """Load the reference vocabularies and hand them to the filter state."""
        self.filters.set_catalogs(self.catalogs.load_fleets(), self.catalogs.load_sheets())
        self.catalogs.load_metrics()

    def refresh_catalogs(self) -> None:
        self.catalogs.reload()
        self.mount()

    def is_pending(self, kind: Union[QueryKind, str]) -> bool:
        return QueryKind(kind) in self._pending

    def submit(
        self,
        kind: Union[QueryKind, str],
        extra: Union[SearchConfig, MetricConfig, None] = None,
    ) -> SubmissionResult:
        kind = QueryKind(kind)
        if kind in self._pending:
            logger.info("Submission for %s already pending; ignoring", kind.value)
            return SubmissionResult(kind=kind, status=STATUS_BUSY)

        built = build_payload(kind, self.filters.snapshot(), extra)
        if isinstance(built, IncompletePayload):
            logger.info("Submission for %s blocked: %s", kind.value, built.message)
            return SubmissionResult(kind=kind, status=STATUS_INCOMPLETE, rejection=built)

        self._pending.add(kind)
        try:
            result = self._execute(self.client, built)
        except TransportFailure as exc:
            logger.warning("Submission for %s failed: %s", kind.value, exc)
            return SubmissionResult(kind=kind, status=STATUS_FAILED, payload=built, error=exc)
        finally:
            self._pending.discard(kind)
        return SubmissionResult(kind=kind, status=STATUS_OK, payload=built, result=result)
