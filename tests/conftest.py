"""
Shared pytest fixtures for the dashboard core.

Provides:
  - a fake sailing backend (FastAPI app) that records every request
  - a BackendClient wired to it through the Starlette TestClient
  - the dashboard API TestClient with the backend client overridden
"""

import sys
from pathlib import Path
from typing import Any, Dict, List, Set, Tuple

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Ensure the project root is on sys.path so we can import app modules
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from insights.catalog import FleetCatalog, parse_fleet_catalog  # noqa: E402
from insights.client import BackendClient  # noqa: E402
from insights.config import Settings  # noqa: E402


FLEETS = [
    {"fleet": "atlantic", "ships": ["alpha", "beta"]},
    {"fleet": "pacific", "ships": ["beta", "gamma"]},
    {"fleet": "nordic", "ships": ["delta"]},
]
SHEETS = ["A", "B", "C"]
METRICS = ["Cabins", "F&B Quality", "Entertainment"]

RATING_ROWS = [
    {"Ship Name": "alpha", "Sailing Number": "A100", "Fleet": "atlantic", "Overall Holiday": 8.25, "Cabins": "5.5", "Flight": None},
    {"Ship Name": "gamma", "Sailing Number": "G200", "Fleet": "pacific", "Overall Holiday": 3.9, "Cabins": 6.0},
]

METRIC_RESULTS = [
    {
        "ship": "alpha",
        "sailingNumber": "A100",
        "averageRating": 7.95,
        "ratingCount": 40,
        "filteredCount": 5,
        "filteredReviews": ["cold food", "slow bar", "noisy cabin", "late tender", "rude staff"],
    },
    {"ship": "beta", "sailingNumber": 301, "averageRating": None, "ratingCount": 0, "filteredCount": 0, "filteredReviews": []},
]

SEARCH_RESULTS = [
    {"comment": "Great dinner", "metadata": {"fleet": "atlantic", "ship": "alpha", "sailing_number": "A100"}, "sheet_name": "A", "meal_time": "dinner"},
    {"comment": "Lovely crew", "metadata": {"fleet": "atlantic", "ship": "alpha", "sailing_number": "A100"}, "sheet_name": "A"},
    {"comment": "Cabin too small", "metadata": {"fleet": "pacific", "ship": "gamma", "sailing_number": "G200"}, "sheet_name": "B"},
]

ISSUES_DATA = {
    "total_issues": 12,
    "resolved_issues": 7,
    "sailings": [
        {"ship": "alpha", "sailing": "A100", "issues": ["Food quality complaints", "Cabin cleanliness"], "trend": "up"},
        {"ship": "gamma", "sailing": "G200", "issues": ["Excursion cancellations"], "trend": "same"},
    ],
}


class FakeBackend:
    """In-process stand-in for the sailing REST API."""

    def __init__(self) -> None:
        self.fleets: List[Dict[str, Any]] = [dict(f) for f in FLEETS]
        self.sheets: List[str] = list(SHEETS)
        self.metrics: List[str] = list(METRICS)
        self.requests: List[Tuple[str, Any]] = []
        self.failing: Set[str] = set()
        self.error_status: Set[str] = set()
        self.app = self._build_app()

    def calls(self, path: str) -> List[Any]:
        return [body for p, body in self.requests if p == path]

    def _reply(self, path: str, body: Dict[str, Any]):
        if path in self.failing:
            return JSONResponse(status_code=500, content={"error": "boom"})
        if path in self.error_status:
            return {"status": "error", "message": "backend exploded"}
        return body

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/sailing/fleets")
        def fleets():
            self.requests.append(("fleets", None))
            return self._reply("fleets", {"status": "success", "data": self.fleets})

        @app.get("/sailing/sheets")
        def sheets():
            self.requests.append(("sheets", None))
            return self._reply("sheets", {"status": "success", "data": self.sheets})

        @app.get("/sailing/metrics")
        def metrics():
            self.requests.append(("metrics", None))
            return self._reply("metrics", {"status": "success", "data": self.metrics})

        @app.post("/sailing/getRatingSmry")
        async def rating_summary(request: Request):
            self.requests.append(("getRatingSmry", await request.json()))
            return self._reply("getRatingSmry", {"status": "success", "count": len(RATING_ROWS), "data": RATING_ROWS})

        @app.post("/sailing/getMetricRating")
        async def metric_rating(request: Request):
            self.requests.append(("getMetricRating", await request.json()))
            return self._reply("getMetricRating", {"status": "success", "results": METRIC_RESULTS})

        @app.post("/sailing/semanticSearch")
        async def semantic_search(request: Request):
            self.requests.append(("semanticSearch", await request.json()))
            return self._reply("semanticSearch", {"status": "success", "results": SEARCH_RESULTS})

        @app.post("/sailing/issuesSmry")
        async def issues_summary(request: Request):
            self.requests.append(("issuesSmry", await request.json()))
            return self._reply("issuesSmry", {"status": "success", "data": ISSUES_DATA})

        return app


@pytest.fixture()
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def backend_client(fake_backend: FakeBackend):
    """BackendClient talking to the fake backend through a TestClient."""
    with TestClient(fake_backend.app) as http:
        yield BackendClient(http, settings=Settings())


@pytest.fixture()
def catalog() -> FleetCatalog:
    return parse_fleet_catalog(FLEETS)


@pytest.fixture()
def dashboard_client(backend_client: BackendClient):
    """TestClient for the dashboard API with the backend client overridden."""
    from api.main import app, get_backend_client

    app.dependency_overrides[get_backend_client] = lambda: backend_client
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
