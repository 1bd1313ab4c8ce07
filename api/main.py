from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Literal, Union

import numpy as np
import pandas as pd
from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import (
    FilterSnapshotModel,
    FleetModel,
    MetaFleetsResponse,
    MetaListResponse,
    MetricRatingRequest,
    SearchRequest,
)
from insights.catalog import CatalogLoader, FleetCatalog
from insights.client import BackendClient
from insights.config import get_settings
from insights.errors import CatalogUnavailable, IncompletePayload, TransportFailure
from insights.filters import FilterState, MetricConfig, SearchConfig
from insights.payloads import Payload, QueryKind, build_payload
from insights.results_rating import export_rating_summary
from insights.session import execute


settings = get_settings()
app = FastAPI(title="Sailing Insights API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    return BackendClient(settings=settings)


def _json(data: object, status_code: int = 200) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        ),
    )


def _error(exc: Exception, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": str(exc), "type": type(exc).__name__})




# Catalogs each query kind reads; rating_summary forwards dates only.
_CATALOGS_BY_KIND = {
    QueryKind.RATING_SUMMARY: (),
    QueryKind.METRIC_RATING: ("fleets",),
    QueryKind.SEMANTIC_SEARCH: ("fleets", "sheets"),
    QueryKind.ISSUES_SUMMARY: ("sheets",),
}


def _catalog_error(warning: CatalogUnavailable) -> JSONResponse:
    return JSONResponse(
        status_code=502,
        content={
            "error": f"{warning.catalog} catalog unavailable: {warning.reason}",
            "type": type(warning).__name__,
            "catalog": warning.catalog,
        },
    )


def _build(
    kind: QueryKind,
    filters: FilterSnapshotModel,
    client: BackendClient,
    extra: Union[MetricConfig, SearchConfig, None] = None,
) -> Union[Payload, JSONResponse]:
    """Replay the request's selection against fresh catalogs and build the payload.

    Returns an error response instead of a payload when the request is
    incomplete, or when it names fleets/ships that cannot be checked because
    the fleet catalog failed to load.
    """
    needed = _CATALOGS_BY_KIND[kind]
    loader = CatalogLoader(client)
    catalog = loader.load_fleets() if "fleets" in needed else FleetCatalog()
    sheets = loader.load_sheets() if "sheets" in needed else ()
    if filters.fleets or filters.ships:
        lost = next((w for w in loader.warnings if w.catalog == "fleets"), None)
        if lost is not None:
            logger.warning("%s refused: fleet selection cannot be resolved", kind.value)
            return _catalog_error(lost)

    state = FilterState.from_selection(
        catalog,
        sheets=sheets,
        fleets=filters.fleets,
        ships=filters.ships,
        from_date=filters.fromDate,
        to_date=filters.toDate,
        sailing_numbers=filters.sailingNumbers,
        sheet_selection=filters.sheets,
    )
    built = build_payload(kind, state.snapshot(), extra)
    if isinstance(built, IncompletePayload):
        return _json(built.to_dict(), status_code=422)
    return built


def _submit(
    kind: QueryKind,
    filters: FilterSnapshotModel,
    client: BackendClient,
    extra: Union[MetricConfig, SearchConfig, None] = None,
) -> JSONResponse:
    try:
        built = _build(kind, filters, client, extra)
        if isinstance(built, JSONResponse):
            return built
        return _json(execute(client, built))
    except TransportFailure as exc:
        logger.warning("%s failed: %s", kind.value, exc)
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("%s failed", kind.value)
        return _error(exc, 500)


@app.get("/meta/fleets")
def meta_fleets(client: BackendClient = Depends(get_backend_client)):
    loader = CatalogLoader(client)
    catalog = loader.load_fleets()
    return MetaFleetsResponse(
        fleets=[FleetModel(fleet=f.fleet_id, ships=list(f.ships)) for f in catalog.fleets],
        warnings=[w.reason for w in loader.warnings],
    )


@app.get("/meta/sheets")
def meta_sheets(client: BackendClient = Depends(get_backend_client)):
    loader = CatalogLoader(client)
    return MetaListResponse(values=list(loader.load_sheets()), warnings=[w.reason for w in loader.warnings])


@app.get("/meta/metrics")
def meta_metrics(client: BackendClient = Depends(get_backend_client)):
    loader = CatalogLoader(client)
    return MetaListResponse(values=list(loader.load_metrics()), warnings=[w.reason for w in loader.warnings])


@app.post("/rating-summary")
def rating_summary(filters: FilterSnapshotModel, client: BackendClient = Depends(get_backend_client)):
    return _submit(QueryKind.RATING_SUMMARY, filters, client)


@app.post("/metric-rating")
def metric_rating(request: MetricRatingRequest, client: BackendClient = Depends(get_backend_client)):
    return _submit(QueryKind.METRIC_RATING, request.filters, client, request.config.to_config())


@app.post("/search")
def search(request: SearchRequest, client: BackendClient = Depends(get_backend_client)):
    return _submit(QueryKind.SEMANTIC_SEARCH, request.filters, client, request.config.to_config())


@app.post("/issues")
def issues(filters: FilterSnapshotModel, client: BackendClient = Depends(get_backend_client)):
    return _submit(QueryKind.ISSUES_SUMMARY, filters, client)


@app.post("/export/rating-summary")
def export_rating_summary_file(
    filters: FilterSnapshotModel,
    fmt: Literal["csv", "xlsx"] = Query(default="csv"),
    client: BackendClient = Depends(get_backend_client),
):
    try:
        built = _build(QueryKind.RATING_SUMMARY, filters, client)
        if isinstance(built, JSONResponse):
            return built
        content = export_rating_summary(client.get_rating_summary(built.to_wire()), fmt)
    except TransportFailure as exc:
        logger.warning("rating summary export failed: %s", exc)
        return _error(exc, 502)
    except Exception as exc:
        logger.exception("rating summary export failed")
        return _error(exc, 500)

    filename = f"rating_summary.{fmt}"
    media_type = "text/csv" if fmt == "csv" else XLSX_MEDIA_TYPE
    return Response(content=content, media_type=media_type, headers={"Content-Disposition": f"attachment; filename={filename}"})
