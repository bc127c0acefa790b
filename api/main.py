from __future__ import annotations

import logging
import math

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from api.schemas import DashboardFiltersModel, MetaCoffeesResponse, MetaMonthsResponse
from core.data import load_dashboard_data, prepare_context
from core.filters import MONTH_FIRST, MONTH_LAST, DashboardFilters, normalize_filters
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview, time_slot_metrics, top_sellers
from core.settings import configure_logging, get_settings


configure_logging()
app = FastAPI(title="Coffee Sales Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

EXPORTS = {"transactions", "top-sellers", "time-slots"}


def _filters_from_model(model: DashboardFiltersModel) -> DashboardFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
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
        )
    )


def _error(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


@app.get("/meta/coffees")
def meta_coffees():
    try:
        data_ctx = load_dashboard_data()
        options = [str(x) for x in data_ctx.get("coffee_options", []) or []]
        return _json(MetaCoffeesResponse(coffees=options).model_dump())
    except Exception as exc:
        logger.exception("meta_coffees failed")
        return _error(exc)


@app.get("/meta/months")
def meta_months():
    return _json(MetaMonthsResponse(months=list(range(MONTH_FIRST, MONTH_LAST + 1))).model_dump())


@app.post("/overview")
def overview(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_overview(f, ctx))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(exc)


@app.post("/debug")
def debug(filters: DashboardFiltersModel):
    try:
        data_ctx = load_dashboard_data()
        f = _filters_from_model(filters)
        ctx = prepare_context(f, data_ctx)
        return _json(compute_debug(f, ctx))
    except Exception as exc:
        logger.exception("debug failed")
        return _error(exc)


@app.post("/export/{page}")
def export_page(page: str, filters: DashboardFiltersModel):
    if page not in EXPORTS:
        return JSONResponse(status_code=404, content={"error": f"Unknown export '{page}'", "type": "NotFound"})

    data_ctx = load_dashboard_data()
    f = _filters_from_model(filters)
    ctx = prepare_context(f, data_ctx)
    filtered: pd.DataFrame = ctx["filtered"]

    if page == "transactions":
        export_df = filtered
    elif page == "top-sellers":
        export_df = pd.DataFrame(top_sellers(filtered), columns=["name", "total"])
    else:
        export_df = pd.DataFrame(time_slot_metrics(filtered))

    csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    return Response(
        content=csv_bytes,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={page}.csv"},
    )
