from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from core.charts import sales_by_time_chart, to_vega_spec, top_sellers_chart
from core.data import TIME_SLOTS, format_money, round_half_up
from core.filters import DashboardFilters


TOP_N = 3
NO_PEAK = "-"


@dataclass(frozen=True)
class AggregateResult:
    total_sales: float = 0.0
    total_transactions: int = 0
    avg_value: float = 0.0
    peak_time_of_day: str = NO_PEAK
    sales_by_time_slot: List[Dict[str, Any]] = field(default_factory=list)
    top_overall: List[Dict[str, Any]] = field(default_factory=list)
    top_by_slot: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    time_slot_metrics: List[Dict[str, Any]] = field(default_factory=list)


def _slot_rows(df: pd.DataFrame, slot: str) -> pd.DataFrame:
    if df.empty:
        return df
    return df[df["time_of_day"] == slot]


def total_sales(df: pd.DataFrame) -> float:
    if df.empty:
        return 0.0
    return float(df["sales"].sum())


def total_transactions(df: pd.DataFrame) -> int:
    """Distinct transaction ids; line items of one purchase count once."""
    if df.empty:
        return 0
    return int(df["transaction_id"].nunique(dropna=False))


def average_value(sales: float, transactions: int) -> float:
    return sales / transactions if transactions else 0.0


def sales_by_time_slot(df: pd.DataFrame) -> List[Dict[str, Any]]:
    return [{"time_of_day": slot, "sales": round_half_up(total_sales(_slot_rows(df, slot)), 2)} for slot in TIME_SLOTS]


def peak_time_of_day(slot_sales: Sequence[Mapping[str, Any]]) -> str:
    peak, best = NO_PEAK, None
    for entry in slot_sales:
        if best is None or entry["sales"] > best:
            peak, best = entry["time_of_day"], entry["sales"]
    return peak


def top_sellers(df: pd.DataFrame, n: int = TOP_N) -> List[Dict[str, Any]]:
    """Best selling coffees by summed sales.

    Groups keep the order names are first seen in, and the stable sort keeps
    that order among equal totals.
    """
    if df.empty:
        return []
    totals = (
        df.groupby("coffee_name", sort=False)["sales"]
        .sum()
        .reset_index()
        .rename(columns={"coffee_name": "name", "sales": "total"})
    )
    totals["total"] = totals["total"].apply(lambda v: round_half_up(v, 2))
    totals = totals.sort_values("total", ascending=False, kind="stable").head(n)
    return totals.to_dict(orient="records")


def top_sellers_by_slot(df: pd.DataFrame, n: int = TOP_N) -> Dict[str, List[Dict[str, Any]]]:
    return {slot: top_sellers(_slot_rows(df, slot), n) for slot in TIME_SLOTS}


def time_slot_metrics(df: pd.DataFrame) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    for slot in TIME_SLOTS:
        slot_df = _slot_rows(df, slot)
        sales = total_sales(slot_df)
        transactions = total_transactions(slot_df)
        rows.append(
            {
                "time_of_day": slot,
                "sales": sales,
                "transactions": transactions,
                "avg_value": average_value(sales, transactions),
            }
        )
    return rows


def compute_aggregates(df: pd.DataFrame) -> AggregateResult:
    sales = total_sales(df)
    transactions = total_transactions(df)
    slot_sales = sales_by_time_slot(df)
    return AggregateResult(
        total_sales=sales,
        total_transactions=transactions,
        avg_value=average_value(sales, transactions),
        peak_time_of_day=peak_time_of_day(slot_sales),
        sales_by_time_slot=slot_sales,
        top_overall=top_sellers(df),
        top_by_slot=top_sellers_by_slot(df),
        time_slot_metrics=time_slot_metrics(df),
    )


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame()).copy()
    agg = compute_aggregates(df)

    charts: Dict[str, Any] = {
        "sales_by_time": to_vega_spec(sales_by_time_chart(agg.sales_by_time_slot)),
        "top_by_slot": {slot: to_vega_spec(top_sellers_chart(slot, agg.top_by_slot[slot])) for slot in TIME_SLOTS},
    }

    return {
        "filters": asdict(filters),
        "row_count": int(len(df)),
        "kpis": {
            "total_sales": agg.total_sales,
            "total_transactions": agg.total_transactions,
            "avg_value": agg.avg_value,
            "peak_time_of_day": agg.peak_time_of_day,
        },
        "kpis_display": {
            "total_sales": format_money(agg.total_sales),
            "total_transactions": str(agg.total_transactions),
            "avg_value": format_money(agg.avg_value),
            "peak_time_of_day": agg.peak_time_of_day,
        },
        "sales_by_time": agg.sales_by_time_slot,
        "peak_time_of_day": agg.peak_time_of_day,
        "top_overall": agg.top_overall,
        "time_slot_metrics": agg.time_slot_metrics,
        "top_by_slot": agg.top_by_slot,
        "charts": charts,
    }
