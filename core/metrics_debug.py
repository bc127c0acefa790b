from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from core.data import TIME_SLOTS
from core.filters import DashboardFilters, MONTH_FIRST, MONTH_LAST
from core.metrics_overview import total_transactions


def compute_debug(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    raw_rows: pd.DataFrame = ctx.get("raw_rows", pd.DataFrame())
    transactions: pd.DataFrame = ctx.get("transactions", pd.DataFrame()).copy()
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    payload = {
        "filters": asdict(filters),
        "source": str(ctx.get("source", "") or ""),
        "row_counts": {
            "raw_rows": int(len(raw_rows)),
            "transactions": int(len(transactions)),
            "filtered_rows": int(len(filtered)),
        },
        "quality_checks": {
            "missing_month_rows": 0,
            "out_of_range_month_rows": 0,
            "unrecognized_time_of_day_rows": 0,
            "zero_sales_rows": 0,
            "blank_coffee_name_rows": 0,
            "blank_transaction_id_rows": 0,
            "distinct_transactions": 0,
        },
        "raw_columns": [str(c) for c in raw_rows.columns],
        "resolved_aliases": ctx.get("resolved_aliases", {}) or {},
        "months_present": [],
        "unrecognized_time_of_day": [],
    }
    if transactions.empty:
        return payload

    months = transactions["month_sort"]
    known_month = months.notna()
    payload["quality_checks"] = {
        # these rows never pass a month range
        "missing_month_rows": int((~known_month).sum()),
        "out_of_range_month_rows": int((known_month & ~months.between(MONTH_FIRST, MONTH_LAST)).sum()),
        "unrecognized_time_of_day_rows": int((~transactions["time_of_day"].isin(TIME_SLOTS)).sum()),
        "zero_sales_rows": int((transactions["sales"] == 0).sum()),
        "blank_coffee_name_rows": int((transactions["coffee_name"] == "").sum()),
        "blank_transaction_id_rows": int((transactions["transaction_id"] == "").sum()),
        "distinct_transactions": total_transactions(transactions),
    }
    payload["months_present"] = sorted(int(m) for m in months.dropna().unique())

    unknown = transactions[~transactions["time_of_day"].isin(TIME_SLOTS)]
    if not unknown.empty:
        counts = unknown["time_of_day"].value_counts().head(20).rename_axis("time_of_day").reset_index(name="count")
        payload["unrecognized_time_of_day"] = counts.to_dict(orient="records")
    return payload
