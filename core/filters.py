from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

import pandas as pd


ALL_COFFEES = "All"
MONTH_FIRST = 1
MONTH_LAST = 12


@dataclass(frozen=True)
class DashboardFilters:
    coffee: str = ALL_COFFEES
    month_min: int = MONTH_FIRST
    month_max: int = MONTH_LAST


def _as_month(value: object, default: int) -> int:
    try:
        month = int(value)  # type: ignore[arg-type]
    except Exception:
        return default
    return max(MONTH_FIRST, min(MONTH_LAST, month))


def normalize_filters(raw: Optional[dict]) -> DashboardFilters:
    raw = raw or {}
    coffee = raw.get("coffee")
    coffee = str(coffee) if coffee not in (None, "") else ALL_COFFEES

    month_min = _as_month(raw.get("month_min", MONTH_FIRST), MONTH_FIRST)
    month_max = _as_month(raw.get("month_max", MONTH_LAST), MONTH_LAST)
    if month_min > month_max:
        month_min, month_max = month_max, month_min
    return DashboardFilters(coffee=coffee, month_min=month_min, month_max=month_max)


def with_coffee(filters: DashboardFilters, coffee: Optional[str]) -> DashboardFilters:
    return replace(filters, coffee=coffee or ALL_COFFEES)


def with_month_min(filters: DashboardFilters, value: object) -> DashboardFilters:
    """Move the lower bound; it never passes the current upper bound."""
    month = _as_month(value, filters.month_min)
    return replace(filters, month_min=min(month, filters.month_max))


def with_month_max(filters: DashboardFilters, value: object) -> DashboardFilters:
    """Move the upper bound; it never drops below the current lower bound."""
    month = _as_month(value, filters.month_max)
    return replace(filters, month_max=max(month, filters.month_min))


def apply_filters(transactions: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    if transactions.empty:
        return transactions.copy()

    mask = transactions["month_sort"].between(filters.month_min, filters.month_max, inclusive="both")
    if filters.coffee != ALL_COFFEES:
        mask &= transactions["coffee_name"] == filters.coffee
    return transactions[mask]
