from __future__ import annotations

import io
import logging
import math
import numbers
import re
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd
import requests

from core.filters import ALL_COFFEES, DashboardFilters, apply_filters, normalize_filters
from core.settings import get_settings


logger = logging.getLogger(__name__)

TIME_SLOTS: Tuple[str, ...] = ("Morning", "Afternoon", "Night")

# Ordered header spellings per field; the first non-null value wins. The
# trailing canonical names let a normalized frame resolve to itself.
SALES_ALIASES = ("Sales_amount", "sales_amount", "Sales Amount", "sales")
MONTH_ALIASES = ("Monthsort", "Month Sort", "monthsort", "Month", "month_sort")
COFFEE_ALIASES = ("coffee_name", "Coffee Name", "coffee")
TRANSACTION_ALIASES = ("transaction_id", "Transaction ID", "transactio_id", "id")
TIME_OF_DAY_ALIASES = ("Time_of_Day", "Time of Day", "time_of_day", "Time")

FIELD_ALIASES: Dict[str, Tuple[str, ...]] = {
    "sales": SALES_ALIASES,
    "month_sort": MONTH_ALIASES,
    "coffee_name": COFFEE_ALIASES,
    "transaction_id": TRANSACTION_ALIASES,
    "time_of_day": TIME_OF_DAY_ALIASES,
}
TRANSACTION_COLUMNS: List[str] = list(FIELD_ALIASES)

_MONEY_NOISE = re.compile(r"[$€£,\s]")
_DECIMAL_PREFIX = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

RawRows = Union[pd.DataFrame, Iterable[Mapping[str, Any]]]


def _is_missing(value: object) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def column_as_series(df: pd.DataFrame, col: str) -> pd.Series:
    if col not in df.columns:
        return pd.Series(dtype=object)
    val = df[col]
    if isinstance(val, pd.DataFrame):
        return val.iloc[:, 0]
    return val


# ---------------- Coercion ----------------
def parse_money(value: object) -> float:
    """Parse a sales amount like ``"$1,234.50"`` or ``12.5`` into a float.

    Currency symbols, thousands separators and whitespace are removed and the
    leading decimal literal is read. Anything unparsable, non-finite or
    negative becomes ``0.0``.
    """
    if _is_missing(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, numbers.Real):
        amount = float(value)
    else:
        match = _DECIMAL_PREFIX.match(_MONEY_NOISE.sub("", str(value)))
        amount = float(match.group(0)) if match else 0.0
    if not math.isfinite(amount) or amount <= 0:
        return 0.0
    return amount


def parse_month(value: object) -> float:
    """Month ordering as a float holding an integer, NaN when unusable."""
    if _is_missing(value) or isinstance(value, bool):
        return math.nan
    if isinstance(value, numbers.Real):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return math.nan
    if not math.isfinite(number) or not number.is_integer():
        return math.nan
    return float(int(number))


def normalize_text(value: object) -> str:
    if _is_missing(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands back integer ids as floats when the column has gaps
        return str(int(value))
    return str(value)


# ---------------- Normalization ----------------
def as_frame(raw: RawRows) -> pd.DataFrame:
    if isinstance(raw, pd.DataFrame):
        return raw
    return pd.DataFrame.from_records(list(raw))


def resolve_field(frame: pd.DataFrame, aliases: Iterable[str]) -> pd.Series:
    resolved = pd.Series([None] * len(frame), index=frame.index, dtype=object)
    for alias in aliases:
        if alias not in frame.columns:
            continue
        candidate = column_as_series(frame, alias).astype(object)
        resolved = resolved.where(resolved.notna(), candidate)
    return resolved


def resolved_aliases(raw: RawRows) -> Dict[str, List[str]]:
    """Header spellings present in ``raw`` for each field, in priority order."""
    frame = as_frame(raw)
    return {field: [a for a in aliases if a in frame.columns] for field, aliases in FIELD_ALIASES.items()}


def normalize_transactions(raw: RawRows) -> pd.DataFrame:
    frame = as_frame(raw)
    out = pd.DataFrame(
        {
            "sales": resolve_field(frame, SALES_ALIASES).map(parse_money).astype(float),
            "month_sort": resolve_field(frame, MONTH_ALIASES).map(parse_month).astype(float),
            "coffee_name": resolve_field(frame, COFFEE_ALIASES).map(normalize_text).astype(object),
            "transaction_id": resolve_field(frame, TRANSACTION_ALIASES).map(normalize_text).astype(object),
            "time_of_day": resolve_field(frame, TIME_OF_DAY_ALIASES).map(normalize_text).astype(object),
        },
        columns=TRANSACTION_COLUMNS,
    ).reset_index(drop=True)

    missing_month = int(out["month_sort"].isna().sum())
    if missing_month:
        logger.warning(
            "%d of %d rows have no usable month value and will not match any month range",
            missing_month,
            len(out),
        )
    return out


def coffee_options(transactions: pd.DataFrame) -> List[str]:
    if transactions.empty or "coffee_name" not in transactions.columns:
        return [ALL_COFFEES]
    names = {str(n) for n in transactions["coffee_name"].tolist() if n}
    return [ALL_COFFEES] + sorted(names)


# ---------------- Loaders ----------------
def is_remote(locator: Union[str, Path]) -> bool:
    return str(locator).lower().startswith(("http://", "https://"))


def fetch_workbook_bytes(locator: Union[str, Path], *, timeout: Optional[float] = None) -> bytes:
    if is_remote(locator):
        response = requests.get(str(locator), timeout=timeout or get_settings().fetch_timeout)
        response.raise_for_status()
        return response.content
    return Path(locator).read_bytes()


def read_raw_rows(content: bytes) -> pd.DataFrame:
    """First sheet of the workbook, header row as keys, blank lines dropped."""
    df = pd.read_excel(io.BytesIO(content), sheet_name=0)
    return df.dropna(how="all").reset_index(drop=True)


def load_raw_rows(locator: Union[str, Path]) -> pd.DataFrame:
    try:
        return read_raw_rows(fetch_workbook_bytes(locator))
    except Exception:
        logger.exception("Excel load error for %s", locator)
        return pd.DataFrame()


def source_mtime(locator: str) -> Optional[float]:
    if is_remote(locator):
        return None
    return Path(locator).stat().st_mtime


def build_data_context(raw_rows: RawRows, *, source: str = "") -> Dict[str, object]:
    raw_frame = as_frame(raw_rows)
    transactions = normalize_transactions(raw_frame)
    return {
        "source": source,
        "raw_rows": raw_frame,
        "transactions": transactions,
        "coffee_options": coffee_options(transactions),
        "resolved_aliases": resolved_aliases(raw_frame),
    }


# ---------------- Public API (Streamlit parity + FastAPI use) ----------------
@lru_cache(maxsize=4)
def _load_dashboard_data_cached(source: str, mtime: Optional[float]) -> Dict[str, object]:
    raw_rows = load_raw_rows(source)
    logger.info("Loaded %d sales rows from %s", len(raw_rows), source)
    return build_data_context(raw_rows, source=source)


def load_dashboard_data(source: Optional[Union[str, Path]] = None) -> Dict[str, object]:
    source = str(source or get_settings().source)
    if not is_remote(source) and not Path(source).is_file():
        logger.warning("Sales workbook not found at %s", source)
        return build_data_context(pd.DataFrame(), source=source)
    return _load_dashboard_data_cached(source, source_mtime(source))


def prepare_context(filters: dict | DashboardFilters, data_ctx: Dict[str, object]) -> Dict[str, object]:
    transactions: pd.DataFrame = data_ctx.get("transactions", pd.DataFrame(columns=TRANSACTION_COLUMNS)).copy()
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    return {
        "filters": filt,
        "source": data_ctx.get("source", ""),
        "raw_rows": data_ctx.get("raw_rows", pd.DataFrame()),
        "transactions": transactions,
        "filtered": apply_filters(transactions, filt),
        "coffee_options": data_ctx.get("coffee_options", [ALL_COFFEES]),
        "resolved_aliases": data_ctx.get("resolved_aliases", {}),
    }


# ---------------- Formatting ----------------
def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def format_money(value: object) -> str:
    """``$`` plus a grouped amount with at most two decimals: ``$1,234.5``."""
    try:
        amount = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return "$0"
    if not math.isfinite(amount):
        return "$0"
    text = f"{round_half_up(amount, 2):,.2f}".rstrip("0").rstrip(".")
    return f"${text}"


def format_currency_columns(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    formatted = df.copy()
    for c in cols:
        if c in formatted.columns:
            formatted[c] = formatted[c].apply(format_money)
    return formatted
