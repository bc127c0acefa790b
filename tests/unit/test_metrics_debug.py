from __future__ import annotations

from core.data import build_data_context, prepare_context
from core.filters import DashboardFilters
from core.metrics_debug import compute_debug


def test_debug_counts_quality_issues():
    rows = [
        {"Sales_amount": "$5", "Monthsort": 1, "coffee_name": "Latte", "transaction_id": "a", "Time_of_Day": "Morning"},
        {"Sales_amount": "oops", "Monthsort": "June", "coffee_name": "", "transaction_id": "a", "Time_of_Day": "Evening"},
        {"Sales_amount": 3, "Monthsort": 14, "coffee_name": "Mocha", "transaction_id": None, "Time_of_Day": "Evening"},
    ]
    filters = DashboardFilters()
    ctx = prepare_context(filters, build_data_context(rows, source="memory"))
    payload = compute_debug(filters, ctx)

    assert payload["source"] == "memory"
    assert payload["row_counts"] == {"raw_rows": 3, "transactions": 3, "filtered_rows": 1}
    assert payload["quality_checks"] == {
        "missing_month_rows": 1,
        "out_of_range_month_rows": 1,
        "unrecognized_time_of_day_rows": 2,
        "zero_sales_rows": 1,
        "blank_coffee_name_rows": 1,
        "blank_transaction_id_rows": 1,
        "distinct_transactions": 2,
    }
    assert payload["months_present"] == [1, 14]
    assert payload["unrecognized_time_of_day"] == [{"time_of_day": "Evening", "count": 2}]
    assert payload["resolved_aliases"]["sales"] == ["Sales_amount"]
    assert "Monthsort" in payload["raw_columns"]


def test_debug_on_empty_context():
    filters = DashboardFilters()
    payload = compute_debug(filters, prepare_context(filters, {}))
    assert payload["row_counts"] == {"raw_rows": 0, "transactions": 0, "filtered_rows": 0}
    assert payload["quality_checks"]["missing_month_rows"] == 0
    assert payload["months_present"] == []
