# Shared pytest fixtures
from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

from core.data import build_data_context


@pytest.fixture()
def scenario_rows() -> list[dict[str, object]]:
    """Four line items, two of them belonging to the same purchase."""
    return [
        {"Sales_amount": 5, "Monthsort": 1, "coffee_name": "Latte", "transaction_id": "t1", "Time_of_Day": "Morning"},
        {"Sales_amount": 3, "Monthsort": 1, "coffee_name": "Latte", "transaction_id": "t1", "Time_of_Day": "Morning"},
        {"Sales_amount": 10, "Monthsort": 6, "coffee_name": "Espresso", "transaction_id": "t2", "Time_of_Day": "Night"},
        {"Sales_amount": 2, "Monthsort": 1, "coffee_name": "Cappuccino", "transaction_id": "t3", "Time_of_Day": "Afternoon"},
    ]


@pytest.fixture()
def scenario_ctx(scenario_rows) -> dict[str, object]:
    return build_data_context(scenario_rows, source="memory")


@pytest.fixture()
def write_workbook(tmp_path: Path):
    def _write(sheets: dict[str, list[dict[str, object]]], name: str = "sales.xlsx") -> Path:
        path = tmp_path / name
        with pd.ExcelWriter(path) as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, index=False)
        return path

    return _write
