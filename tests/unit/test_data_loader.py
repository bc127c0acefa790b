from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd
import pytest
import requests

from core import data as data_module
from core.data import (
    TRANSACTION_COLUMNS,
    build_data_context,
    fetch_workbook_bytes,
    is_remote,
    load_dashboard_data,
    load_raw_rows,
    prepare_context,
    read_raw_rows,
)
from core.filters import DashboardFilters


SALES_SHEET = [
    {"Sales Amount": "$4.50", "Month": 2, "Coffee Name": "Latte", "Transaction ID": 101, "Time of Day": "Morning"},
    {"Sales Amount": "$1,200.00", "Month": 3, "Coffee Name": "Espresso", "Transaction ID": 102, "Time of Day": "Night"},
]


class _FakeResponse:
    def __init__(self, content: bytes = b"", status: int = 200):
        self.content = content
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_is_remote():
    assert is_remote("https://example.com/sales.xlsx")
    assert is_remote("HTTP://example.com/sales.xlsx")
    assert not is_remote("/tmp/sales.xlsx")
    assert not is_remote(Path("sales.xlsx"))


def test_read_first_sheet_only(write_workbook):
    path = write_workbook({"Sales": SALES_SHEET, "Notes": [{"note": "ignore me"}]})
    rows = read_raw_rows(path.read_bytes())
    assert list(rows.columns) == list(SALES_SHEET[0])
    assert len(rows) == 2
    assert rows.loc[1, "Sales Amount"] == "$1,200.00"


def test_blank_lines_are_dropped(write_workbook):
    path = write_workbook({"Sales": [SALES_SHEET[0], {}, SALES_SHEET[1]]})
    rows = load_raw_rows(path)
    assert len(rows) == 2


def test_load_missing_file_is_logged_and_empty(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.ERROR, logger="core.data"):
        rows = load_raw_rows(tmp_path / "nope.xlsx")
    assert rows.empty
    assert "Excel load error" in caplog.text


def test_load_undecodable_workbook_is_empty(tmp_path: Path):
    bad = tmp_path / "bad.xlsx"
    bad.write_bytes(b"not a workbook")
    assert load_raw_rows(bad).empty


def test_fetch_remote_workbook(monkeypatch, write_workbook):
    content = write_workbook({"Sales": SALES_SHEET}).read_bytes()
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return _FakeResponse(content)

    monkeypatch.setattr(data_module.requests, "get", fake_get)
    assert fetch_workbook_bytes("https://example.com/sales.xlsx", timeout=5) == content
    assert calls == [("https://example.com/sales.xlsx", 5)]

    rows = load_raw_rows("https://example.com/sales.xlsx")
    assert len(rows) == 2


def test_remote_http_error_is_empty(monkeypatch):
    monkeypatch.setattr(data_module.requests, "get", lambda url, timeout: _FakeResponse(status=404))
    assert load_raw_rows("https://example.com/missing.xlsx").empty


def test_load_dashboard_data_end_to_end(write_workbook):
    path = write_workbook({"Sales": SALES_SHEET})
    ctx = load_dashboard_data(path)

    transactions = ctx["transactions"]
    assert list(transactions.columns) == TRANSACTION_COLUMNS
    assert transactions["sales"].tolist() == [4.5, 1200.0]
    assert transactions["transaction_id"].tolist() == ["101", "102"]
    assert ctx["coffee_options"] == ["All", "Espresso", "Latte"]
    assert ctx["resolved_aliases"]["sales"] == ["Sales Amount"]
    assert ctx["source"] == str(path)


def test_load_dashboard_data_is_cached(write_workbook):
    path = write_workbook({"Sales": SALES_SHEET}, name="cached.xlsx")
    assert load_dashboard_data(path) is load_dashboard_data(str(path))


def test_load_dashboard_data_missing_source(tmp_path: Path, caplog: pytest.LogCaptureFixture):
    with caplog.at_level(logging.WARNING, logger="core.data"):
        ctx = load_dashboard_data(tmp_path / "absent.xlsx")
    assert ctx["transactions"].empty
    assert ctx["coffee_options"] == ["All"]
    assert "not found" in caplog.text


def test_load_dashboard_data_uses_settings(monkeypatch, write_workbook):
    path = write_workbook({"Sales": SALES_SHEET}, name="from_env.xlsx")
    monkeypatch.setenv("COFFEE_SALES_SOURCE", f'"{path}"')
    assert load_dashboard_data()["source"] == str(path)


def test_prepare_context_filters_a_copy(scenario_ctx):
    ctx = prepare_context({"coffee": "Latte"}, scenario_ctx)
    assert ctx["filters"] == DashboardFilters(coffee="Latte")
    assert len(ctx["filtered"]) == 2
    ctx["transactions"].loc[0, "sales"] = 999.0
    assert scenario_ctx["transactions"].loc[0, "sales"] == 5.0


def test_build_data_context_from_frame():
    ctx = build_data_context(pd.DataFrame({"coffee": ["Latte"], "Sales_amount": ["$2"]}))
    assert ctx["transactions"].loc[0, "sales"] == 2.0
    assert ctx["coffee_options"] == ["All", "Latte"]
