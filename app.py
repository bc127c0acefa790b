import altair as alt
import pandas as pd
import streamlit as st
from contextlib import contextmanager
from typing import Optional

from core.charts import sales_by_time_chart, top_sellers_chart
from core.data import TIME_SLOTS, format_currency_columns, load_dashboard_data, prepare_context
from core.filters import DashboardFilters, MONTH_FIRST, MONTH_LAST, with_coffee, with_month_max, with_month_min
from core.metrics_debug import compute_debug
from core.metrics_overview import compute_overview
from core.settings import configure_logging

alt.data_transformers.disable_max_rows()
configure_logging()


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #78350f;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #fef3c7;border: 1px solid #fde68a;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #78350f;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(filters: DashboardFilters) -> str:
    chips = [f"Coffee: {filters.coffee}", f"Months: {filters.month_min}–{filters.month_max}"]
    return "".join([f"<span class='chip'>{txt}</span>" for txt in chips])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


# ---------- Filter state ----------
def _current_filters() -> DashboardFilters:
    return st.session_state["filters"]


def _on_coffee_change():
    st.session_state["filters"] = with_coffee(_current_filters(), st.session_state["coffee"])


def _on_month_start_change():
    st.session_state["filters"] = with_month_min(_current_filters(), st.session_state["month_start"])
    st.session_state["month_start"] = _current_filters().month_min


def _on_month_end_change():
    st.session_state["filters"] = with_month_max(_current_filters(), st.session_state["month_end"])
    st.session_state["month_end"] = _current_filters().month_max


def init_filter_state(coffee_options):
    if "filters" not in st.session_state:
        st.session_state["filters"] = DashboardFilters()
    filters = _current_filters()
    if filters.coffee not in coffee_options:
        st.session_state["filters"] = with_coffee(filters, None)
    st.session_state.setdefault("coffee", _current_filters().coffee)
    st.session_state.setdefault("month_start", _current_filters().month_min)
    st.session_state.setdefault("month_end", _current_filters().month_max)
    if st.session_state["coffee"] not in coffee_options:
        st.session_state["coffee"] = _current_filters().coffee


# ---------- UI setup ----------
st.set_page_config(page_title="Coffee Sales Dashboard", layout="wide")
inject_base_styles()
st.title("Coffee Behavior Clustering")
st.caption("Sales KPIs, time-of-day breakdown and best sellers for the selected coffee and months.")

data_ctx = load_dashboard_data()
coffee_options = data_ctx.get("coffee_options", ["All"])
if data_ctx.get("transactions", pd.DataFrame()).empty:
    st.info(f"No sales rows loaded from {data_ctx.get('source') or 'the configured workbook'}. Showing empty results.")

init_filter_state(coffee_options)

# ----- Sidebar: navigation + filters -----
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Dashboard", "Data Quality"], index=0)

    st.markdown("---")
    st.markdown("### Filters")
    st.selectbox("Coffee Name", options=coffee_options, key="coffee", on_change=_on_coffee_change)
    st.markdown("**Month Range**")
    st.slider("Start", min_value=MONTH_FIRST, max_value=MONTH_LAST, step=1, key="month_start", on_change=_on_month_start_change)
    st.slider("End", min_value=MONTH_FIRST, max_value=MONTH_LAST, step=1, key="month_end", on_change=_on_month_end_change)
    st.caption(f"From {_current_filters().month_min} to {_current_filters().month_max}")

filters = _current_filters()
ctx = prepare_context(filters, data_ctx)
filtered = ctx["filtered"]


# ----- Page renderers -----
def render_kpi_tiles(payload):
    display = payload["kpis_display"]
    cols = st.columns(4)
    cols[0].metric("Total Sales", display["total_sales"])
    cols[1].metric("Total Transactions", display["total_transactions"], help="Distinct transaction ids.")
    cols[2].metric("Avg Sales Value", display["avg_value"], help="Total sales / distinct transactions.")
    cols[3].metric("Peak Time of Day", display["peak_time_of_day"])


def render_dashboard_page():
    render_page_header("Dashboard", "Home / Dashboard", format_filter_summary(filters), export_df=filtered, export_name="coffee_sales_filtered.csv")
    payload = compute_overview(filters, ctx)

    with card("KPI Tiles"):
        render_kpi_tiles(payload)

    with card("Sales by Time of Day"):
        st.altair_chart(sales_by_time_chart(payload["sales_by_time"]), use_container_width=True)

    left, right = st.columns(2)
    with left:
        with card("Top 3 Coffee Sales (Filtered)"):
            top = pd.DataFrame(payload["top_overall"], columns=["name", "total"])
            top = format_currency_columns(top, ["total"]).rename(columns={"name": "Coffee Name", "total": "Total Sales"})
            st.dataframe(top, use_container_width=True, hide_index=True)
    with right:
        with card("Time-of-Day Metrics"):
            metrics = pd.DataFrame(payload["time_slot_metrics"])
            metrics = format_currency_columns(metrics, ["sales", "avg_value"]).rename(
                columns={"time_of_day": "Time of Day", "sales": "Sales", "transactions": "Transactions", "avg_value": "Avg / Txn"}
            )
            st.dataframe(metrics, use_container_width=True, hide_index=True)

    slot_cols = st.columns(len(TIME_SLOTS))
    for slot, col in zip(TIME_SLOTS, slot_cols):
        with col:
            with card(f"{slot}: Top 3 Best Sellers"):
                sellers = payload["top_by_slot"].get(slot, [])
                if not sellers:
                    st.info("No sales in this time slot.")
                else:
                    st.altair_chart(top_sellers_chart(slot, sellers), use_container_width=True)

    st.caption("All visuals react to filters in real time.")


def render_debug_page():
    render_page_header("Data Quality", "Home / Data Quality", format_filter_summary(filters))
    payload = compute_debug(filters, ctx)
    with card("Data Quality"):
        st.markdown(f"**Source**: `{payload['source']}`")
        st.markdown("**Row counts**")
        st.write(payload["row_counts"])
        st.markdown("**Cleaning checks**")
        st.write(payload["quality_checks"])
        if payload["quality_checks"]["missing_month_rows"]:
            st.warning("Rows without a usable month are excluded from every month range.")
        st.markdown("**Resolved columns**")
        st.write(payload["resolved_aliases"])
        if payload["unrecognized_time_of_day"]:
            st.markdown("**Unrecognized time-of-day labels**")
            st.dataframe(pd.DataFrame(payload["unrecognized_time_of_day"]), hide_index=True)
    st.caption("Replacing the workbook refreshes the dashboard on the next rerun.")


if nav_choice == "Dashboard":
    render_dashboard_page()
else:
    render_debug_page()
