from __future__ import annotations

from typing import Any, Dict, List, Mapping, Sequence

import altair as alt
import pandas as pd

from core.data import TIME_SLOTS

alt.data_transformers.disable_max_rows()

COFFEE_COLORS: Dict[str, str] = {
    "Americano": "#6F4E37",
    "Americano with Milk": "#A67B5B",
    "Cappuccino": "#C4A484",
    "Cocoa": "#D2691E",
    "Cortado": "#C68642",
    "Espresso": "#3E2723",
    "Hot Chocolate": "#8B4513",
    "Latte": "#EED8AE",
}
DEFAULT_COLOR = "#C4A484"


def color_for(coffee_name: str) -> str:
    return COFFEE_COLORS.get(coffee_name, DEFAULT_COLOR)


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def sales_by_time_chart(slot_sales: Sequence[Mapping[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(list(slot_sales), columns=["time_of_day", "sales"])
    return (
        alt.Chart(df)
        .mark_bar(color=DEFAULT_COLOR, cornerRadiusTopLeft=8, cornerRadiusTopRight=8)
        .encode(
            x=alt.X("time_of_day:N", title="Time of Day", sort=list(TIME_SLOTS), axis=alt.Axis(labelAngle=0)),
            y=alt.Y("sales:Q", title="Sales", axis=alt.Axis(format="$~s", gridDash=[4, 4], domain=False, ticks=False)),
            tooltip=[
                alt.Tooltip("time_of_day:N", title="Time of Day"),
                alt.Tooltip("sales:Q", title="Sales", format="$,.2f"),
            ],
        )
        .properties(height=320)
    )


def top_sellers_chart(slot: str, sellers: Sequence[Mapping[str, Any]]) -> alt.Chart:
    df = pd.DataFrame(list(sellers), columns=["name", "total"])
    names: List[str] = [str(n) for n in df["name"].tolist()]
    if names:
        color = alt.Color(
            "name:N",
            scale=alt.Scale(domain=names, range=[color_for(n) for n in names]),
            legend=None,
        )
    else:
        color = alt.value(DEFAULT_COLOR)
    return (
        alt.Chart(df, title=f"{slot}: Top 3 Best Sellers")
        .mark_bar(cornerRadiusTopLeft=8, cornerRadiusTopRight=8)
        .encode(
            x=alt.X("name:N", title="Coffee", sort=None, axis=alt.Axis(labelAngle=0)),
            y=alt.Y("total:Q", title="Total Sales", axis=alt.Axis(format="$~s", gridDash=[4, 4], domain=False, ticks=False)),
            color=color,
            tooltip=[
                alt.Tooltip("name:N", title="Coffee"),
                alt.Tooltip("total:Q", title="Total Sales", format="$,.2f"),
            ],
        )
        .properties(height=240)
    )
