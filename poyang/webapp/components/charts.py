"""Plotting helpers for the dashboard chart tabs."""

from __future__ import annotations

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from poyang.core.config import ConfigManager

COMPONENT_LABELS = {
    "observed": "Observed",
    "trend": "Trend",
    "seasonal": "Seasonal",
    "resid": "Residual",
}


def _clip_years(
    df: pd.DataFrame, start_year: int | None, end_year: int | None
) -> pd.DataFrame:
    if start_year is not None and end_year is not None:
        mask = (df["date"].dt.year >= start_year) & (df["date"].dt.year <= end_year)
        return df.loc[mask]
    return df


def water_area_chart(
    data: pd.DataFrame,
    value_col: str = ConfigManager.DEFAULT_VALUE_COL,
    *,
    start_year: int | None = None,
    end_year: int | None = None,
    title: str = "Poyang Lake seasonal water extent",
) -> go.Figure:
    """Render the observed monthly water series, one line per region."""

    df = _clip_years(data, start_year, end_year)
    fig = go.Figure()
    for region_id, grp in df.groupby("id"):
        fig.add_trace(
            go.Scatter(
                x=grp["date"],
                y=grp[value_col],
                name=str(region_id),
                mode="lines+markers",
            )
        )
    fig.update_layout(
        title=title,
        xaxis_title="Date",
        yaxis_title=value_col,
        margin=dict(l=0, r=0, t=40, b=0),
    )
    key = f"water_area_{hash(tuple(sorted(map(str, df['id'].unique()))))}"
    st.plotly_chart(fig, use_container_width=True, key=key)
    return fig


def decomposition_chart(
    data: pd.DataFrame,
    *,
    start_year: int | None = None,
    end_year: int | None = None,
) -> go.Figure:
    """Render observed, trend and seasonal curves of a single region.

    Parameters
    ----------
    data:
        DataFrame with ``date, observed, trend, seasonal`` columns.
    start_year, end_year:
        Optional range used to clip the series and set the x-axis limits.
    """

    df = _clip_years(data, start_year, end_year)
    fig = go.Figure()
    for component in ("observed", "trend", "seasonal"):
        fig.add_trace(
            go.Scatter(x=df["date"], y=df[component], name=COMPONENT_LABELS[component])
        )
    if start_year is not None and end_year is not None:
        fig.update_xaxes(
            range=[
                pd.Timestamp(f"{start_year}-01-01"),
                pd.Timestamp(f"{end_year}-12-31"),
            ]
        )
    fig.update_layout(margin=dict(l=0, r=0, t=10, b=0))
    st.plotly_chart(fig, use_container_width=True, key=f"decomp_{id(data)}")
    return fig


def component_chart(
    data: pd.DataFrame,
    component: str,
    *,
    start_year: int | None = None,
    end_year: int | None = None,
) -> go.Figure:
    """Plot a single decomposition ``component`` for all regions."""

    if component not in COMPONENT_LABELS:
        raise ValueError(
            f"Unknown component '{component}'. Choose from: {list(COMPONENT_LABELS)}"
        )
    df = _clip_years(data.copy(), start_year, end_year)

    fig = go.Figure()
    for region_id, grp in df.groupby("id"):
        if component == "resid":
            trace = go.Bar(x=grp["date"], y=grp[component], name=str(region_id))
        else:
            trace = go.Scatter(x=grp["date"], y=grp[component], name=str(region_id))
        fig.add_trace(trace)

    fig.update_layout(
        yaxis_title=COMPONENT_LABELS[component],
        margin=dict(l=0, r=0, t=10, b=0),
    )
    key = f"water_{component}_{hash(tuple(sorted(map(str, df['id'].unique()))))}"
    st.plotly_chart(fig, use_container_width=True, key=key)
    return fig
