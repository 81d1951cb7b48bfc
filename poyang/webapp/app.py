from __future__ import annotations

__doc__ = "Streamlit dashboard for the Poyang Lake seasonal water extent."

import logging
from pathlib import Path
from typing import cast

import streamlit as st
from ee import EEException

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from poyang.geo.region import Region
from poyang.webapp.components.charts import (
    component_chart,
    decomposition_chart,
    water_area_chart,
)
from poyang.webapp.components.map_widget import display_map
from poyang.webapp.services.compute import WaterAnalysis, WaterComputeService

# -------------------------------------------------------------------

logger = Logger.get_logger(__name__)

CONFIG = ConfigManager(
    str(Path(__file__).resolve().parents[1] / "resources" / "webapp.toml")
)
_years = CONFIG.get("years", {})
REGION = Region.from_config(CONFIG)
VALUE_COL = CONFIG.get("value_col")

compute_service = WaterComputeService(CONFIG)


def run_analysis(region: Region, start_year: int, end_year: int) -> WaterAnalysis:
    """Run the analysis with a progress bar and a status panel."""

    progress_bar = st.progress(0.0, text="Running analysis...")

    def update_progress(frac: float) -> None:
        progress_bar.progress(frac, text="Running analysis...")

    with st.status("Computing monthly water coverage...", expanded=False) as status:
        analysis = compute_service.compute(
            region, start_year, end_year, progress=update_progress
        )
        status.update(label="Analysis complete", state="complete")
    progress_bar.empty()
    return analysis


def render_results(analysis: WaterAnalysis, start_year: int, end_year: int) -> None:
    """Draw map, charts and summary for a finished analysis."""

    display_map(
        REGION,
        analysis.layers,
        zoom=int(CONFIG.get("map_zoom")),
        opacity=float(CONFIG.get("layer_opacity")),
    )
    st.markdown("---")
    water_area_chart(
        analysis.series, VALUE_COL, start_year=start_year, end_year=end_year
    )
    tab_decomp, tab_trend, tab_season, tab_resid = st.tabs(
        ["Decomposition", "Trend", "Seasonal", "Residual"]
    )
    with tab_decomp:
        for region_id, grp in analysis.decomposition.groupby("id"):
            st.caption(str(region_id))
            decomposition_chart(grp, start_year=start_year, end_year=end_year)
    with tab_trend:
        component_chart(
            analysis.decomposition, "trend", start_year=start_year, end_year=end_year
        )
    with tab_season:
        component_chart(
            analysis.decomposition,
            "seasonal",
            start_year=start_year,
            end_year=end_year,
        )
    with tab_resid:
        component_chart(
            analysis.decomposition, "resid", start_year=start_year, end_year=end_year
        )
    st.dataframe(analysis.summary)


# ---- Page config -----------------------------------------------------------

st.set_page_config(page_title="Poyang Lake water extent", layout="wide")
st.title("Poyang Lake seasonal water extent")


# ---- Dev log pane ---------------------------------------------------------
class StreamlitHandler(logging.Handler):
    """Stream logging records to a Streamlit code block."""

    def __init__(self, container: st.delta_generator.DeltaGenerator) -> None:
        super().__init__()
        self.container = container
        self.lines: list[str] = []

    def emit(self, record: logging.LogRecord) -> None:  # pragma: no cover - UI
        self.lines.append(self.format(record))
        self.container.code("\n".join(self.lines))


# ---- Sidebar ---------------------------------------------------------------
st.sidebar.header("Analysis")

default_start, default_end = CONFIG.get_year_range()
start_year, end_year = st.sidebar.slider(
    "Years",
    int(_years.get("min", default_start)),
    int(_years.get("max", default_end)),
    value=(default_start, default_end),
)

if st.sidebar.button(
    "Run analysis",
    help="Compute monthly water coverage on Earth Engine and decompose it.",
):
    try:
        st.session_state["results"] = {
            "analysis": run_analysis(REGION, start_year, end_year),
            "years": (start_year, end_year),
        }
    except EEException as exc:
        logger.error("Earth Engine request failed", exc_info=True)
        if "not logged in" in str(exc).lower() or "credentials" in str(exc).lower():
            st.error(
                "Earth Engine authentication required: run `earthengine authenticate` "
                "or set EARTHENGINE_TOKEN, then reload."
            )
        else:
            st.error(f"Processing error: {exc}")
    except (RuntimeError, ValueError) as exc:
        logger.error("Analysis failed", exc_info=True)
        st.error(f"Processing error: {exc}")

show_log = st.sidebar.checkbox("Show log pane")
root_logger = logging.getLogger()
existing_handler = cast(logging.Handler | None, st.session_state.get("log_handler"))
if show_log:
    log_container = st.empty()
    if existing_handler:
        root_logger.removeHandler(existing_handler)
    handler = StreamlitHandler(log_container)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root_logger.addHandler(handler)
    st.session_state["log_handler"] = handler
elif existing_handler:
    root_logger.removeHandler(existing_handler)
    st.session_state.pop("log_handler")


# ---- Main canvas -----------------------------------------------------------
results = st.session_state.get("results")
if results is None:
    st.info("Choose a year range, then press **Run analysis**.")
else:
    run_start, run_end = results["years"]
    if (run_start, run_end) != (start_year, end_year):
        st.caption(
            f"Showing results for {run_start}-{run_end}; press Run analysis to refresh."
        )
    render_results(results["analysis"], run_start, run_end)

# ---- Footer ---------------------------------------------------------------
st.markdown(
    "<small>Data sources: Copernicus Sentinel-2 via Google Earth Engine</small>",
    unsafe_allow_html=True,
)
