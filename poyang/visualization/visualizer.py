from __future__ import annotations

import os

import matplotlib.pyplot as plt
import pandas as pd
import plotly.express as px

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger

COMPONENTS = ("observed", "trend", "seasonal", "resid")


class Visualizer:
    """Utility class for all visualization helpers."""

    def __init__(self, logger=None) -> None:
        self.logger = logger or Logger.get_logger(__name__)

    # ------------------------------------------------------------------
    # Time-series plotting
    # ------------------------------------------------------------------
    def plot_timeseries_html(
        self,
        df: pd.DataFrame,
        value_col: str = ConfigManager.DEFAULT_VALUE_COL,
        output_path: str = "water_timeseries.html",
        title: str = "Poyang Lake water extent",
    ) -> None:
        """Create an interactive HTML time-series plot, one line per region."""

        fig = px.line(
            df,
            x="date",
            y=value_col,
            color="id",
            title=title,
            labels={value_col: value_col, "date": "Date", "id": "Region"},
            markers=True,
        )

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        fig.write_html(output_path, include_plotlyjs="cdn")
        self.logger.debug("Interactive plot written to %s", output_path)

    def plot_decomposition(
        self,
        frame: pd.DataFrame,
        output_path: str,
        title: str | None = None,
    ) -> None:
        """Save decomposition components as a four-panel PNG.

        *frame* needs ``date`` and the ``observed, trend, seasonal, resid`` columns.
        """

        fig, axes = plt.subplots(len(COMPONENTS), 1, figsize=(10, 8), sharex=True)
        for ax, component in zip(axes, COMPONENTS):
            if component == "resid":
                ax.scatter(frame["date"], frame[component], s=10)
                ax.axhline(0, color="grey", linewidth=0.8)
            else:
                ax.plot(frame["date"], frame[component])
            ax.set_ylabel(component.capitalize())
            ax.grid(True)
        if title:
            axes[0].set_title(title)
        axes[-1].set_xlabel("Date")

        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        fig.tight_layout()
        fig.savefig(output_path)
        plt.close(fig)
