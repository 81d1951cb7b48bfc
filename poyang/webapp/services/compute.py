"""Compute service for the dashboard.

Wraps the Earth Engine series download, gap filling, decomposition and
summary statistics behind :class:`WaterComputeService` so the Streamlit page
only deals with DataFrames and tile URLs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

import pandas as pd

from poyang.analytics.stats import compute_summary_stats
from poyang.analytics.timeseries import WaterSeries, decomp_to_long
from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from poyang.geo.region import Region
from poyang.services.layers import build_map_layers
from poyang.services.water_timeseries import download_water_timeseries

SOURCE = "S2"


@dataclass
class WaterAnalysis:
    """Everything the dashboard renders for one run."""

    series: pd.DataFrame
    decomposition: pd.DataFrame
    summary: pd.DataFrame
    layers: dict[str, str] = field(default_factory=dict)


class WaterComputeService:
    """Run the water-extent analysis with injected data sources."""

    def __init__(
        self,
        config: ConfigManager | None = None,
        timeseries_fn: Callable[..., pd.DataFrame] = download_water_timeseries,
        layers_fn: Callable[..., dict[str, str]] = build_map_layers,
        logger=None,
    ) -> None:
        self.config = config or ConfigManager()
        self.timeseries_fn = timeseries_fn
        self.layers_fn = layers_fn
        self.logger = logger or Logger.get_logger(__name__)

    def compute(
        self,
        region: Region,
        start_year: int,
        end_year: int,
        *,
        progress: Callable[[float], None] | None = None,
    ) -> WaterAnalysis:
        """Download, gap-fill and decompose the monthly water series for *region*."""

        def _progress(frac: float) -> None:
            if progress is not None:
                progress(frac)

        value_col = self.config.get("value_col", ConfigManager.DEFAULT_VALUE_COL)
        period = int(self.config.get("period", ConfigManager.DEFAULT_PERIOD))

        _progress(0.0)
        raw = self.timeseries_fn(
            region=region,
            start_year=start_year,
            end_year=end_year,
            config=self.config,
            logger=self.logger,
        )
        _progress(0.5)

        ws = WaterSeries.from_dataframe(raw, value_col=value_col).fill_gaps()
        frames = ws.decompose_frames(period=period)
        decomposition = (
            pd.concat(
                [frame.assign(id=pid) for pid, frame in frames.items()],
                ignore_index=True,
            )
            if frames
            else pd.DataFrame(
                columns=["date", "observed", "trend", "seasonal", "resid", "id"]
            )
        )

        long_parts = [ws.to_long(freq="monthly", source=SOURCE)]
        long_parts += [
            decomp_to_long(
                frame.drop(columns="observed"),
                aoi_id=str(pid),
                var=value_col,
                freq="monthly",
                source=SOURCE,
            )
            for pid, frame in frames.items()
        ]
        summary = compute_summary_stats(
            pd.concat(long_parts, ignore_index=True), var=value_col, period=period
        ).to_dataframe()
        _progress(0.8)

        layers = self.layers_fn(
            region=region,
            start_year=start_year,
            end_year=end_year,
            config=self.config,
            logger=self.logger,
        )
        _progress(1.0)
        self.logger.info(
            "Analysis finished for %s: %d months, %d region(s)",
            region.name,
            len(ws.df),
            len(frames),
        )
        return WaterAnalysis(
            series=ws.df,
            decomposition=decomposition,
            summary=summary,
            layers=layers,
        )
