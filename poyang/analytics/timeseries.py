"""
Module `analytics.timeseries` provides the WaterSeries class, which wraps
a pandas DataFrame of monthly water-extent observations per region and
supports aggregation, gap filling and seasonal decomposition.
"""

from dataclasses import dataclass
from typing import Dict, Literal

import pandas as pd

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from .decomposition import DecompositionResult, decompose

log = Logger.get_logger(__name__)


@dataclass
class WaterSeries:
    """Pandas DataFrame wrapper for one water-extent variable per region."""

    df: pd.DataFrame
    value_col: str = ConfigManager.DEFAULT_VALUE_COL

    @classmethod
    def from_dataframe(
        cls, df: pd.DataFrame, value_col: str = ConfigManager.DEFAULT_VALUE_COL
    ) -> "WaterSeries":
        """
        Create a WaterSeries from a DataFrame with columns ['id', 'date', value_col].
        Ensures 'date' column is parsed as datetime. A missing 'id' column is
        filled with the default region name.
        """
        missing = {"date", value_col} - set(df.columns)
        if missing:
            raise ValueError(f"DataFrame is missing columns: {sorted(missing)}")
        df_copy = df.copy()
        if "id" not in df_copy.columns:
            df_copy["id"] = ConfigManager.DEFAULT_REGION_NAME
        df_copy["date"] = pd.to_datetime(df_copy["date"])
        return cls(df_copy, value_col)

    @property
    def ids(self) -> list:
        return list(pd.unique(self.df["id"]))

    def aggregate(self, freq: Literal["MS", "YS"]) -> "WaterSeries":
        """
        Aggregate the series to the given frequency:
          'MS' = monthly mean (month start), 'YS' = yearly mean (year start).
        Returns a new WaterSeries.
        """
        log.debug("Aggregating WaterSeries to freq %s", freq)
        df_indexed = self.df.set_index(["id", "date"])
        aggregated = (
            df_indexed[self.value_col]
            .groupby(level=0)
            .resample(freq, level=1)
            .mean()
            .reset_index()
        )
        return WaterSeries(aggregated, self.value_col)

    def monthly(self, pid) -> pd.Series:
        """Return the values for *pid* reindexed to contiguous month starts.

        Months without an observation appear as NaN.
        """
        grp = self.df[self.df["id"] == pid]
        if grp.empty:
            raise KeyError(pid)
        series = grp.set_index("date")[self.value_col]
        series.index = series.index.to_period("M").to_timestamp()
        series = series.groupby(level=0).mean().sort_index()
        full = pd.date_range(series.index.min(), series.index.max(), freq="MS")
        return series.reindex(full)

    def fill_gaps(self, method: Literal["linear", "time"] = "time") -> "WaterSeries":
        """Reindex each region to contiguous months and interpolate missing values."""

        filled_parts = []
        for pid in self.ids:
            series = self.monthly(pid)
            original_missing = series.isna()
            filled = series.interpolate(method=method).ffill().bfill()
            part = pd.DataFrame(
                {
                    "id": pid,
                    "date": filled.index,
                    self.value_col: filled.values,
                    "gapfilled": original_missing.values,
                }
            )
            filled_parts.append(part)

        filled_df = pd.concat(filled_parts, ignore_index=True)
        return WaterSeries(filled_df, self.value_col)

    def decompose(
        self, period: int = ConfigManager.DEFAULT_PERIOD
    ) -> Dict[str, DecompositionResult]:
        """Decompose each region's contiguous monthly series.

        Missing months are not filled here; call :meth:`fill_gaps` first or
        the NaN values propagate into the components.
        """
        log.debug("Decomposing WaterSeries with period %s", period)
        results: Dict[str, DecompositionResult] = {}
        for pid in self.ids:
            series = self.monthly(pid)
            if series.isna().all():
                log.warning("Skipping decomposition for %s: no observations", pid)
                continue
            if series.isna().any():
                log.warning(
                    "%d missing month(s) for %s; components will contain NaN",
                    int(series.isna().sum()),
                    pid,
                )
            results[pid] = decompose(series.to_numpy(), period)
        return results

    def decompose_frames(
        self, period: int = ConfigManager.DEFAULT_PERIOD
    ) -> Dict[str, pd.DataFrame]:
        """Like :meth:`decompose` but return dated component DataFrames."""
        return {
            pid: res.to_frame(self.monthly(pid).index)
            for pid, res in self.decompose(period).items()
        }

    def to_csv(self, path: str) -> None:
        """Write the underlying DataFrame to CSV."""

        self.df.to_csv(path, index=False)

    def to_long(self, *, freq: str, source: str) -> pd.DataFrame:
        """Return the series in the ``TimeseriesLong`` format.

        Parameters
        ----------
        freq:
            Frequency label (e.g., ``"monthly"``).
        source:
            Data source identifier (e.g., ``"S2"``).

        Returns
        -------
        pandas.DataFrame
            DataFrame with columns ``date, var, stat, value, aoi_id, freq, source``.
        """

        df_long = self.df.rename(
            columns={"id": "aoi_id", self.value_col: "value"}
        ).assign(var=self.value_col, stat="raw", freq=freq, source=source)
        df_long["aoi_id"] = df_long["aoi_id"].astype(str)
        return df_long[["date", "var", "stat", "value", "aoi_id", "freq", "source"]]


def decomp_to_long(
    df: pd.DataFrame,
    *,
    aoi_id: str,
    var: str,
    freq: str,
    source: str,
) -> pd.DataFrame:
    """Convert decomposition components to ``TimeseriesLong`` format.

    Parameters
    ----------
    df:
        DataFrame with columns ``['date', 'observed', 'trend', 'seasonal', 'resid']``.
    aoi_id:
        Identifier of the region or grid tile.
    var:
        Variable name (e.g., ``"water_area_km2"``).
    freq:
        Frequency label (e.g., ``"monthly"``).
    source:
        Data source identifier.

    Returns
    -------
    pandas.DataFrame
        DataFrame with columns ``date, var, stat, value, aoi_id, freq, source``.
    """

    long_df = df.melt(id_vars="date", var_name="stat", value_name="value")
    long_df["stat"] = long_df["stat"].map(
        {
            "observed": "raw",
            "trend": "trend",
            "seasonal": "seasonal",
            "resid": "anomaly",
        }
    )
    long_df["var"] = var
    long_df["aoi_id"] = aoi_id
    long_df["freq"] = freq
    long_df["source"] = source
    return long_df[["date", "var", "stat", "value", "aoi_id", "freq", "source"]]
