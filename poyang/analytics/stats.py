# poyang/analytics/stats.py

from typing import IO

import numpy as np
import pandas as pd
from scipy.stats import kendalltau, theilslopes

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from .results import StatsResult


logger = Logger.get_logger(__name__)


def _load_long(source: str | IO[bytes] | pd.DataFrame) -> pd.DataFrame:
    if isinstance(source, pd.DataFrame):
        df = source.copy()
    else:
        logger.info("Loading %s for summary statistics", source)
        df = pd.read_csv(source, parse_dates=["date"])
    if not pd.api.types.is_datetime64_any_dtype(df["date"]):
        df["date"] = pd.to_datetime(df["date"])
    df["aoi_id"] = df["aoi_id"].astype(str)
    return df


def _component(grp: pd.DataFrame, stat: str) -> pd.Series:
    return grp[grp["stat"] == stat].set_index("date")["value"].dropna().sort_index()


def _trend_stats(trend: pd.Series) -> dict:
    """Sen's slope per year, Mann-Kendall p-value and net change of the trend."""
    if len(trend) < 2:
        return {
            "Sen's Slope (per yr)": np.nan,
            "Trend Change": np.nan,
            "Mann-Kendall p-value": np.nan,
        }
    years = (trend.index - trend.index[0]).days / 365.25
    slope = theilslopes(trend.values, years)[0]
    p_value = kendalltau(years, trend.values)[1]
    return {
        "Sen's Slope (per yr)": slope,
        "Trend Change": trend.iloc[-1] - trend.iloc[0],
        "Mann-Kendall p-value": p_value,
    }


def _seasonal_stats(
    seasonal: pd.Series, resid: pd.Series, period: int | None
) -> dict:
    """Amplitude and peak/low calendar month of the seasonal cycle, residual RMS."""
    out: dict = {
        "Seasonal Amplitude": np.nan,
        "Peak Month": None,
        "Low Month": None,
        "Residual RMS": np.nan,
    }
    if period is None:
        return out
    if len(seasonal) >= period:
        out["Seasonal Amplitude"] = seasonal.max() - seasonal.min()
        out["Peak Month"] = seasonal.idxmax().strftime("%B")
        out["Low Month"] = seasonal.idxmin().strftime("%B")
    if len(resid) >= period:
        out["Residual RMS"] = float(np.sqrt((resid**2).mean()))
    return out


def compute_summary_stats(
    timeseries_csv: str | IO[bytes] | pd.DataFrame,
    *,
    var: str = ConfigManager.DEFAULT_VALUE_COL,
    period: int | None = ConfigManager.DEFAULT_PERIOD,
) -> StatsResult:
    """Build per-region summary stats from a ``TimeseriesLong`` dataset.

    Seasonal statistics need at least one full *period* of seasonal values;
    trend statistics need at least two trend points.
    """

    df = _load_long(timeseries_csv)
    df = df[df["var"] == var]
    rows: list[dict[str, float | int | str | None]] = []

    for aid, grp in df.groupby("aoi_id"):
        raw = grp[grp["stat"] == "raw"].sort_values("date")
        if raw.empty:
            continue
        values = raw["value"]
        row: dict[str, float | int | str | None] = {
            "Region ID": aid,
            "Start Date": raw["date"].iloc[0].strftime("%Y-%m"),
            "End Date": raw["date"].iloc[-1].strftime("%Y-%m"),
            "Num Periods": len(raw),
            "Missing Periods": int(values.isna().sum()),
            "Mean": values.mean(),
            "Median": values.median(),
            "Min": values.min(),
            "Max": values.max(),
            "Std": values.std(),
        }
        row.update(_trend_stats(_component(grp, "trend")))
        row.update(
            _seasonal_stats(
                _component(grp, "seasonal"), _component(grp, "anomaly"), period
            )
        )
        rows.append(row)

    if not rows:
        logger.warning("No summary rows produced for variable %s", var)
    return StatsResult(rows, var=var)
