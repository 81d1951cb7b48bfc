"""
Module `analytics.decomposition` implements the additive seasonal
decomposition used for monthly water-extent series.

The trend is a centred moving average whose window shrinks at the series
boundaries, the seasonal component is the per-phase mean deviation from the
trend, and the residual is what remains. Non-finite observations are not
masked: they flow into every output position whose window or phase includes
them.
"""

from __future__ import annotations

from dataclasses import dataclass
from numbers import Integral
from typing import Sequence

import numpy as np
import pandas as pd


class InvalidInput(ValueError):
    """Raised when a series or period cannot be decomposed."""


@dataclass
class DecompositionResult:
    """Additive decomposition of a single series."""

    observed: np.ndarray
    trend: np.ndarray
    seasonal: np.ndarray
    resid: np.ndarray
    period: int

    def __len__(self) -> int:
        return len(self.observed)

    def to_frame(self, dates: Sequence | pd.Index | None = None) -> pd.DataFrame:
        """Return the components as a DataFrame.

        Columns are ``date, observed, trend, seasonal, resid``. When *dates* is
        omitted the ``date`` column holds the positional index.
        """
        if dates is None:
            dates = range(len(self.observed))
        if len(dates) != len(self.observed):
            raise InvalidInput(
                f"Got {len(dates)} dates for a series of length {len(self.observed)}"
            )
        return pd.DataFrame(
            {
                "date": list(dates),
                "observed": self.observed,
                "trend": self.trend,
                "seasonal": self.seasonal,
                "resid": self.resid,
            }
        )


def _as_array(series) -> np.ndarray:
    arr = np.asarray(series, dtype=float)
    if arr.ndim != 1:
        raise InvalidInput(f"Series must be one-dimensional, got shape {arr.shape}")
    if arr.size == 0:
        raise InvalidInput("Series is empty")
    return arr


def _check_positive_int(value, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise InvalidInput(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidInput(f"{name} must be positive, got {value}")
    return int(value)


def compute_trend(series, window_size: int) -> np.ndarray:
    """Centred moving average with a boundary-shrunk window.

    ``trend[i]`` is the mean of ``series[max(0, i - h) : min(N - 1, i + h) + 1]``
    where ``h = window_size // 2``.
    """
    values = _as_array(series)
    window_size = _check_positive_int(window_size, "window_size")
    half = window_size // 2
    n = len(values)
    trend = np.empty(n, dtype=float)
    for i in range(n):
        lo = max(0, i - half)
        hi = min(n - 1, i + half)
        trend[i] = values[lo : hi + 1].mean()
    return trend


def compute_seasonal(series, trend, period: int) -> np.ndarray:
    """Repeat the per-phase mean of ``series - trend`` with the given period.

    Phases that occur fewer times (when the length is not a multiple of
    *period*) are averaged over fewer samples, without weighting.
    """
    values = _as_array(series)
    trend_arr = _as_array(trend)
    period = _check_positive_int(period, "period")
    if len(values) != len(trend_arr):
        raise InvalidInput(
            f"Series and trend lengths differ: {len(values)} != {len(trend_arr)}"
        )
    deviations = values - trend_arr
    n = len(values)
    # phases beyond the series length never appear in the output
    phase_means = np.array(
        [deviations[p::period].mean() for p in range(min(period, n))], dtype=float
    )
    return phase_means[np.arange(n) % period]


def compute_residual(series, trend, seasonal) -> np.ndarray:
    """Pointwise ``series - trend - seasonal``."""
    values = _as_array(series)
    trend_arr = _as_array(trend)
    seasonal_arr = _as_array(seasonal)
    if not len(values) == len(trend_arr) == len(seasonal_arr):
        raise InvalidInput(
            "Series, trend and seasonal lengths differ: "
            f"{len(values)}, {len(trend_arr)}, {len(seasonal_arr)}"
        )
    return values - trend_arr - seasonal_arr


def decompose(series, period: int) -> DecompositionResult:
    """Split *series* into trend, seasonal and residual components.

    The trend window equals *period* (one full cycle).

    Raises:
        InvalidInput: if *series* is empty or *period* is not a positive integer.
    """
    values = _as_array(series)
    period = _check_positive_int(period, "period")
    trend = compute_trend(values, period)
    seasonal = compute_seasonal(values, trend, period)
    resid = compute_residual(values, trend, seasonal)
    return DecompositionResult(
        observed=values,
        trend=trend,
        seasonal=seasonal,
        resid=resid,
        period=period,
    )
