"""Containers returned by :mod:`analytics.trend` and :mod:`analytics.stats`."""

from __future__ import annotations

from dataclasses import dataclass, field

import pandas as pd

TREND_COLUMNS = ["id", "date", "trend", "slope_per_year"]


@dataclass
class TrendResult:
    """Fitted OLS line per region, one row per observation date."""

    df: pd.DataFrame = field(default_factory=lambda: pd.DataFrame(columns=TREND_COLUMNS))

    @property
    def empty(self) -> bool:
        return self.df.empty

    def slopes(self) -> pd.Series:
        """Slope in value units per year, indexed by region id."""
        if self.df.empty:
            return pd.Series(dtype=float, name="slope_per_year")
        return self.df.groupby("id")["slope_per_year"].first()

    def to_dataframe(self) -> pd.DataFrame:
        return self.df.copy()

    def to_csv(self, path: str) -> None:
        self.df.to_csv(path, index=False)


@dataclass
class StatsResult:
    """Summary statistics of one variable, one row per region."""

    rows: list[dict] = field(default_factory=list)
    var: str | None = None

    def __len__(self) -> int:
        return len(self.rows)

    def for_region(self, region_id) -> dict:
        """Return the row of *region_id* (compared as strings)."""
        for row in self.rows:
            if row["Region ID"] == str(region_id):
                return row
        raise KeyError(region_id)

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows)

    def to_csv(self, path: str) -> None:
        self.to_dataframe().to_csv(path, index=False)
