import pandas as pd
import statsmodels.api as sm

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from .results import TrendResult

logger = Logger.get_logger(__name__)


def compute_linear_trend(
    df: pd.DataFrame,
    column: str = ConfigManager.DEFAULT_VALUE_COL,
    id_col: str = "id",
) -> TrendResult:
    """Fit an OLS line to each region's series and return a :class:`TrendResult`.

    The result has columns ``id, date, trend, slope_per_year``.
    """
    rows = []
    for pid, grp in df.groupby(id_col):
        s = grp.dropna(subset=[column]).sort_values("date")
        if len(s) < 2:
            logger.debug("Skipping linear trend for %s: fewer than 2 points", pid)
            continue
        dates = pd.to_datetime(s["date"])
        X = sm.add_constant(
            dates.map(pd.Timestamp.toordinal).astype(float), has_constant="add"
        )
        y = s[column].astype(float)
        model = sm.OLS(y, X).fit()
        fitted = model.predict(X)
        slope_per_day = float(model.params.iloc[1])
        rows.append(
            pd.DataFrame(
                {
                    "id": pid,
                    "date": dates.values,
                    "trend": fitted.values,
                    "slope_per_year": slope_per_day * 365.25,
                }
            )
        )
    if not rows:
        return TrendResult()
    return TrendResult(pd.concat(rows, ignore_index=True))
