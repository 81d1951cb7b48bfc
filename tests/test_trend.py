import pandas as pd
import pytest

from poyang.analytics.trend import compute_linear_trend


def test_linear_trend_recovers_slope():
    dates = pd.date_range("2020-01-01", periods=4, freq="YS")
    days = (dates - dates[0]).days
    df = pd.DataFrame(
        {"id": "a", "date": dates, "water_area_km2": 1000 + 2.0 * days}
    )
    result = compute_linear_trend(df, column="water_area_km2").to_dataframe()
    assert list(result.columns) == ["id", "date", "trend", "slope_per_year"]
    assert result["slope_per_year"].iloc[0] == pytest.approx(2.0 * 365.25)
    assert result["trend"].tolist() == pytest.approx(df["water_area_km2"].tolist())


def test_linear_trend_skips_short_regions():
    df = pd.DataFrame(
        {
            "id": ["a", "a", "b"],
            "date": pd.to_datetime(["2020-01-01", "2020-02-01", "2020-01-01"]),
            "water_area_km2": [1.0, 2.0, 3.0],
        }
    )
    result = compute_linear_trend(df).to_dataframe()
    assert set(result["id"]) == {"a"}


def test_linear_trend_empty_result(tmp_path):
    df = pd.DataFrame(
        {
            "id": ["a"],
            "date": pd.to_datetime(["2020-01-01"]),
            "water_area_km2": [1.0],
        }
    )
    result = compute_linear_trend(df)
    assert result.empty
    assert result.slopes().empty
    assert list(result.to_dataframe().columns) == ["id", "date", "trend", "slope_per_year"]
    out = tmp_path / "trend.csv"
    result.to_csv(str(out))
    assert out.exists()


def test_slopes_per_region():
    dates = pd.date_range("2020-01-01", periods=3, freq="YS")
    days = (dates - dates[0]).days
    df = pd.concat(
        [
            pd.DataFrame({"id": "up", "date": dates, "water_area_km2": 1.0 * days}),
            pd.DataFrame({"id": "down", "date": dates, "water_area_km2": -1.0 * days}),
        ]
    )
    slopes = compute_linear_trend(df).slopes()
    assert slopes["up"] == pytest.approx(365.25)
    assert slopes["down"] == pytest.approx(-365.25)
