import numpy as np
import pandas as pd
import pytest

from poyang.analytics.stats import compute_summary_stats
from poyang.analytics.timeseries import WaterSeries, decomp_to_long


def _long_frame(monthly_df, period=12):
    ws = WaterSeries.from_dataframe(monthly_df)
    frame = ws.decompose_frames(period=period)["poyang"]
    return pd.concat(
        [
            ws.to_long(freq="monthly", source="S2"),
            decomp_to_long(
                frame.drop(columns="observed"),
                aoi_id="poyang",
                var="water_area_km2",
                freq="monthly",
                source="S2",
            ),
        ],
        ignore_index=True,
    )


def test_summary_stats_basic_columns(monthly_df):
    result = compute_summary_stats(_long_frame(monthly_df), var="water_area_km2")
    df = result.to_dataframe()
    assert len(df) == 1
    row = df.iloc[0]
    assert row["Region ID"] == "poyang"
    assert row["Start Date"] == "2020-01"
    assert row["End Date"] == "2021-12"
    assert row["Num Periods"] == 24
    assert row["Missing Periods"] == 0
    assert row["Mean"] == pytest.approx(monthly_df["water_area_km2"].mean())
    assert row["Max"] == pytest.approx(monthly_df["water_area_km2"].max())
    assert row["Seasonal Amplitude"] > 0
    assert not np.isnan(row["Sen's Slope (per yr)"])
    assert not np.isnan(row["Residual RMS"])


def test_summary_stats_peak_month_follows_seasonal_cycle(monthly_df):
    row = compute_summary_stats(_long_frame(monthly_df)).to_dataframe().iloc[0]
    # sin(2*pi*m/12) peaks in April (m=3) and bottoms out in October (m=9)
    assert row["Peak Month"] == "April"
    assert row["Low Month"] == "October"


def test_summary_stats_short_series_skips_seasonal():
    dates = pd.date_range("2024-01-01", periods=3, freq="MS")
    df_long = pd.DataFrame(
        {
            "date": dates,
            "var": "water_area_km2",
            "stat": "raw",
            "value": [1.0, 2.0, 3.0],
            "aoi_id": "A1",
            "freq": "monthly",
            "source": "S2",
        }
    )
    row = compute_summary_stats(df_long).to_dataframe().iloc[0]
    assert row["Num Periods"] == 3
    assert np.isnan(row["Seasonal Amplitude"])
    assert np.isnan(row["Sen's Slope (per yr)"])
    assert row["Peak Month"] is None


def test_summary_stats_reads_csv_and_filters_var(tmp_path, monthly_df):
    long_df = _long_frame(monthly_df)
    other = long_df.assign(var="water_fraction")
    path = tmp_path / "timeseries_long.csv"
    pd.concat([long_df, other]).to_csv(path, index=False)

    result = compute_summary_stats(str(path), var="water_fraction")
    assert len(result.rows) == 1

    out = tmp_path / "summary.csv"
    result.to_csv(str(out))
    assert "Seasonal Amplitude" in pd.read_csv(out).columns


def test_summary_stats_unknown_var_is_empty(monthly_df):
    result = compute_summary_stats(_long_frame(monthly_df), var="nope")
    assert result.rows == []


def test_stats_result_lookup(monthly_df):
    result = compute_summary_stats(_long_frame(monthly_df))
    assert len(result) == 1
    assert result.var == "water_area_km2"
    assert result.for_region("poyang")["Num Periods"] == 24
    with pytest.raises(KeyError):
        result.for_region("missing")
