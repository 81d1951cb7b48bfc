import json

import pandas as pd
import pytest
from click.testing import CliRunner

from poyang.core import cli as cli_mod
from poyang.core.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_decompose_writes_components_and_long(tmp_path, runner, monthly_csv):
    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli,
        ["stats", "decompose", str(monthly_csv), "--output-dir", str(out_dir), "--no-plot"],
    )
    assert result.exit_code == 0, result.output
    comp = pd.read_csv(out_dir / "poyang_decomposition.csv")
    assert list(comp.columns) == ["date", "observed", "trend", "seasonal", "resid"]
    assert len(comp) == 24

    ts_long = pd.read_csv(out_dir / "timeseries_long.csv")
    assert set(ts_long["stat"]) == {"raw", "trend", "seasonal", "anomaly"}
    assert (ts_long["stat"] == "raw").sum() == 24
    assert not (out_dir / "poyang_decomposition.png").exists()


def test_decompose_with_plot(tmp_path, runner, monthly_csv):
    out_dir = tmp_path / "out"
    result = runner.invoke(
        cli, ["stats", "decompose", str(monthly_csv), "-o", str(out_dir)]
    )
    assert result.exit_code == 0, result.output
    assert (out_dir / "poyang_decomposition.png").exists()


def test_decompose_invalid_period_exits(tmp_path, runner, monthly_csv):
    result = runner.invoke(
        cli,
        [
            "stats",
            "decompose",
            str(monthly_csv),
            "--period",
            "0",
            "-o",
            str(tmp_path / "out"),
            "--no-plot",
        ],
    )
    assert result.exit_code == 1
    assert "Decomposition failed" in result.output


def test_fill_gaps_command(tmp_path, runner):
    csv_path = tmp_path / "gappy.csv"
    pd.DataFrame(
        {
            "id": ["a", "a"],
            "date": ["2020-01-01", "2020-04-01"],
            "water_area_km2": [1.0, 4.0],
        }
    ).to_csv(csv_path, index=False)
    out = tmp_path / "filled.csv"
    result = runner.invoke(
        cli, ["preprocess", "fill-gaps", str(csv_path), "-o", str(out), "-m", "linear"]
    )
    assert result.exit_code == 0, result.output
    filled = pd.read_csv(out)
    assert filled["water_area_km2"].tolist() == pytest.approx([1.0, 2.0, 3.0, 4.0])
    assert "2 filled" in result.output


def test_aggregate_command(tmp_path, runner, monthly_csv):
    out = tmp_path / "yearly.csv"
    result = runner.invoke(
        cli, ["stats", "aggregate", str(monthly_csv), "-f", "YS", "-o", str(out)]
    )
    assert result.exit_code == 0, result.output
    assert len(pd.read_csv(out)) == 2


def test_summary_after_decompose(tmp_path, runner, monthly_csv):
    out_dir = tmp_path / "out"
    runner.invoke(
        cli, ["stats", "decompose", str(monthly_csv), "-o", str(out_dir), "--no-plot"]
    )
    out = tmp_path / "summary.csv"
    result = runner.invoke(
        cli, ["stats", "summary", str(out_dir / "timeseries_long.csv"), "-o", str(out)]
    )
    assert result.exit_code == 0, result.output
    summary = pd.read_csv(out)
    assert summary["Num Periods"].tolist() == [24]
    assert summary["Peak Month"].tolist() == ["April"]


def test_summary_unknown_var_exits(tmp_path, runner, monthly_csv):
    out_dir = tmp_path / "out"
    runner.invoke(
        cli, ["stats", "decompose", str(monthly_csv), "-o", str(out_dir), "--no-plot"]
    )
    result = runner.invoke(
        cli,
        ["stats", "summary", str(out_dir / "timeseries_long.csv"), "--var", "nope"],
    )
    assert result.exit_code == 1


def test_trend_command(tmp_path, runner, monthly_csv):
    out = tmp_path / "trend.csv"
    result = runner.invoke(cli, ["stats", "trend", str(monthly_csv), "-o", str(out)])
    assert result.exit_code == 0, result.output
    trend = pd.read_csv(out)
    assert set(trend.columns) == {"id", "date", "trend", "slope_per_year"}


def test_download_timeseries_passes_options(tmp_path, runner, monkeypatch, monthly_df):
    captured = {}

    def fake_download(**kwargs):
        captured.update(kwargs)
        return monthly_df

    monkeypatch.setattr(cli_mod, "download_water_timeseries", fake_download)
    out = tmp_path / "water.csv"
    html = tmp_path / "water.html"
    result = runner.invoke(
        cli,
        [
            "download",
            "timeseries",
            "-s",
            "2019",
            "-e",
            "2020",
            "--bbox",
            "115.5",
            "28.5",
            "116.5",
            "29.5",
            "--grid-size",
            "3",
            "-o",
            str(out),
            "--html",
            str(html),
        ],
    )
    assert result.exit_code == 0, result.output
    assert captured["start_year"] == 2019
    assert captured["end_year"] == 2020
    assert captured["grid_size"] == 3
    assert captured["region"].bounds == (115.5, 28.5, 116.5, 29.5)
    assert captured["output"] == str(out)
    assert html.exists()


def test_download_timeseries_failure_exits(runner, monkeypatch):
    def failing_download(**kwargs):
        raise RuntimeError("Earth Engine returned no features")

    monkeypatch.setattr(cli_mod, "download_water_timeseries", failing_download)
    result = runner.invoke(cli, ["download", "timeseries"])
    assert result.exit_code == 1
    assert "no features" in result.output


def test_config_option_sets_region(tmp_path, runner, monkeypatch, monthly_df):
    cfg = tmp_path / "cfg.json"
    cfg.write_text(
        json.dumps({"region_name": "lake", "region_bounds": [1, 2, 3, 4]}),
        encoding="utf-8",
    )
    captured = {}

    def fake_download(**kwargs):
        captured.update(kwargs)
        return monthly_df

    monkeypatch.setattr(cli_mod, "download_water_timeseries", fake_download)
    result = runner.invoke(
        cli,
        ["--config", str(cfg), "download", "timeseries", "-o", str(tmp_path / "w.csv")],
    )
    assert result.exit_code == 0, result.output
    assert captured["region"].name == "lake"
    assert captured["config"].get("region_bounds") == [1, 2, 3, 4]


def test_map_command_writes_html(tmp_path, runner, monkeypatch):
    monkeypatch.setattr(
        cli_mod,
        "build_map_layers",
        lambda region, start_year, end_year, **kwargs: {
            "Water mask": "https://tiles/{z}/{x}/{y}"
        },
    )
    out = tmp_path / "map.html"
    result = runner.invoke(cli, ["map", "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert "https://tiles/{z}/{x}/{y}" in out.read_text(encoding="utf-8")
