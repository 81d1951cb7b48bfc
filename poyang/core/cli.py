"""
poyang CLI entrypoint: defines commands for downloading the monthly water
series from Earth Engine, gap filling, seasonal decomposition, summary
statistics and map export.
"""

import os
import sys

import pandas as pd
import click  # type: ignore
from click import echo

from poyang.analytics.decomposition import InvalidInput
from poyang.analytics.stats import compute_summary_stats
from poyang.analytics.timeseries import WaterSeries, decomp_to_long
from poyang.analytics.trend import compute_linear_trend
from poyang.core.config import ConfigManager, ConfigValidationError
from poyang.core.logger import Logger
from poyang.geo.region import Region
from poyang.services.layers import build_map_layers
from poyang.services.water_timeseries import download_water_timeseries
from poyang.visualization.maps import build_map
from poyang.visualization.visualizer import Visualizer

logger = Logger.get_logger(__name__)
viz = Visualizer()

SOURCE = "S2"


def _region_from_options(cfg: ConfigManager, bbox, geojson) -> Region:
    if geojson:
        return Region.from_geojson(geojson)
    if bbox:
        return Region.from_bounds(bbox, name=cfg.get("region_name"))
    return Region.from_config(cfg)


def _load_series(input_csv: str, value_col: str) -> WaterSeries:
    logger.info("Loading %s", input_csv)
    df = pd.read_csv(input_csv, parse_dates=["date"])
    return WaterSeries.from_dataframe(df, value_col=value_col)


@click.group()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True),
    default=None,
    help="YAML/TOML/JSON configuration file.",
)
@click.pass_context
def cli(ctx, config_path):
    """poyang: seasonal water-extent analytics for Poyang Lake."""
    Logger.setup()
    try:
        ctx.obj = ConfigManager(config_path)
    except ConfigValidationError as e:
        raise click.BadParameter(str(e), param_hint="--config") from e


@cli.group()
def download():
    """Data ingestion commands."""


@download.command(name="timeseries")
@click.option("--start-year", "-s", type=int, default=None, help="First year")
@click.option("--end-year", "-e", type=int, default=None, help="Last year")
@click.option(
    "--bbox",
    type=float,
    nargs=4,
    default=None,
    help="Region bounds: MIN_LON MIN_LAT MAX_LON MAX_LAT",
)
@click.option(
    "--geojson",
    "-g",
    type=click.Path(exists=True),
    default=None,
    help="GeoJSON polygon to use instead of the configured bounds",
)
@click.option("--grid-size", type=int, default=None, help="Split region into N x N tiles")
@click.option("--scale", type=int, default=None, help="Reduction scale (meters)")
@click.option(
    "--collection", "-c", default=None, help="Earth Engine ImageCollection ID"
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="water_timeseries.csv",
    help="Output CSV path",
)
@click.option(
    "--html",
    "html_path",
    type=click.Path(),
    default=None,
    help="Also write an interactive HTML plot to this path",
)
@click.pass_obj
def timeseries(
    cfg,
    start_year,
    end_year,
    bbox,
    geojson,
    grid_size,
    scale,
    collection,
    output,
    html_path,
):
    """
    Compute the monthly water area over the region and save it as CSV.
    """
    try:
        region = _region_from_options(cfg, bbox, geojson)
        df = download_water_timeseries(
            region=region,
            start_year=start_year,
            end_year=end_year,
            scale=scale,
            grid_size=grid_size,
            collection=collection,
            output=output,
            config=cfg,
            logger=logger,
        )
        echo(f"✅  Results saved to {output}")
        if html_path:
            viz.plot_timeseries_html(
                df,
                value_col=cfg.get("value_col"),
                output_path=html_path,
                title=f"{region.name} water extent",
            )
            echo(f"✅  Interactive plot saved to {html_path}")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Timeseries command failed", exc_info=True)
        echo(f"❌  Timeseries download failed: {e}", err=True)
        sys.exit(1)


@cli.group()
def preprocess():
    """Data transformation commands (gap-fill, resample, etc.)."""


@preprocess.command(name="fill-gaps")
@click.argument("input_csv", type=click.Path(exists=True))
@click.option(
    "--value-col",
    "-c",
    default=ConfigManager.DEFAULT_VALUE_COL,
    help="Column to fill gaps in",
)
@click.option(
    "--method",
    "-m",
    type=click.Choice(["time", "linear"]),
    default="time",
    help="Interpolation method",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="filled.csv",
    help="Output path for gap-filled CSV",
)
def fill_gaps_cmd(input_csv, value_col, method, output):
    """Reindex to contiguous months and interpolate missing values."""

    ws = _load_series(input_csv, value_col)
    filled = ws.fill_gaps(method=method)
    n_filled = int(filled.df["gapfilled"].sum())
    logger.info("Filled %d missing month(s)", n_filled)
    filled.to_csv(output)
    echo(f"✅  Gap-filled data ({n_filled} filled) saved to {output}")


@cli.group()
def stats():
    """Statistical operations on water time-series data."""


@stats.command(name="aggregate")
@click.argument("input_csv", type=click.Path(exists=True))
@click.option(
    "--value-col",
    "-c",
    default=ConfigManager.DEFAULT_VALUE_COL,
    help="Column to aggregate",
)
@click.option(
    "--freq",
    "-f",
    type=click.Choice(["MS", "YS"]),
    default="MS",
    help="Frequency to aggregate to: MS (monthly), YS (yearly)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="aggregated.csv",
    help="Output path for the aggregated CSV",
)
def aggregate(input_csv, value_col, freq, output):
    """
    Aggregate a water time-series CSV to the specified frequency.
    """
    ws = _load_series(input_csv, value_col)
    logger.info("Aggregating by frequency '%s'", freq)
    ws.aggregate(freq).to_csv(output)
    echo(f"✅  Aggregated data saved to {output}")


@stats.command(name="decompose")
@click.argument("input_csv", type=click.Path(exists=True))
@click.option(
    "--value-col",
    "-c",
    default=ConfigManager.DEFAULT_VALUE_COL,
    help="Column in CSV to decompose",
)
@click.option(
    "--period",
    "-p",
    type=int,
    default=ConfigManager.DEFAULT_PERIOD,
    help="Seasonal period in months",
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(),
    default="decomposition",
    help="Directory to save outputs",
)
@click.option(
    "--fill-gaps/--no-fill-gaps",
    default=True,
    help="Interpolate missing months before decomposing (default: True)",
)
@click.option(
    "--plot/--no-plot",
    default=True,
    help="Whether to generate PNG plots for each region (default: True)",
)
def decompose(input_csv, value_col, period, output_dir, fill_gaps, plot):
    """
    Split each region's monthly series into trend, seasonal and residual parts.
    """
    ws = _load_series(input_csv, value_col)
    if fill_gaps:
        ws = ws.fill_gaps()
    logger.info("Decomposing time series with period %d", period)
    try:
        frames = ws.decompose_frames(period=period)
    except InvalidInput as e:
        logger.error("Decomposition failed", exc_info=True)
        echo(f"❌  Decomposition failed: {e}", err=True)
        sys.exit(1)

    os.makedirs(output_dir, exist_ok=True)
    long_parts = [ws.to_long(freq="monthly", source=SOURCE)]
    for pid, frame in frames.items():
        frame.to_csv(os.path.join(output_dir, f"{pid}_decomposition.csv"), index=False)
        long_parts.append(
            decomp_to_long(
                frame.drop(columns="observed"),
                aoi_id=str(pid),
                var=value_col,
                freq="monthly",
                source=SOURCE,
            )
        )
        if plot:
            plot_path = os.path.join(output_dir, f"{pid}_decomposition.png")
            viz.plot_decomposition(frame, plot_path, title=f"{pid} {value_col}")
            logger.info("Decomposition plot saved to %s", plot_path)

    if not frames:
        logger.warning(
            "No decomposition components generated; output will contain raw values only"
        )

    out_path = os.path.join(output_dir, "timeseries_long.csv")
    combined = pd.concat(long_parts, ignore_index=True)
    combined.to_csv(out_path, index=False)
    echo(f"✅  TimeseriesLong saved to {out_path}")


@stats.command(name="summary")
@click.argument("timeseries_csv", type=click.Path(exists=True))
@click.option(
    "--var",
    default=ConfigManager.DEFAULT_VALUE_COL,
    help="Variable in the TimeseriesLong file",
)
@click.option(
    "--period",
    "-p",
    type=int,
    default=ConfigManager.DEFAULT_PERIOD,
    help="Seasonal period in months",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="summary_stats.csv",
    help="Output CSV path",
)
def summary(timeseries_csv, var, period, output):
    """Compute per-region summary statistics from a TimeseriesLong CSV."""

    result = compute_summary_stats(timeseries_csv, var=var, period=period)
    if not result:
        echo(f"❌  No rows found for variable '{var}'", err=True)
        sys.exit(1)
    result.to_csv(output)
    echo(f"✅  Summary statistics saved to {output}")


@stats.command(name="trend")
@click.argument("input_csv", type=click.Path(exists=True))
@click.option(
    "--value-col",
    "-c",
    default=ConfigManager.DEFAULT_VALUE_COL,
    help="Column to fit",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="trend.csv",
    help="Output CSV path",
)
def trend(input_csv, value_col, output):
    """Fit a linear trend per region."""

    df = pd.read_csv(input_csv, parse_dates=["date"])
    result = compute_linear_trend(df, column=value_col)
    if result.empty:
        logger.warning("No region has enough points for a linear trend")
    for pid, slope in result.slopes().items():
        logger.info("%s: %+.3f %s per year", pid, slope, value_col)
    result.to_csv(output)
    echo(f"✅  Linear trend saved to {output}")


@cli.command(name="map")
@click.option("--start-year", "-s", type=int, default=None, help="First year")
@click.option("--end-year", "-e", type=int, default=None, help="Last year")
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="poyang_map.html",
    help="Output HTML path",
)
@click.pass_obj
def map_cmd(cfg, start_year, end_year, output):
    """Write an HTML map with the Sentinel-2 composite and water mask."""
    try:
        region = Region.from_config(cfg)
        layers = build_map_layers(
            region, start_year, end_year, config=cfg, logger=logger
        )
        m = build_map(
            region,
            layers,
            center=tuple(cfg.get("map_center")),
            zoom=int(cfg.get("map_zoom")),
            opacity=float(cfg.get("layer_opacity")),
        )
        m.save(output)
        echo(f"✅  Map saved to {output}")
    # pylint: disable=broad-exception-caught
    except Exception as e:
        logger.error("Map command failed", exc_info=True)
        echo(f"❌  Map export failed: {e}", err=True)
        sys.exit(1)
