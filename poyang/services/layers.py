"""Earth Engine map layers (tile URL templates) for the map widget."""

from __future__ import annotations

import logging

import ee

from poyang.core.config import ConfigManager
from poyang.core.logger import Logger
from poyang.geo.region import Region
from poyang.ingestion.eemanager import EarthEngineManager, ee_manager
from poyang.ingestion.sensorspec import SensorSpec
from poyang.ingestion.water import water_mask

TRUE_COLOR_LAYER = "Sentinel-2"
WATER_LAYER = "Water mask"


def tile_url(image: ee.Image, vis_params: dict) -> str:
    """Return an XYZ tile URL template (``{z}/{x}/{y}``) for *image*."""
    map_id = image.getMapId(vis_params)
    return map_id["tile_fetcher"].url_format


def build_map_layers(
    region: Region | None = None,
    start_year: int | None = None,
    end_year: int | None = None,
    config: ConfigManager | None = None,
    manager: EarthEngineManager | None = None,
    logger: logging.Logger | None = None,
) -> dict[str, str]:
    """Median true-colour composite and water mask as tile URLs keyed by layer name."""

    log = logger or Logger.get_logger(__name__)
    cfg = config or ConfigManager()
    mgr = manager or ee_manager
    region = region or Region.from_config(cfg)
    cfg_start, cfg_end = cfg.get_year_range()
    start_year = start_year if start_year is not None else cfg_start
    end_year = end_year if end_year is not None else cfg_end
    collection = cfg.get("collection")

    mgr.initialize()
    sensor = SensorSpec.from_collection_id(collection)
    geom = region.ee_geometry()
    composite = (
        mgr.get_image_collection(
            collection,
            f"{start_year}-01-01",
            f"{end_year + 1}-01-01",
            geom,
            mask_clouds=True,
        )
        .median()
        .clip(geom)
    )
    water = water_mask(composite, sensor, float(cfg.get("evi_threshold")))

    log.info("Requesting map tiles for %s, %d-%d", region.name, start_year, end_year)
    return {
        TRUE_COLOR_LAYER: tile_url(composite, cfg.get_vis_params("true_color")),
        WATER_LAYER: tile_url(water.selfMask(), cfg.get_vis_params("water")),
    }
