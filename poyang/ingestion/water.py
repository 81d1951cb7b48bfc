"""
Module `ingestion.water` classifies open water on Sentinel-2 images.

A pixel is water when MNDWI exceeds both EVI and NDVI and EVI stays below a
vegetation threshold.
"""

import ee

from poyang.core.config import ConfigManager
from .sensorspec import SensorSpec

WATER_BAND = "water"
STACK_INDICES = ("ndwi", "mndwi", "ndvi", "evi")


def index_stack(img: ee.Image, sensor: SensorSpec) -> ee.Image:
    """Return an image with one band per index in ``STACK_INDICES``."""
    bands = [sensor.compute_index(img, name) for name in STACK_INDICES]
    stack = bands[0]
    for band in bands[1:]:
        stack = stack.addBands(band)
    return stack


def water_mask(
    img: ee.Image,
    sensor: SensorSpec,
    evi_threshold: float = ConfigManager.DEFAULT_EVI_THRESHOLD,
) -> ee.Image:
    """Return a single-band 0/1 ``water`` image keeping ``system:time_start``."""
    mndwi = sensor.compute_index(img, "mndwi")
    ndvi = sensor.compute_index(img, "ndvi")
    evi = sensor.compute_index(img, "evi")
    water = mndwi.gt(evi).And(mndwi.gt(ndvi)).And(evi.lt(evi_threshold))
    water = water.rename(WATER_BAND)
    return ee.Image(water.copyProperties(img, ["system:time_start"]))


def water_mask_fn(
    sensor: SensorSpec, evi_threshold: float = ConfigManager.DEFAULT_EVI_THRESHOLD
):
    """Return a one-argument function suitable for ``ImageCollection.map``."""

    def _mask(img):
        return water_mask(img, sensor, evi_threshold)

    return _mask
