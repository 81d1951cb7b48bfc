"""Earth Engine ingestion: sensors, spectral indices and water classification."""

from .eemanager import EarthEngineManager, ee_manager
from .sensorspec import SensorSpec
from .water import water_mask

__all__ = ["EarthEngineManager", "ee_manager", "SensorSpec", "water_mask"]
