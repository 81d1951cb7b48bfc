"""core.config
---------------

Configuration loader/manager for poyang. Provides a central API for
loading settings from YAML/TOML/JSON and retrieving them via
:py:meth:`ConfigManager.get`.
"""

import os
import json
import yaml
import toml

_LOADERS = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".toml": toml.load,
    ".json": json.load,
}


class ConfigValidationError(Exception):
    """Raised when configuration loading or validation fails."""


class ConfigManager:
    """
    Loads and manages configuration from file or defaults.
    Provides a central entry point for analysis parameters and map options.
    """

    # Poyang Lake bounding box (min lon, min lat, max lon, max lat)
    DEFAULT_REGION_BOUNDS: tuple[float, float, float, float] = (
        115.0,
        28.0,
        117.0,
        29.0,
    )
    DEFAULT_REGION_NAME: str = "poyang"
    DEFAULT_START_YEAR: int = 2020
    DEFAULT_END_YEAR: int = 2021
    DEFAULT_COLLECTION: str = "COPERNICUS/S2_SR"
    DEFAULT_PERIOD: int = 12
    DEFAULT_SCALE: int = 100
    DEFAULT_GRID_SIZE: int = 5
    DEFAULT_EVI_THRESHOLD: float = 0.1
    DEFAULT_VALUE_COL: str = "water_area_km2"
    DEFAULT_MAP_CENTER: tuple[float, float] = (28.6, 115.8)
    DEFAULT_MAP_ZOOM: int = 8
    DEFAULT_LAYER_OPACITY: float = 0.7

    # Visualisation parameters for the Earth Engine map layers
    DEFAULT_VIS_PARAMS: dict[str, dict] = {
        "true_color": {"bands": ["B4", "B3", "B2"], "min": 0, "max": 3000},
        "water": {"palette": ["0000ff"], "min": 0, "max": 1},
    }

    def __init__(self, config_path=None):
        self.config = {
            "region_name": self.DEFAULT_REGION_NAME,
            "region_bounds": list(self.DEFAULT_REGION_BOUNDS),
            "start_year": self.DEFAULT_START_YEAR,
            "end_year": self.DEFAULT_END_YEAR,
            "collection": self.DEFAULT_COLLECTION,
            "period": self.DEFAULT_PERIOD,
            "scale": self.DEFAULT_SCALE,
            "grid_size": self.DEFAULT_GRID_SIZE,
            "evi_threshold": self.DEFAULT_EVI_THRESHOLD,
            "value_col": self.DEFAULT_VALUE_COL,
            "map_center": list(self.DEFAULT_MAP_CENTER),
            "map_zoom": self.DEFAULT_MAP_ZOOM,
            "layer_opacity": self.DEFAULT_LAYER_OPACITY,
        }
        self.vis_params = {k: dict(v) for k, v in self.DEFAULT_VIS_PARAMS.items()}
        if config_path:
            self.load(config_path)

    @staticmethod
    def read_file(path: str) -> dict:
        """Parse *path* with the loader registered for its extension."""
        ext = os.path.splitext(path)[1].lower()
        loader = _LOADERS.get(ext)
        if loader is None:
            raise ConfigValidationError(
                f"Unsupported config format '{ext}'; use one of {sorted(_LOADERS)}"
            )
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = loader(f)
        except (OSError, ValueError, yaml.YAMLError) as e:
            raise ConfigValidationError(f"Cannot read config {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError(f"Config {path} must contain a mapping")
        return data

    def load(self, path: str) -> None:
        """
        Update the settings from a YAML, TOML or JSON file. A top-level
        ``vis_params`` table is merged layer by layer into the map layer
        parameters instead of replacing them.
        """
        data = self.read_file(path)
        vis = data.pop("vis_params", None)
        if vis is not None:
            if not isinstance(vis, dict):
                raise ConfigValidationError("vis_params must be a table of layers")
            for layer, params in vis.items():
                self.vis_params.setdefault(layer, {}).update(params)
        self.config.update(data)

    def get(self, key, default=None):
        """
        Retrieve a configuration value by key, or return `default` if not present.
        Attributes such as `vis_params` are also reachable through this method.

        Args:
            key (str): The configuration parameter to look up.
            default:  The value to return if `key` is not found.
        """
        if key in self.config:
            return self.config.get(key, default)
        elif hasattr(self, key):
            return getattr(self, key)
        else:
            return default

    def merge(self, other: "ConfigManager") -> None:
        """
        Merge another ConfigManager into this one.
        Values in other.config override this.config.
        """
        if not isinstance(other, ConfigManager):
            raise TypeError("Can only merge ConfigManager instances")
        self.config.update(other.config)
        for layer, params in other.vis_params.items():
            self.vis_params.setdefault(layer, {}).update(params)

    def get_region_bounds(self) -> tuple[float, float, float, float]:
        """Return the analysis bounding box as ``(min_lon, min_lat, max_lon, max_lat)``."""
        bounds = self.get("region_bounds", self.DEFAULT_REGION_BOUNDS)
        if len(bounds) != 4:
            raise ConfigValidationError(
                f"region_bounds must have 4 values, got {len(bounds)}"
            )
        min_lon, min_lat, max_lon, max_lat = (float(b) for b in bounds)
        if min_lon >= max_lon or min_lat >= max_lat:
            raise ConfigValidationError(f"region_bounds are inverted: {bounds}")
        return min_lon, min_lat, max_lon, max_lat

    def get_year_range(self) -> tuple[int, int]:
        """Return the configured ``(start_year, end_year)``."""
        start = int(self.get("start_year", self.DEFAULT_START_YEAR))
        end = int(self.get("end_year", self.DEFAULT_END_YEAR))
        if start > end:
            raise ConfigValidationError(
                f"start_year {start} is after end_year {end}"
            )
        return start, end

    def get_vis_params(self, layer: str) -> dict:
        """Return a copy of the visualisation parameters for *layer*."""
        if layer not in self.vis_params:
            raise KeyError(f"No visualisation parameters for layer '{layer}'")
        return dict(self.vis_params[layer])
