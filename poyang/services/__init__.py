"""Lightweight service-layer helpers used by the CLI, dashboard and tests."""

from importlib import import_module

__all__ = [
    "download_water_timeseries",
    "build_map_layers",
]


def __getattr__(name):
    if name == "download_water_timeseries":
        return import_module(".water_timeseries", __name__).download_water_timeseries
    if name == "build_map_layers":
        return import_module(".layers", __name__).build_map_layers
    raise AttributeError(name)
