"""
Module `geo.region` defines the Region class: a named polygon (by default the
Poyang Lake bounding box) that can be split into a regular grid and handed to
Earth Engine as geometries or feature collections.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

import ee
from shapely.geometry import MultiPolygon, Polygon, box, mapping, shape

from poyang.core.config import ConfigManager


@dataclass
class Region:
    """Named analysis region with optional static properties."""

    name: str
    geometry: Union[Polygon, MultiPolygon]
    props: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_bounds(
        cls,
        bounds=ConfigManager.DEFAULT_REGION_BOUNDS,
        name: str = ConfigManager.DEFAULT_REGION_NAME,
    ) -> "Region":
        """Build a rectangular region from ``(min_lon, min_lat, max_lon, max_lat)``."""
        min_lon, min_lat, max_lon, max_lat = (float(b) for b in bounds)
        if min_lon >= max_lon or min_lat >= max_lat:
            raise ValueError(f"Invalid bounds: {bounds}")
        return cls(name, box(min_lon, min_lat, max_lon, max_lat))

    @classmethod
    def from_config(cls, config: ConfigManager) -> "Region":
        return cls.from_bounds(
            config.get_region_bounds(),
            name=config.get("region_name", ConfigManager.DEFAULT_REGION_NAME),
        )

    @classmethod
    def from_geojson(
        cls, geojson: Union[str, dict], name: str | None = None
    ) -> "Region":
        """
        Parse a GeoJSON object (or path to a GeoJSON file) into a Region.
        FeatureCollections use their first feature.
        """
        if isinstance(geojson, str):
            with open(geojson, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = geojson
        props: Dict[str, Any] = {}
        if data.get("type") == "FeatureCollection":
            features = data.get("features", [])
            if not features:
                raise ValueError("GeoJSON FeatureCollection has no features")
            data = features[0]
        if data.get("type") == "Feature":
            props = dict(data.get("properties") or {})
            data = data["geometry"]
        geom = shape(data)
        if not isinstance(geom, (Polygon, MultiPolygon)):
            raise ValueError(f"Region geometry must be polygonal, got {geom.geom_type}")
        region_name = name or str(props.get("name", ConfigManager.DEFAULT_REGION_NAME))
        return cls(region_name, geom, props)

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        return tuple(float(b) for b in self.geometry.bounds)  # type: ignore[return-value]

    @property
    def centre(self) -> tuple[float, float]:
        """``(lat, lon)`` of the bounding-box centre, as folium expects."""
        min_lon, min_lat, max_lon, max_lat = self.bounds
        return (min_lat + max_lat) / 2, (min_lon + max_lon) / 2

    def grid(self, size: int) -> List["Region"]:
        """
        Split the bounding box into ``size x size`` tiles.

        Tile ``(i, j)`` (``i`` along longitude, ``j`` along latitude) gets
        ``tile_id = i * size + j``.
        """
        if size <= 0:
            raise ValueError(f"Grid size must be positive, got {size}")
        min_lon, min_lat, max_lon, max_lat = self.bounds
        lon_step = (max_lon - min_lon) / size
        lat_step = (max_lat - min_lat) / size
        tiles: List[Region] = []
        for i in range(size):
            for j in range(size):
                tile_min_lon = min_lon + lon_step * i
                tile_min_lat = min_lat + lat_step * j
                tile_id = i * size + j
                tiles.append(
                    Region(
                        f"{self.name}_{tile_id}",
                        box(
                            tile_min_lon,
                            tile_min_lat,
                            tile_min_lon + lon_step,
                            tile_min_lat + lat_step,
                        ),
                        {"tile_id": tile_id},
                    )
                )
        return tiles

    def to_geojson(self) -> dict:
        """Return the region as a GeoJSON Feature."""
        return {
            "type": "Feature",
            "properties": {"id": self.name, **self.props},
            "geometry": mapping(self.geometry),
        }

    def ee_geometry(self) -> ee.Geometry:
        """Return an Earth Engine Geometry for this region."""
        return ee.Geometry(mapping(self.geometry))

    def ee_feature(self) -> ee.Feature:
        return ee.Feature(self.ee_geometry(), {"id": self.name})

    def ee_feature_collection(self, grid_size: int | None = None) -> ee.FeatureCollection:
        """Return the region, or its grid tiles, as an EE FeatureCollection."""
        parts = self.grid(grid_size) if grid_size else [self]
        return ee.FeatureCollection([p.ee_feature() for p in parts])
