"""Folium maps with a basemap, the analysis region and Earth Engine tile layers."""

from typing import Mapping
import os

import folium
from folium.raster_layers import TileLayer

from poyang.core.config import ConfigManager
from poyang.geo.region import Region


def add_basemap(m: folium.Map) -> None:
    """Add a basemap TileLayer to the folium Map based on environment variables."""
    provider = os.environ.get("BASEMAP_PROVIDER", "esri-imagery").lower()
    if provider in ("esri-imagery", "esri", "satellite"):
        url = (
            "https://server.arcgisonline.com/ArcGIS/rest/services/"
            "World_Imagery/MapServer/tile/{z}/{y}/{x}"
        )
        attribution = "Tiles &copy; Esri &mdash; Source: Esri, Maxar, Earthstar Geographics"
        name = "Esri World Imagery"
    elif provider in ("carto-positron", "carto.light", "carto"):
        url = "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png"
        attribution = (
            '&copy; <a href="https://carto.com/attributions">CARTO</a> '
            '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap contributors</a>'
        )
        name = "Carto Positron"
    else:
        url = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
        attribution = '&copy; <a href="https://www.openstreetmap.org/copyright">OpenStreetMap contributors</a>'
        name = "OpenStreetMap"
    TileLayer(
        tiles=url,
        name=name,
        attr=attribution,
        overlay=False,
        control=False,
    ).add_to(m)


def build_map(
    region: Region,
    layers: Mapping[str, str],
    *,
    center: tuple[float, float] | None = None,
    zoom: int = ConfigManager.DEFAULT_MAP_ZOOM,
    opacity: float = ConfigManager.DEFAULT_LAYER_OPACITY,
) -> folium.Map:
    """Return a folium Map with the region outline and one overlay per tile URL.

    Parameters
    ----------
    region:
        Analysis region drawn as an outline.
    layers:
        Mapping of layer name to XYZ tile URL template.
    center:
        ``(lat, lon)``; defaults to the region centre.
    """
    m = folium.Map(location=list(center or region.centre), zoom_start=zoom, tiles=None)
    add_basemap(m)

    folium.GeoJson(
        region.to_geojson(),
        name="Region",
        style_function=lambda *_: {"color": "#d32f2f", "weight": 2, "fill": False},
    ).add_to(m)

    for name, url in layers.items():
        TileLayer(
            tiles=url,
            name=name,
            attr="Google Earth Engine",
            overlay=True,
            control=True,
            opacity=opacity,
        ).add_to(m)

    folium.LayerControl(position="topright", collapsed=False).add_to(m)
    return m
