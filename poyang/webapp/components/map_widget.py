"""Utilities for rendering the analysis map in the dashboard."""

import hashlib
import json
from typing import Mapping

import streamlit as st
from streamlit_folium import st_folium

from poyang.core.config import ConfigManager
from poyang.geo.region import Region
from poyang.visualization.maps import build_map


def display_map(
    region: Region,
    layers: Mapping[str, str],
    *,
    zoom: int = ConfigManager.DEFAULT_MAP_ZOOM,
    opacity: float = ConfigManager.DEFAULT_LAYER_OPACITY,
    height: int = 450,
) -> None:
    """Render the folium map with the region outline and Earth Engine layers.

    The user's pan/zoom state is kept in ``st.session_state`` across reruns
    and reset whenever the region or the layer set changes.
    """

    payload = json.dumps(region.to_geojson(), sort_keys=True) + json.dumps(
        dict(layers), sort_keys=True
    )
    layers_key = hashlib.sha256(payload.encode("utf-8")).hexdigest()

    if st.session_state.get("map_layers_key") != layers_key:
        st.session_state["map_layers_key"] = layers_key
        st.session_state.pop("map_center", None)
        st.session_state.pop("map_zoom", None)

    center = st.session_state.get("map_center") or list(region.centre)
    m = build_map(
        region,
        layers,
        center=tuple(center),
        zoom=st.session_state.get("map_zoom") or zoom,
        opacity=opacity,
    )

    state = st_folium(
        m,
        width=None,
        height=height,
        key=f"main_map_{layers_key}",
        returned_objects=["center", "zoom"],
    )

    if state:
        center_state = state.get("center")
        if isinstance(center_state, dict):
            center_state = [center_state.get("lat"), center_state.get("lng")]
        st.session_state["map_center"] = center_state or st.session_state.get(
            "map_center"
        )
        st.session_state["map_zoom"] = state.get(
            "zoom", st.session_state.get("map_zoom")
        )
