"""
Module `ingestion.sensorspec` describes the optical collections the water
pipeline can read: band aliases, reflectance scaling and the Scene
Classification Layer (SCL) codes removed by the cloud mask.
"""

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

import ee

from .indices import compute_index

_SPEC_PATH = Path(__file__).resolve().parent.parent / "resources" / "sensor_specs.json"

# Band aliases that carry quality flags rather than reflectance
_QA_ALIASES = ("scl", "qa")


@lru_cache(maxsize=None)
def _sensor_registry() -> dict:
    with open(_SPEC_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass
class SensorSpec:
    """Band layout and masking rules of one Earth Engine collection."""

    collection_id: str
    bands: dict[str, str]
    native_resolution: int
    cloud_mask_method: str
    scl_exclude: list[int] = field(default_factory=list)
    reflectance_scale: float | None = None

    @property
    def optical_bands(self) -> dict[str, str]:
        """Alias -> band mapping without the quality bands."""
        return {k: v for k, v in self.bands.items() if k not in _QA_ALIASES}

    def cloud_mask(self, img: ee.Image) -> ee.Image:
        """
        Drop pixels whose SCL class is listed in ``scl_exclude`` (cloud,
        shadow, cirrus, saturated). Collections without an SCL rule are
        returned unchanged.
        """
        if self.cloud_mask_method.lower() != "s2_scl" or not self.scl_exclude:
            return img
        scl = img.select(self.bands["scl"])
        valid = scl.neq(self.scl_exclude[0])
        for code in self.scl_exclude[1:]:
            valid = valid.And(scl.neq(code))
        return img.updateMask(valid)

    def alias_image(self, img: ee.Image) -> ee.Image:
        """Optical bands renamed to their aliases and scaled to reflectance."""
        optical = self.optical_bands
        aliased = img.select(list(optical.values()), list(optical.keys()))
        if self.reflectance_scale:
            aliased = aliased.multiply(self.reflectance_scale)
        return aliased

    def compute_index(self, img: ee.Image, index_name: str) -> ee.Image:
        """Evaluate *index_name* on the aliased, scaled bands of *img*."""
        return compute_index(self.alias_image(img), index_name)

    @classmethod
    def from_collection_id(cls, collection_id: str) -> "SensorSpec":
        """Look up *collection_id* in ``resources/sensor_specs.json``."""
        spec = _sensor_registry().get(collection_id)
        if spec is None:
            raise ValueError(
                f"Collection ID '{collection_id}' not found in sensor_specs.json. "
                f"Known: {sorted(_sensor_registry())}"
            )
        return cls(
            collection_id=collection_id,
            bands=spec["bands"],
            native_resolution=spec["native_resolution"],
            cloud_mask_method=spec["cloud_mask_method"],
            scl_exclude=list(spec.get("scl_exclude", [])),
            reflectance_scale=spec.get("reflectance_scale"),
        )
