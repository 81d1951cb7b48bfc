"""
Module `ingestion.indices` evaluates the spectral indices used by the water
classifier. Formulas live in `resources/index_formulas.json` as band-math
expressions over upper-case band aliases plus optional numeric constants.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path

from ee import Image

_FORMULA_PATH = (
    Path(__file__).resolve().parent.parent / "resources" / "index_formulas.json"
)


@dataclass(frozen=True)
class IndexFormula:
    """One band-math expression, e.g. ``(GREEN - SWIR1) / (GREEN + SWIR1)``."""

    name: str
    expr: str
    bands: tuple[str, ...]
    params: dict[str, float] = field(default_factory=dict)

    def token_map(self, img: Image) -> dict:
        tokens: dict = {alias.upper(): img.select(alias) for alias in self.bands}
        tokens.update({k.upper(): v for k, v in self.params.items()})
        return tokens

    def evaluate(self, img: Image) -> Image:
        """Single-band image named after the index."""
        return img.expression(self.expr, self.token_map(img)).rename(self.name)


def _load_formulas(path: Path = _FORMULA_PATH) -> dict[str, IndexFormula]:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    return {
        name.lower(): IndexFormula(
            name=name.lower(),
            expr=spec["expr"],
            bands=tuple(spec["bands"]),
            params=dict(spec.get("params", {})),
        )
        for name, spec in raw.items()
    }


INDEX_REGISTRY: dict[str, IndexFormula] = _load_formulas()


def compute_index(img: Image, index: str) -> Image:
    """
    Compute a named spectral index on *img*.

    Args:
        img: ee.Image whose bands are already renamed to the lower-case aliases
            (``green``, ``nir``, ``swir1``, ...).
        index: key of INDEX_REGISTRY, case-insensitive.

    Returns:
        ee.Image with a single band named by the lower-case index key.
    """
    formula = INDEX_REGISTRY.get(index.lower())
    if formula is None:
        raise ValueError(
            f"Index '{index}' not supported. Choose from: {list(INDEX_REGISTRY)}"
        )
    return formula.evaluate(img)
