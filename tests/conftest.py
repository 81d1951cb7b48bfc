# pylint: disable=missing-module-docstring,missing-function-docstring,redefined-outer-name
from types import SimpleNamespace
from unittest.mock import MagicMock

import numpy as np
import pandas as pd
import pytest
import ee


@pytest.fixture(autouse=True)
def mock_ee(monkeypatch):
    """
    Stub the Earth Engine entry points that would otherwise need credentials
    or network access.
    """
    monkeypatch.setattr(ee, "Initialize", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "Authenticate", lambda *args, **kwargs: None)
    monkeypatch.setattr(ee, "ServiceAccountCredentials", lambda a, b: MagicMock())
    yield


@pytest.fixture
def fake_ee(monkeypatch):
    """
    Replace the EE object constructors with MagicMocks so expression-building
    code can run without an initialized session.
    """
    stubs = SimpleNamespace(
        Image=MagicMock(name="ee.Image"),
        Reducer=MagicMock(name="ee.Reducer"),
        Geometry=MagicMock(name="ee.Geometry"),
        Feature=MagicMock(name="ee.Feature"),
        FeatureCollection=MagicMock(name="ee.FeatureCollection"),
        Algorithms=MagicMock(name="ee.Algorithms"),
    )
    for name, stub in vars(stubs).items():
        monkeypatch.setattr(ee, name, stub)
    return stubs


@pytest.fixture
def dummy_sensor():
    """Sensor stub whose index images are MagicMocks keyed by index name."""

    class DummySensor:
        collection_id = "dummy/collection"

        def __init__(self):
            self.indices = {}

        def compute_index(self, img, index):  # pylint: disable=unused-argument
            return self.indices.setdefault(index, MagicMock(name=index))

        @staticmethod
        def cloud_mask(img):
            return img

    return DummySensor()


@pytest.fixture
def monthly_df():
    """Two years of synthetic monthly water area with a seasonal cycle."""
    dates = pd.date_range("2020-01-01", periods=24, freq="MS")
    months = np.arange(24)
    values = 2000 + 5 * months + 800 * np.sin(2 * np.pi * months / 12)
    return pd.DataFrame({"id": "poyang", "date": dates, "water_area_km2": values})


@pytest.fixture
def monthly_csv(tmp_path, monthly_df):
    path = tmp_path / "water.csv"
    monthly_df.to_csv(path, index=False)
    return path
