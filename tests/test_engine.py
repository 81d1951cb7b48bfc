# pylint: disable=missing-module-docstring,missing-function-docstring,redefined-outer-name
from unittest.mock import MagicMock

import ee
import pytest

from poyang.analytics.engine import AREA_BAND, AnalyticsEngine
from poyang.ingestion.water import WATER_BAND


class DummyDate:
    """Month-resolution stand-in for ee.Date."""

    def __init__(self, year, month):
        self.year = year
        self.month = month

    @classmethod
    def fromYMD(cls, year, month, _day):  # pylint: disable=invalid-name
        return cls(year, month)

    def advance(self, delta, unit):
        assert unit == "month"
        total = self.year * 12 + (self.month - 1) + int(delta)
        return DummyDate(total // 12, total % 12 + 1)

    def millis(self):
        return (self.year, self.month)

    def get(self, field):
        return getattr(self, field)


class DummyList:
    def __init__(self, values):
        self.values = values

    @staticmethod
    def sequence(start, end):
        return DummyList(list(range(start, end + 1)))

    def map(self, func):
        return [func(v) for v in self.values]


class DummyImage:
    def __init__(self):
        self.props = None

    def set(self, props):
        self.props = props
        return self


class DummyCollection:
    """Base collection returning a sized sub-collection per month window."""

    def __init__(self, empty_months=()):
        self.empty_months = set(empty_months)

    def filterDate(self, start, _end):  # pylint: disable=invalid-name
        sub = MagicMock(name=f"window_{start.year}_{start.month}")
        size = 0 if (start.year, start.month) in self.empty_months else 3
        sub.size.return_value.gt.return_value = size > 0
        sub.mosaic.return_value = DummyImage()
        return sub


@pytest.fixture
def ee_stubs(monkeypatch, fake_ee):
    monkeypatch.setattr(ee, "Date", DummyDate)
    monkeypatch.setattr(ee, "Number", lambda v: v)
    monkeypatch.setattr(ee, "List", DummyList)
    ic = MagicMock(name="ee.ImageCollection")
    ic.fromImages.side_effect = lambda images: images
    monkeypatch.setattr(ee, "ImageCollection", ic)
    # ee.Algorithms.If(cond, a, b) evaluated eagerly
    fake_ee.Algorithms.If.side_effect = lambda cond, a, b: a if cond else b
    fake_ee.Image.side_effect = lambda img: img
    return fake_ee


def test_monthly_composites_one_image_per_month(ee_stubs):
    images = AnalyticsEngine.monthly_composites(DummyCollection(), 2020, 2021)
    assert len(images) == 24
    props = [img.props for img in images]
    assert props[0]["system:time_start"] == (2020, 1)
    assert (props[-1]["year"], props[-1]["month"]) == (2021, 12)
    assert [p["month"] for p in props[:12]] == list(range(1, 13))


def test_monthly_composites_masks_empty_months(ee_stubs):
    base = DummyCollection(empty_months={(2020, 3)})
    images = AnalyticsEngine.monthly_composites(base, 2020, 2020)
    assert len(images) == 12

    empty = ee_stubs.Image.constant.return_value.rename.return_value.updateMask
    march = images[2]
    assert march is empty.return_value.set.return_value
    ee_stubs.Image.constant.return_value.rename.assert_called_with(WATER_BAND)
    assert images[0] is not march


def test_monthly_composites_rejects_inverted_years(ee_stubs):
    with pytest.raises(ValueError):
        AnalyticsEngine.monthly_composites(DummyCollection(), 2021, 2020)


def test_area_image_converts_to_km2(fake_ee):
    img = MagicMock(name="water_img")
    AnalyticsEngine.area_image(img)
    water = img.select.return_value
    img.select.assert_called_once_with(WATER_BAND)
    water.multiply.assert_called_once_with(fake_ee.Image.pixelArea.return_value)
    water.multiply.return_value.divide.assert_called_once_with(1e6)
    area = water.multiply.return_value.divide.return_value
    area.rename.assert_called_once_with(AREA_BAND)
    area.rename.return_value.addBands.assert_called_once_with(water)


def test_region_reducer_combines_sum_mean_count(fake_ee):
    AnalyticsEngine.region_reducer()
    fake_ee.Reducer.sum.return_value.combine.assert_called_once_with(
        fake_ee.Reducer.mean.return_value, sharedInputs=True
    )


def test_reduce_regions_flattens(monkeypatch, fake_ee):
    monkeypatch.setattr(ee, "Date", MagicMock(name="ee.Date"))
    composites = MagicMock(name="composites")
    regions = MagicMock(name="regions")
    out = AnalyticsEngine.reduce_regions(composites, regions, scale=30)

    (reduce_fn,), _ = composites.map.call_args
    img = MagicMock(name="img")
    reduce_fn(img)
    area = img.select.return_value.multiply.return_value.divide.return_value
    stacked = area.rename.return_value.addBands.return_value
    kwargs = stacked.reduceRegions.call_args.kwargs
    assert kwargs["collection"] is regions
    assert kwargs["scale"] == 30
    ee.Date.return_value.format.assert_called_once_with("YYYY-MM-dd")
    assert out is composites.map.return_value.flatten.return_value
