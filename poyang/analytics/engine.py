# analytics/engine.py

"""
AnalyticsEngine
---------------
Reusable EE routines for building monthly water composites and reducing them
to per-region water area.
"""
import ee

from poyang.ingestion.water import WATER_BAND

AREA_BAND = "area"


class AnalyticsEngine:
    """
    Collection of static methods for the Earth Engine side of the analysis:
    monthly mosaics, pixel-area images and region reductions.
    """

    @staticmethod
    def monthly_composites(
        base_ic: ee.ImageCollection,
        start_year: int,
        end_year: int,
        band: str = WATER_BAND,
    ) -> ee.ImageCollection:
        """
        Build one mosaic per calendar month from January of *start_year* to
        December of *end_year*. Each image carries ``system:time_start``,
        ``year``, ``month`` and ``image_count``. Months without any scene
        yield a fully masked *band* so downstream reductions report no data
        instead of failing.
        """
        if start_year > end_year:
            raise ValueError(f"start_year {start_year} is after end_year {end_year}")
        start_dt = ee.Date.fromYMD(start_year, 1, 1)
        count = (end_year - start_year + 1) * 12
        empty = ee.Image.constant(0).rename(band).updateMask(ee.Image.constant(0))

        def make_monthly_image(offset):
            offset = ee.Number(offset)
            window_start = start_dt.advance(offset, "month")
            window_end = window_start.advance(1, "month")
            truncated = base_ic.filterDate(window_start, window_end)
            size = truncated.size()
            mosaic = ee.Image(ee.Algorithms.If(size.gt(0), truncated.mosaic(), empty))
            return mosaic.set(
                {
                    "system:time_start": window_start.millis(),
                    "year": window_start.get("year"),
                    "month": window_start.get("month"),
                    "image_count": size,
                }
            )

        offsets = ee.List.sequence(0, count - 1)
        return ee.ImageCollection.fromImages(offsets.map(make_monthly_image))

    @staticmethod
    def area_image(water_img: ee.Image) -> ee.Image:
        """Two-band image: water area in km² per pixel and the 0/1 water flag."""
        water = water_img.select(WATER_BAND)
        area = water.multiply(ee.Image.pixelArea()).divide(1e6).rename(AREA_BAND)
        return area.addBands(water)

    @staticmethod
    def region_reducer() -> ee.Reducer:
        """Sum, mean and count sharing inputs (``<band>_sum`` etc. outputs)."""
        return (
            ee.Reducer.sum()
            .combine(ee.Reducer.mean(), sharedInputs=True)
            .combine(ee.Reducer.count(), sharedInputs=True)
        )

    @staticmethod
    def reduce_regions(
        composites: ee.ImageCollection,
        regions: ee.FeatureCollection,
        scale: int,
    ) -> ee.FeatureCollection:
        """
        Reduce every monthly composite over every region feature. Features
        keep the region ``id`` and gain ``date`` (``YYYY-MM-dd``) plus the
        reducer outputs.
        """
        reducer = AnalyticsEngine.region_reducer()

        def _reduce(img):
            stats = AnalyticsEngine.area_image(img).reduceRegions(
                collection=regions, reducer=reducer, scale=scale
            )
            date = ee.Date(img.get("system:time_start")).format("YYYY-MM-dd")
            return stats.map(lambda f: f.set("date", date))

        return composites.map(_reduce).flatten()
