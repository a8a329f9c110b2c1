"""Unit tests for the distance engine (Haversine + bounding box)."""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from utils.geo import (
    EARTH_RADIUS_MILES,
    BoundingBox,
    bounding_box,
    great_circle_distance_miles,
    round_half_up,
)

lats = st.floats(min_value=-89.0, max_value=89.0, allow_nan=False)
lons = st.floats(min_value=-179.0, max_value=179.0, allow_nan=False)


class TestGreatCircleDistance:
    def test_same_point_is_zero(self):
        assert great_circle_distance_miles(34.0901, -118.4065, 34.0901, -118.4065) == 0

    @given(lat1=lats, lon1=lons, lat2=lats, lon2=lons)
    def test_symmetric(self, lat1, lon1, lat2, lon2):
        assert great_circle_distance_miles(lat1, lon1, lat2, lon2) == great_circle_distance_miles(
            lat2, lon2, lat1, lon1
        )

    @given(lat1=lats, lon1=lons, lat2=lats, lon2=lons)
    def test_never_exceeds_half_circumference(self, lat1, lon1, lat2, lon2):
        d = great_circle_distance_miles(lat1, lon1, lat2, lon2)
        assert 0 <= d <= math.pi * EARTH_RADIUS_MILES + 0.01

    def test_beverly_hills_to_sepulveda(self):
        # 90210 centroid to the West LA Walmart Neighborhood Market
        d = great_circle_distance_miles(34.0901, -118.4065, 34.0458, -118.4529)
        assert 4.0 < d < 4.1

    def test_los_angeles_to_new_york(self):
        d = great_circle_distance_miles(34.0522, -118.2437, 40.7128, -74.0060)
        assert 2440 < d < 2450

    def test_rounded_to_two_decimals(self):
        d = great_circle_distance_miles(41.7569, -87.6648, 41.9344, -87.6457)
        assert abs(d * 100 - round(d * 100)) < 1e-6

    def test_one_degree_of_latitude(self):
        # R * pi / 180
        assert great_circle_distance_miles(0, 0, 1, 0) == pytest.approx(69.1, abs=0.01)


class TestRoundHalfUp:
    def test_half_rounds_up(self):
        # banker's rounding would give 0.12
        assert round_half_up(0.125, 2) == 0.13

    def test_below_half_rounds_down(self):
        assert round_half_up(3.4649, 2) == 3.46


class TestBoundingBox:
    def test_latitude_span_uses_69_miles_per_degree(self):
        box = bounding_box(34.0, -118.0, 69.0)
        assert box.min_lat == pytest.approx(33.0)
        assert box.max_lat == pytest.approx(35.0)

    def test_longitude_span_widens_with_latitude(self):
        box = bounding_box(60.0, 10.0, 69.0)
        # cos(60 deg) = 0.5 -> two degrees each way
        assert box.min_lon == pytest.approx(8.0)
        assert box.max_lon == pytest.approx(12.0)

    def test_centered_on_origin(self):
        box = bounding_box(34.0901, -118.4065, 10)
        assert (box.min_lat + box.max_lat) / 2 == pytest.approx(34.0901)
        assert (box.min_lon + box.max_lon) / 2 == pytest.approx(-118.4065)

    def test_contains_is_inclusive(self):
        box = BoundingBox(1.0, 2.0, 3.0, 4.0)
        assert box.contains(1.0, 3.0)
        assert box.contains(2.0, 4.0)
        assert not box.contains(2.0001, 3.5)

    def test_finite_at_pole(self):
        box = bounding_box(90.0, 0.0, 10)
        assert math.isfinite(box.min_lon) and math.isfinite(box.max_lon)

    @given(
        lat=st.floats(min_value=20.0, max_value=50.0),
        lon=st.floats(min_value=-125.0, max_value=-65.0),
        radius=st.floats(min_value=5.0, max_value=200.0),
        dlat=st.floats(min_value=-4.0, max_value=4.0),
        dlon=st.floats(min_value=-5.0, max_value=5.0),
    )
    def test_no_false_negatives(self, lat, lon, radius, dlat, dlon):
        """Anything the exact filter keeps must already be inside the box."""
        box = bounding_box(lat, lon, radius)
        plat, plon = lat + dlat, lon + dlon
        if great_circle_distance_miles(lat, lon, plat, plon) <= radius:
            assert box.contains(plat, plon)
