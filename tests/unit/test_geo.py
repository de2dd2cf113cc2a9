"""Tests for Haversine distance and distance formatting."""

import math

import pytest

from campusride.core.geo import EARTH_RADIUS_KM, distance_km, format_distance
from campusride.core.schemas import GeoPoint

UTM = GeoPoint(lat=3.2167, lng=101.7333)
KL_SENTRAL = GeoPoint(lat=3.1478, lng=101.6953)


class TestDistanceKm:
    def test_same_point_is_zero(self) -> None:
        assert distance_km(UTM, UTM) == 0.0

    def test_symmetric(self) -> None:
        assert distance_km(UTM, KL_SENTRAL) == pytest.approx(distance_km(KL_SENTRAL, UTM))

    def test_one_degree_of_latitude(self) -> None:
        a = GeoPoint(lat=0.0, lng=0.0)
        b = GeoPoint(lat=1.0, lng=0.0)
        expected = EARTH_RADIUS_KM * math.pi / 180
        assert distance_km(a, b) == pytest.approx(expected)

    def test_known_campus_trip(self) -> None:
        """Roughly 8.7km between the two Kuala Lumpur points."""
        assert 8.5 < distance_km(UTM, KL_SENTRAL) < 9.0

    def test_antipodal_points(self) -> None:
        a = GeoPoint(lat=0.0, lng=0.0)
        b = GeoPoint(lat=0.0, lng=180.0)
        assert distance_km(a, b) == pytest.approx(EARTH_RADIUS_KM * math.pi)

    def test_never_negative(self) -> None:
        a = GeoPoint(lat=-45.0, lng=-170.0)
        b = GeoPoint(lat=60.0, lng=170.0)
        assert distance_km(a, b) >= 0.0


class TestFormatDistance:
    def test_metres_below_one_km(self) -> None:
        assert format_distance(0.45) == "450m"

    def test_zero(self) -> None:
        assert format_distance(0.0) == "0m"

    def test_kilometres(self) -> None:
        assert format_distance(2.34) == "2.3km"

    def test_exactly_one_km(self) -> None:
        assert format_distance(1.0) == "1.0km"
