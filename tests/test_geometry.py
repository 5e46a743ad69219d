"""Tests for coordinate conversion and target display geometry."""

import pytest

from mdasfeed.geometry import (
    bearing_from_cartesian,
    meters_to_nautical_miles,
    polar_to_cartesian,
    range_from_cartesian,
)
from mdasfeed.types import Target


class TestPolarToCartesian:
    """Tests for polar to east/north conversion."""

    def test_zero_degrees(self):
        x, y = polar_to_cartesian(0, 1000)
        assert x == pytest.approx(1000)
        assert y == pytest.approx(0, abs=1e-9)

    def test_ninety_degrees(self):
        x, y = polar_to_cartesian(90, 1000)
        assert x == pytest.approx(0, abs=1e-9)
        assert y == pytest.approx(1000)

    def test_one_eighty_degrees(self):
        x, y = polar_to_cartesian(180, 500)
        assert x == pytest.approx(-500)
        assert y == pytest.approx(0, abs=1e-9)

    def test_zero_range(self):
        assert polar_to_cartesian(123.4, 0) == (0, 0)


class TestBearingFromCartesian:
    """
    Bearing uses atan2(x, y): y is north, x is east, clockwise from north.
    """

    @pytest.mark.parametrize("x, y, expected", [
        (0, 1000, 0),
        (1000, 0, 90),
        (0, -1000, 180),
        (-1000, 0, 270),
        (1000, 1000, 45),
        (-1000, 1000, 315),
    ])
    def test_compass_bearings(self, x, y, expected):
        assert bearing_from_cartesian(x, y) == pytest.approx(expected)

    def test_result_in_zero_to_360(self):
        bearing = bearing_from_cartesian(-0.001, 1000)
        assert 0 <= bearing < 360

    def test_swapped_arguments_are_intentional(self):
        """Sweep angle 0 points along +x (east), which reads as bearing 090."""
        x, y = polar_to_cartesian(0, 1000)
        assert bearing_from_cartesian(x, y) == pytest.approx(90)


class TestTargetGeometry:
    """Tests for derived target display fields."""

    def test_distance_in_nautical_miles(self):
        target = Target(angle_degrees=0, range_meters=1852, intensity=200)
        assert target.distance_nm == pytest.approx(1.0)
        assert meters_to_nautical_miles(3704) == pytest.approx(2.0)

    def test_bearing_without_position(self):
        """Bearing is computed from the polar position when x/y are unset."""
        target = Target(angle_degrees=90, range_meters=1000, intensity=200)
        assert target.bearing_degrees == pytest.approx(0, abs=1e-9)

    def test_with_position(self):
        target = Target(angle_degrees=0, range_meters=1000, intensity=200).with_position()
        assert target.x == pytest.approx(1000)
        assert target.bearing_degrees == pytest.approx(90)

    def test_to_dict(self):
        target = Target(angle_degrees=45, range_meters=5000, intensity=200, angle_index=450, id=3)
        data = target.with_position().to_dict()

        assert data["id"] == 3
        assert data["angle_index"] == 450
        assert data["intensity"] == 200
        assert data["distance_nm"] == pytest.approx(2.7, abs=0.01)
        assert data["bearing"] == pytest.approx(45.0)

    def test_range_from_cartesian(self):
        assert range_from_cartesian(3, 4) == 5
