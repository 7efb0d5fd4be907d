"""Unit tests for the Haversine route distance engine."""

import math

import pytest

from fleet.domain.distance import compute_route_distances, haversine_km
from fleet.domain.entities import Stop, StopInput
from fleet.domain.exceptions import ValidationError

A = Stop(id=1, name="A", latitude=23.8103, longitude=90.4125)
B = Stop(id=2, name="B", latitude=23.7808, longitude=90.4128)
C = Stop(id=3, name="C", latitude=23.7330, longitude=90.4172)
NO_COORDS = Stop(id=4, name="Depot")
STOPS = {s.id: s for s in (A, B, C, NO_COORDS)}


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(A.latitude, A.longitude, A.latitude, A.longitude) == 0

    def test_known_distance(self):
        assert haversine_km(A.latitude, A.longitude, B.latitude, B.longitude) == pytest.approx(
            3.28, abs=0.01
        )

    def test_symmetric(self):
        there = haversine_km(A.latitude, A.longitude, C.latitude, C.longitude)
        back = haversine_km(C.latitude, C.longitude, A.latitude, A.longitude)
        assert math.isclose(there, back)

    def test_quarter_meridian(self):
        # Equator to pole along a meridian = pi/2 * R
        assert haversine_km(0, 0, 90, 0) == pytest.approx(math.pi / 2 * 6371, rel=1e-9)


class TestComputeRouteDistances:
    def test_two_stop_example(self):
        result = compute_route_distances([StopInput(1), StopInput(2)], STOPS)

        first, second = result.stops
        assert first.distance_from_previous == 0
        assert first.cumulative_distance == 0
        assert second.distance_from_previous == 3.28
        assert second.cumulative_distance == pytest.approx(3.28)
        assert result.total_distance == pytest.approx(3.28)

    def test_total_is_sum_of_pairwise_haversine(self):
        result = compute_route_distances([StopInput(1), StopInput(2), StopInput(3)], STOPS)

        expected = haversine_km(A.latitude, A.longitude, B.latitude, B.longitude) + haversine_km(
            B.latitude, B.longitude, C.latitude, C.longitude
        )
        assert result.total_distance == pytest.approx(expected, abs=0.01)

    def test_last_cumulative_equals_total(self):
        result = compute_route_distances(
            [StopInput(1), StopInput(2), StopInput(3), StopInput(1)], STOPS
        )
        assert result.stops[-1].cumulative_distance == result.total_distance

    def test_stop_order_is_dense_and_one_based(self):
        result = compute_route_distances([StopInput(3), StopInput(1), StopInput(2)], STOPS)
        assert [s.stop_order for s in result.stops] == [1, 2, 3]
        assert [s.stop_id for s in result.stops] == [3, 1, 2]

    def test_manual_distance_overrides_coordinates(self):
        result = compute_route_distances(
            [StopInput(1), StopInput(2, manual_distance=7.5)], STOPS
        )
        assert result.stops[1].distance_from_previous == 7.5
        assert result.total_distance == 7.5

    def test_manual_distance_zero_still_wins(self):
        result = compute_route_distances(
            [StopInput(1), StopInput(2, manual_distance=0)], STOPS
        )
        assert result.stops[1].distance_from_previous == 0
        assert result.total_distance == 0

    def test_manual_distance_on_first_stop_is_ignored(self):
        result = compute_route_distances(
            [StopInput(1, manual_distance=12.0), StopInput(2)], STOPS
        )
        assert result.stops[0].distance_from_previous == 0
        assert result.total_distance == pytest.approx(3.28)

    def test_missing_coordinates_contribute_zero(self):
        result = compute_route_distances(
            [StopInput(1), StopInput(4), StopInput(2)], STOPS
        )
        assert [s.distance_from_previous for s in result.stops] == [0, 0, 0]
        assert result.total_distance == 0

    def test_manual_distance_covers_missing_coordinates(self):
        result = compute_route_distances(
            [StopInput(1), StopInput(4, manual_distance=2.25), StopInput(2, manual_distance=1.0)],
            STOPS,
        )
        assert [s.cumulative_distance for s in result.stops] == [0, 2.25, 3.25]
        assert result.total_distance == 3.25

    def test_cumulative_is_kept_at_two_decimals(self):
        result = compute_route_distances(
            [StopInput(4), StopInput(4, manual_distance=0.1), StopInput(4, manual_distance=0.2)],
            STOPS,
        )
        assert [s.cumulative_distance for s in result.stops] == [0, 0.1, 0.3]
        assert result.total_distance == 0.3

    def test_empty_sequence(self):
        result = compute_route_distances([], STOPS)
        assert result.stops == []
        assert result.total_distance == 0

    def test_unknown_stop_is_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            compute_route_distances([StopInput(1), StopInput(99)], STOPS)
        assert exc_info.value.value == [99]

    def test_times_are_carried_through(self):
        from datetime import time

        result = compute_route_distances(
            [StopInput(1, departure_time=time(8, 0)), StopInput(2, arrival_time=time(8, 20))],
            STOPS,
        )
        assert result.stops[0].departure_time == time(8, 0)
        assert result.stops[1].arrival_time == time(8, 20)
