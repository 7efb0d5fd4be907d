"""
Route distance engine built on the Haversine formula.

Assumption
----------
Leg distances are great-circle (Haversine) distances between consecutive
stops, not road distances.  An operator who knows the real road distance of
a leg enters it as a *manual distance*, which always replaces the computed
value for that leg.

Algorithm
---------
1. The first stop has ``distance_from_previous = 0``.
2. Each later stop uses, in order of preference: its manual distance, the
   Haversine distance from the preceding stop (when both carry coordinates,
   rounded to 2 decimals), or 0.
3. ``cumulative_distance`` is the running sum, kept at 2 decimals; the route
   total equals the last cumulative value.

Complexity: O(n) in the number of stops.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

from .entities import RouteDistanceResult, RouteStopDistance, Stop, StopInput
from .exceptions import ValidationError

EARTH_RADIUS_KM = 6_371.0
DISTANCE_PRECISION = 2


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def leg_distance(previous: Stop, current: Stop, manual_distance: float | None) -> float:
    """Distance of a single leg; a manual override always wins."""
    if manual_distance is not None:
        return float(manual_distance)
    if previous.has_coordinates and current.has_coordinates:
        return round(
            haversine_km(
                previous.latitude, previous.longitude,
                current.latitude, current.longitude,
            ),
            DISTANCE_PRECISION,
        )
    return 0.0


def compute_route_distances(
    inputs: Sequence[StopInput], stops_by_id: Mapping[int, Stop]
) -> RouteDistanceResult:
    """
    Compute per-stop and total distances for an ordered stop sequence.

    Every ``stop_id`` must be present in *stops_by_id*; an unknown id is
    rejected before any distance is computed.
    """
    unknown = [item.stop_id for item in inputs if item.stop_id not in stops_by_id]
    if unknown:
        raise ValidationError(
            f"Unknown stop id(s): {', '.join(str(i) for i in unknown)}",
            field="stops",
            value=unknown,
        )

    results: list[RouteStopDistance] = []
    cumulative = 0.0
    for position, item in enumerate(inputs):
        distance = 0.0
        if position > 0:
            distance = leg_distance(
                stops_by_id[inputs[position - 1].stop_id],
                stops_by_id[item.stop_id],
                item.manual_distance,
            )
        cumulative = round(cumulative + distance, DISTANCE_PRECISION)
        results.append(
            RouteStopDistance(
                stop_id=item.stop_id,
                stop_order=position + 1,
                arrival_time=item.arrival_time,
                departure_time=item.departure_time,
                distance_from_previous=distance,
                cumulative_distance=cumulative,
            )
        )

    return RouteDistanceResult(stops=results, total_distance=cumulative)
