"""
Domain entities with business logic.

Patterns used
-------------
- **State Pattern** on ``Trip``: every lifecycle method first asks the single
  guard ``ensure_action_allowed`` whether the action may run from the current
  status (see ``TRIP_TRANSITIONS``), then validates its input, and only then
  mutates the trip.  A rejected call leaves the trip untouched.
- Completion does not touch the driver.  It returns a ``DriverCounterDelta``
  instruction that the storage layer applies in the same transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timezone
from typing import Optional

from .enums import (
    TRIP_TRANSITIONS,
    PassengerStatus,
    ScheduleType,
    TripAction,
    TripPriority,
    TripStatus,
)
from .exceptions import InvalidStateTransition, ValidationError


def ensure_action_allowed(status: TripStatus, action: TripAction) -> TripStatus | None:
    """Return the status *action* leads to, or raise if *status* forbids it."""
    allowed, target = TRIP_TRANSITIONS[action]
    if status not in allowed:
        raise InvalidStateTransition(action.value, TripStatus(status).value)
    return target


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_negative(name: str, value: Optional[float]) -> None:
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be zero or greater", field=name, value=value)


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Stop:
    id: int
    name: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True)
class StopInput:
    """One position in an ordered route as submitted by the operator."""

    stop_id: int
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    manual_distance: Optional[float] = None


@dataclass(frozen=True)
class RouteStopDistance:
    stop_id: int
    stop_order: int
    arrival_time: Optional[time]
    departure_time: Optional[time]
    distance_from_previous: float
    cumulative_distance: float


@dataclass(frozen=True)
class RouteDistanceResult:
    stops: list[RouteStopDistance]
    total_distance: float


@dataclass(frozen=True)
class DriverCounterDelta:
    """Increments to apply to a driver's aggregate counters."""

    driver_id: int
    distance_km: float
    trips_completed: int = 1


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class TripPassenger:
    user_id: int
    pickup_stop_id: Optional[int] = None
    dropoff_stop_id: Optional[int] = None
    status: PassengerStatus = PassengerStatus.PENDING


@dataclass
class TripDetails:
    """The fields a requester may edit while a trip is still editable."""

    vehicle_id: int
    purpose: str
    scheduled_date: date
    scheduled_start_time: time
    scheduled_end_time: time
    schedule_type: ScheduleType = ScheduleType.ADHOC
    priority: TripPriority = TripPriority.MEDIUM
    vehicle_route_id: Optional[int] = None
    department_id: Optional[int] = None
    description: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class Trip:
    details: TripDetails
    requested_by: int
    id: Optional[int] = None
    trip_number: Optional[str] = None
    status: TripStatus = TripStatus.PENDING
    approved_by: Optional[int] = None
    rejection_reason: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    odometer_start: Optional[float] = None
    odometer_end: Optional[float] = None
    fuel_consumed: Optional[float] = None
    fuel_cost: Optional[float] = None
    other_costs: Optional[float] = None
    total_cost: Optional[float] = None
    passengers: list[TripPassenger] = field(default_factory=list)

    @property
    def vehicle_id(self) -> int:
        return self.details.vehicle_id

    @property
    def distance_traveled(self) -> Optional[float]:
        if self.odometer_start is None or self.odometer_end is None:
            return None
        return self.odometer_end - self.odometer_start

    # ── Lifecycle ─────────────────────────────────────────────────

    def approve(self, actor_id: int) -> None:
        self.status = ensure_action_allowed(self.status, TripAction.APPROVE)
        self.approved_by = actor_id

    def reject(self, reason: str) -> None:
        target = ensure_action_allowed(self.status, TripAction.REJECT)
        if not reason or not reason.strip():
            raise ValidationError(
                "A rejection reason is required", field="rejection_reason", value=reason
            )
        self.status = target
        self.rejection_reason = reason

    def start(self, odometer_start: float, now: Optional[datetime] = None) -> None:
        target = ensure_action_allowed(self.status, TripAction.START)
        if odometer_start is None:
            raise ValidationError("odometer_start is required", field="odometer_start")
        _require_non_negative("odometer_start", odometer_start)
        self.status = target
        self.actual_start_time = now or _utcnow()
        self.odometer_start = odometer_start

    def complete(
        self,
        odometer_end: float,
        *,
        fuel_consumed: Optional[float] = None,
        fuel_cost: Optional[float] = None,
        other_costs: Optional[float] = None,
        notes: Optional[str] = None,
        driver_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[DriverCounterDelta]:
        """
        Finish the trip and return the counter increments owed to *driver_id*.

        ``None`` is returned when the vehicle has no assigned driver or the
        distance travelled cannot be derived from the odometer readings.
        """
        target = ensure_action_allowed(self.status, TripAction.COMPLETE)
        if odometer_end is None:
            raise ValidationError("odometer_end is required", field="odometer_end")
        for name, value in (
            ("odometer_end", odometer_end),
            ("fuel_consumed", fuel_consumed),
            ("fuel_cost", fuel_cost),
            ("other_costs", other_costs),
        ):
            _require_non_negative(name, value)
        if odometer_end < (self.odometer_start or 0):
            raise ValidationError(
                f"odometer_end must be at least {self.odometer_start or 0}",
                field="odometer_end",
                value=odometer_end,
            )

        self.status = target
        self.actual_end_time = now or _utcnow()
        self.odometer_end = odometer_end
        self.fuel_consumed = fuel_consumed
        self.fuel_cost = fuel_cost
        self.other_costs = other_costs
        self.total_cost = (fuel_cost or 0) + (other_costs or 0)
        if notes is not None:
            self.details.notes = notes

        if driver_id is None or not self.distance_traveled:
            return None
        return DriverCounterDelta(driver_id=driver_id, distance_km=self.distance_traveled)

    def cancel(self) -> None:
        self.status = ensure_action_allowed(self.status, TripAction.CANCEL)

    def reassign_vehicle(self, vehicle_id: int) -> int:
        """Swap the vehicle, keeping the status.  Returns the previous vehicle id."""
        ensure_action_allowed(self.status, TripAction.REASSIGN_VEHICLE)
        previous = self.details.vehicle_id
        self.details = replace(self.details, vehicle_id=vehicle_id)
        return previous

    def update(
        self,
        details: TripDetails,
        passengers: Optional[list[TripPassenger]] = None,
    ) -> bool:
        """
        Replace the editable fields, and the passenger list when one is given.

        Returns True when the vehicle changed.
        """
        ensure_action_allowed(self.status, TripAction.UPDATE)
        if passengers is not None:
            ensure_unique_passengers(passengers)
        vehicle_changed = details.vehicle_id != self.details.vehicle_id
        self.details = details
        if passengers is not None:
            self.passengers = list(passengers)
        return vehicle_changed

    def ensure_deletable(self) -> None:
        ensure_action_allowed(self.status, TripAction.DELETE)


def ensure_unique_passengers(passengers: list[TripPassenger]) -> None:
    seen: set[int] = set()
    for passenger in passengers:
        if passenger.user_id in seen:
            raise ValidationError(
                f"User {passenger.user_id} is listed more than once",
                field="passengers",
                value=passenger.user_id,
            )
        seen.add(passenger.user_id)


def new_trip(
    details: TripDetails,
    requested_by: int,
    passengers: Optional[list[TripPassenger]] = None,
) -> Trip:
    """A freshly requested trip: pending and owned by its requester."""
    passengers = list(passengers or [])
    ensure_unique_passengers(passengers)
    return Trip(details=details, requested_by=requested_by, passengers=passengers)
