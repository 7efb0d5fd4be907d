"""
Trip lifecycle service.

Each public method is one unit of work inside the caller's session:

1. Load the trip row ``FOR UPDATE`` and map it to a ``Trip`` entity.
2. Run the lifecycle method on the entity (guard, validate, mutate).
3. Write the entity back, plus any child rows or side effects it asked for
   (passenger list, vehicle-assignment history, driver counter deltas).

A guard or validation failure raises before step 3, so nothing is written
and the session is rolled back by the request boundary.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from fleet.config import settings
from fleet.domain.entities import (
    Trip,
    TripDetails,
    TripPassenger,
    ensure_action_allowed,
    new_trip,
)
from fleet.domain.enums import REASSIGNMENT_REASONS, AssignmentReason, TripAction
from fleet.domain.exceptions import NotFoundError, ValidationError
from fleet.infrastructure.models import TripModel
from fleet.infrastructure.repositories import (
    DepartmentRepository,
    StopRepository,
    TripRepository,
    TripVehicleAssignmentRepository,
    UserRepository,
    VehicleRepository,
    VehicleRouteRepository,
    to_trip_entity,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TripService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.trips = TripRepository(session)
        self.assignments = TripVehicleAssignmentRepository(session)
        self.vehicles = VehicleRepository(session)
        self.routes = VehicleRouteRepository(session)
        self.departments = DepartmentRepository(session)
        self.stops = StopRepository(session)
        self.users = UserRepository(session)

    # ── Queries ───────────────────────────────────────────────────

    async def get_trip(self, trip_id: int) -> TripModel:
        model = await self.trips.get_by_id(trip_id)
        if model is None:
            raise NotFoundError("Trip", trip_id)
        return model

    # ── Create / edit / delete ────────────────────────────────────

    async def create_trip(
        self,
        details: TripDetails,
        actor_id: int,
        passengers: Optional[list[TripPassenger]] = None,
    ) -> TripModel:
        await self._check_references(details, passengers or [])
        trip = new_trip(details, requested_by=actor_id, passengers=passengers)

        now = _utcnow()
        trip.trip_number = await self.trips.next_trip_number(
            settings.trip_number_prefix, now.date()
        )
        model = await self.trips.create(trip)
        await self.assignments.open(
            trip_id=model.id,
            vehicle_id=trip.vehicle_id,
            assigned_by=actor_id,
            reason=AssignmentReason.INITIAL,
            at=now,
        )
        logger.info("Trip %s requested by user %d", trip.trip_number, actor_id)
        return model

    async def update_trip(
        self,
        trip_id: int,
        details: TripDetails,
        actor_id: int,
        passengers: Optional[list[TripPassenger]] = None,
    ) -> TripModel:
        model, trip = await self._load(trip_id)
        ensure_action_allowed(trip.status, TripAction.UPDATE)
        await self._check_references(details, passengers or [])

        vehicle_changed = trip.update(details, passengers)
        await self.trips.save(model, trip, passengers_changed=passengers is not None)
        if vehicle_changed:
            await self.assignments.rotate(
                trip_id=trip_id,
                vehicle_id=trip.vehicle_id,
                assigned_by=actor_id,
                at=_utcnow(),
            )
        logger.info("Trip %s updated by user %d", model.trip_number, actor_id)
        return model

    async def delete_trip(self, trip_id: int) -> None:
        model, trip = await self._load(trip_id)
        trip.ensure_deletable()
        await self.trips.delete(model)
        logger.info("Trip %s deleted", model.trip_number)

    # ── Lifecycle transitions ─────────────────────────────────────

    async def approve(self, trip_id: int, actor_id: int) -> TripModel:
        model, trip = await self._load(trip_id)
        trip.approve(actor_id)
        await self.trips.save(model, trip)
        logger.info("Trip %s approved by user %d", model.trip_number, actor_id)
        return model

    async def reject(self, trip_id: int, reason: str) -> TripModel:
        model, trip = await self._load(trip_id)
        trip.reject(reason)
        await self.trips.save(model, trip)
        logger.info("Trip %s rejected: %s", model.trip_number, reason)
        return model

    async def start(self, trip_id: int, odometer_start: float) -> TripModel:
        model, trip = await self._load(trip_id)
        trip.start(odometer_start, now=_utcnow())
        await self.trips.save(model, trip)
        logger.info("Trip %s started at odometer %.2f", model.trip_number, odometer_start)
        return model

    async def complete(
        self,
        trip_id: int,
        odometer_end: float,
        *,
        fuel_consumed: Optional[float] = None,
        fuel_cost: Optional[float] = None,
        other_costs: Optional[float] = None,
        notes: Optional[str] = None,
    ) -> TripModel:
        model, trip = await self._load(trip_id)
        vehicle = await self.vehicles.get_by_id(trip.vehicle_id)
        driver_id = vehicle.driver_id if vehicle is not None else None

        delta = trip.complete(
            odometer_end,
            fuel_consumed=fuel_consumed,
            fuel_cost=fuel_cost,
            other_costs=other_costs,
            notes=notes,
            driver_id=driver_id,
            now=_utcnow(),
        )
        await self.trips.save(model, trip)
        if delta is not None:
            await self.users.apply_counter_delta(delta)
            logger.info(
                "Driver %d credited %.2f km for trip %s",
                delta.driver_id, delta.distance_km, model.trip_number,
            )
        logger.info("Trip %s completed", model.trip_number)
        return model

    async def cancel(self, trip_id: int) -> TripModel:
        model, trip = await self._load(trip_id)
        trip.cancel()
        await self.trips.save(model, trip)
        logger.info("Trip %s cancelled", model.trip_number)
        return model

    async def reassign_vehicle(
        self,
        trip_id: int,
        vehicle_id: int,
        reason: AssignmentReason,
        actor_id: int,
        notes: Optional[str] = None,
    ) -> TripModel:
        model, trip = await self._load(trip_id)
        if reason not in REASSIGNMENT_REASONS:
            raise ValidationError(
                f"{reason} is not a reassignment reason", field="reason", value=reason
            )
        reason = AssignmentReason(reason)
        if await self.vehicles.get_by_id(vehicle_id) is None:
            raise NotFoundError("Vehicle", vehicle_id)

        previous_vehicle = trip.reassign_vehicle(vehicle_id)
        await self.trips.save(model, trip)
        if previous_vehicle != vehicle_id:
            await self.assignments.rotate(
                trip_id=trip_id,
                vehicle_id=vehicle_id,
                assigned_by=actor_id,
                at=_utcnow(),
            )

        current = await self.assignments.get_current(trip_id)
        if current is not None:
            current.reason = reason
            current.notes = notes
            await self.session.flush()
        logger.info(
            "Trip %s moved from vehicle %d to %d (%s)",
            model.trip_number, previous_vehicle, vehicle_id, reason.value,
        )
        return model

    # ── Helpers ───────────────────────────────────────────────────

    async def _load(self, trip_id: int) -> tuple[TripModel, Trip]:
        model = await self.trips.get_for_update(trip_id)
        if model is None:
            raise NotFoundError("Trip", trip_id)
        return model, to_trip_entity(model)

    async def _check_references(
        self, details: TripDetails, passengers: list[TripPassenger]
    ) -> None:
        if await self.vehicles.get_by_id(details.vehicle_id) is None:
            raise NotFoundError("Vehicle", details.vehicle_id)
        if details.vehicle_route_id is not None:
            if await self.routes.get_by_id(details.vehicle_route_id) is None:
                raise NotFoundError("VehicleRoute", details.vehicle_route_id)
        if details.department_id is not None:
            if await self.departments.get_by_id(details.department_id) is None:
                raise NotFoundError("Department", details.department_id)

        missing_users = await self.users.missing_ids(p.user_id for p in passengers)
        if missing_users:
            raise NotFoundError("User", missing_users[0])

        stop_ids = {
            stop_id
            for p in passengers
            for stop_id in (p.pickup_stop_id, p.dropoff_stop_id)
            if stop_id is not None
        }
        known = await self.stops.get_reference_set(stop_ids)
        missing_stops = sorted(stop_ids - set(known))
        if missing_stops:
            raise NotFoundError("Stop", missing_stops[0])
