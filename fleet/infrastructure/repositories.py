"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Child collections (route stops, trip
passengers) are replaced wholesale: the old rows are deleted and flushed
before the new rows are inserted, all inside the caller's transaction.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    DepartmentModel,
    RouteStopModel,
    StopModel,
    TripModel,
    TripPassengerModel,
    TripVehicleAssignmentModel,
    UserModel,
    VehicleModel,
    VehicleRouteModel,
)
from fleet.domain.entities import (
    DriverCounterDelta,
    RouteStopDistance,
    Stop,
    Trip,
    TripDetails,
    TripPassenger,
)
from fleet.domain.enums import AssignmentReason


class StopRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, stop: StopModel) -> StopModel:
        self.session.add(stop)
        await self.session.flush()
        return stop

    async def get_by_id(self, stop_id: int) -> Optional[StopModel]:
        return await self.session.get(StopModel, stop_id)

    async def get_by_name(self, name: str) -> Optional[StopModel]:
        result = await self.session.execute(
            select(StopModel).where(StopModel.name == name)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[StopModel]:
        result = await self.session.execute(select(StopModel).order_by(StopModel.name))
        return list(result.scalars().all())

    async def get_reference_set(self, stop_ids: Iterable[int]) -> dict[int, Stop]:
        """Look up stops by id, keyed by id, as domain value objects."""
        ids = set(stop_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(StopModel).where(StopModel.id.in_(ids))
        )
        return {
            s.id: Stop(
                id=s.id,
                name=s.name,
                latitude=s.latitude,
                longitude=s.longitude,
                description=s.description,
            )
            for s in result.scalars().all()
        }

    async def count_route_usages(self, stop_id: int) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(RouteStopModel)
            .where(RouteStopModel.stop_id == stop_id)
        )
        return result.scalar() or 0

    async def delete(self, stop: StopModel) -> None:
        await self.session.delete(stop)
        await self.session.flush()


class VehicleRouteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, route: VehicleRouteModel) -> VehicleRouteModel:
        self.session.add(route)
        await self.session.flush()
        return route

    async def get_by_id(self, route_id: int) -> Optional[VehicleRouteModel]:
        """Load the route with its ordered stops and their ``Stop`` rows."""
        result = await self.session.execute(
            select(VehicleRouteModel)
            .where(VehicleRouteModel.id == route_id)
            .options(
                selectinload(VehicleRouteModel.route_stops).selectinload(
                    RouteStopModel.stop
                )
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_for_update(self, route_id: int) -> Optional[VehicleRouteModel]:
        """SELECT ... FOR UPDATE so concurrent edits of one route serialize."""
        result = await self.session.execute(
            select(VehicleRouteModel)
            .where(VehicleRouteModel.id == route_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def replace_stops(
        self,
        route: VehicleRouteModel,
        stops: list[RouteStopDistance],
        total_distance: float,
    ) -> VehicleRouteModel:
        """Delete every route stop, insert the new sequence, store the total."""
        route.route_stops.clear()
        await self.session.flush()
        route.route_stops.extend(
            RouteStopModel(
                stop_id=s.stop_id,
                stop_order=s.stop_order,
                arrival_time=s.arrival_time,
                departure_time=s.departure_time,
                distance_from_previous=s.distance_from_previous,
                cumulative_distance=s.cumulative_distance,
            )
            for s in stops
        )
        route.total_distance = total_distance
        await self.session.flush()
        return route

    async def delete(self, route: VehicleRouteModel) -> None:
        await self.session.delete(route)
        await self.session.flush()


class TripRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, trip_id: int) -> Optional[TripModel]:
        return await self.session.get(TripModel, trip_id)

    async def get_for_update(self, trip_id: int) -> Optional[TripModel]:
        """
        SELECT ... FOR UPDATE -- the loser of a concurrent transition waits,
        then sees the winner's status and fails the guard.
        """
        result = await self.session.execute(
            select(TripModel)
            .where(TripModel.id == trip_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def next_trip_number(self, prefix: str, on: date) -> str:
        """
        ``PREFIX-YYYYMMDD-NNNN``, one past the highest suffix issued that day.

        The result never collides with a number still in use.
        """
        day_prefix = f"{prefix}-{on:%Y%m%d}-"
        result = await self.session.execute(
            select(func.max(TripModel.trip_number)).where(
                TripModel.trip_number.like(f"{day_prefix}%")
            )
        )
        last = result.scalar()
        sequence = int(last[len(day_prefix):]) + 1 if last else 1
        return f"{day_prefix}{sequence:04d}"

    async def create(self, trip: Trip) -> TripModel:
        model = TripModel(trip_number=trip.trip_number, requested_by=trip.requested_by)
        _apply_trip(model, trip)
        model.passengers = [_passenger_model(p) for p in trip.passengers]
        self.session.add(model)
        await self.session.flush()
        trip.id = model.id
        return model

    async def save(self, model: TripModel, trip: Trip, *, passengers_changed: bool = False) -> TripModel:
        """Write the entity's state back onto its row."""
        _apply_trip(model, trip)
        if passengers_changed:
            model.passengers.clear()
            await self.session.flush()
            model.passengers.extend(_passenger_model(p) for p in trip.passengers)
        await self.session.flush()
        return model

    async def delete(self, model: TripModel) -> None:
        await self.session.execute(
            delete(TripVehicleAssignmentModel).where(
                TripVehicleAssignmentModel.trip_id == model.id
            )
        )
        await self.session.delete(model)
        await self.session.flush()


class TripVehicleAssignmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_current(self, trip_id: int) -> Optional[TripVehicleAssignmentModel]:
        result = await self.session.execute(
            select(TripVehicleAssignmentModel)
            .where(
                TripVehicleAssignmentModel.trip_id == trip_id,
                TripVehicleAssignmentModel.is_current.is_(True),
            )
            .order_by(
                TripVehicleAssignmentModel.assigned_at.desc(),
                TripVehicleAssignmentModel.id.desc(),
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_for_trip(self, trip_id: int) -> list[TripVehicleAssignmentModel]:
        result = await self.session.execute(
            select(TripVehicleAssignmentModel)
            .where(TripVehicleAssignmentModel.trip_id == trip_id)
            .order_by(TripVehicleAssignmentModel.id)
        )
        return list(result.scalars().all())

    async def open(
        self,
        *,
        trip_id: int,
        vehicle_id: int,
        assigned_by: Optional[int],
        reason: AssignmentReason,
        at: datetime,
    ) -> TripVehicleAssignmentModel:
        assignment = TripVehicleAssignmentModel(
            trip_id=trip_id,
            vehicle_id=vehicle_id,
            assigned_at=at,
            is_current=True,
            assigned_by=assigned_by,
            reason=reason,
        )
        self.session.add(assignment)
        await self.session.flush()
        return assignment

    async def rotate(
        self,
        *,
        trip_id: int,
        vehicle_id: int,
        assigned_by: Optional[int],
        at: datetime,
    ) -> TripVehicleAssignmentModel:
        """Close the current assignment and open a ``replacement`` one."""
        previous = await self.get_current(trip_id)
        if previous is not None:
            previous.unassigned_at = at
            previous.is_current = False
        return await self.open(
            trip_id=trip_id,
            vehicle_id=vehicle_id,
            assigned_by=assigned_by,
            reason=AssignmentReason.REPLACEMENT,
            at=at,
        )


class VehicleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, vehicle_id: int) -> Optional[VehicleModel]:
        return await self.session.get(VehicleModel, vehicle_id)


class DepartmentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, department_id: int) -> Optional[DepartmentModel]:
        return await self.session.get(DepartmentModel, department_id)


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: int) -> Optional[UserModel]:
        return await self.session.get(UserModel, user_id)

    async def missing_ids(self, user_ids: Iterable[int]) -> list[int]:
        ids = set(user_ids)
        if not ids:
            return []
        result = await self.session.execute(
            select(UserModel.id).where(UserModel.id.in_(ids))
        )
        return sorted(ids - set(result.scalars().all()))

    async def apply_counter_delta(self, delta: DriverCounterDelta) -> None:
        """Increment the driver counters in SQL so concurrent completions add up."""
        await self.session.execute(
            update(UserModel)
            .where(UserModel.id == delta.driver_id)
            .values(
                total_distance_covered=UserModel.total_distance_covered
                + delta.distance_km,
                total_trips_completed=UserModel.total_trips_completed
                + delta.trips_completed,
            )
            .execution_options(synchronize_session="fetch")
        )


# ── Mapping helpers ───────────────────────────────────────────────────


def to_trip_entity(model: TripModel) -> Trip:
    return Trip(
        id=model.id,
        trip_number=model.trip_number,
        details=TripDetails(
            vehicle_id=model.vehicle_id,
            purpose=model.purpose,
            scheduled_date=model.scheduled_date,
            scheduled_start_time=model.scheduled_start_time,
            scheduled_end_time=model.scheduled_end_time,
            schedule_type=model.schedule_type,
            priority=model.priority,
            vehicle_route_id=model.vehicle_route_id,
            department_id=model.department_id,
            description=model.description,
            notes=model.notes,
        ),
        requested_by=model.requested_by,
        status=model.status,
        approved_by=model.approved_by,
        rejection_reason=model.rejection_reason,
        actual_start_time=model.actual_start_time,
        actual_end_time=model.actual_end_time,
        odometer_start=model.odometer_start,
        odometer_end=model.odometer_end,
        fuel_consumed=model.fuel_consumed,
        fuel_cost=model.fuel_cost,
        other_costs=model.other_costs,
        total_cost=model.total_cost,
        passengers=[
            TripPassenger(
                user_id=p.user_id,
                pickup_stop_id=p.pickup_stop_id,
                dropoff_stop_id=p.dropoff_stop_id,
                status=p.status,
            )
            for p in model.passengers
        ],
    )


def _apply_trip(model: TripModel, trip: Trip) -> None:
    d = trip.details
    model.vehicle_id = d.vehicle_id
    model.vehicle_route_id = d.vehicle_route_id
    model.department_id = d.department_id
    model.purpose = d.purpose
    model.description = d.description
    model.schedule_type = d.schedule_type
    model.priority = d.priority
    model.scheduled_date = d.scheduled_date
    model.scheduled_start_time = d.scheduled_start_time
    model.scheduled_end_time = d.scheduled_end_time
    model.notes = d.notes

    model.status = trip.status
    model.approved_by = trip.approved_by
    model.rejection_reason = trip.rejection_reason
    model.actual_start_time = trip.actual_start_time
    model.actual_end_time = trip.actual_end_time
    model.odometer_start = trip.odometer_start
    model.odometer_end = trip.odometer_end
    model.fuel_consumed = trip.fuel_consumed
    model.fuel_cost = trip.fuel_cost
    model.other_costs = trip.other_costs
    model.total_cost = trip.total_cost


def _passenger_model(passenger: TripPassenger) -> TripPassengerModel:
    return TripPassengerModel(
        user_id=passenger.user_id,
        pickup_stop_id=passenger.pickup_stop_id,
        dropoff_stop_id=passenger.dropoff_stop_id,
        status=passenger.status,
    )
