"""
Trip endpoints
==============

POST   /api/v1/trips                             -- request a trip (status pending)
GET    /api/v1/trips/{trip_id}                   -- trip with passengers
PUT    /api/v1/trips/{trip_id}                   -- edit a pending/approved trip
DELETE /api/v1/trips/{trip_id}                   -- delete a pending trip
POST   /api/v1/trips/{trip_id}/approve           -- pending -> approved
POST   /api/v1/trips/{trip_id}/reject            -- pending|approved -> rejected
POST   /api/v1/trips/{trip_id}/start             -- approved|assigned -> in_progress
POST   /api/v1/trips/{trip_id}/complete          -- in_progress -> completed
POST   /api/v1/trips/{trip_id}/cancel            -- pending|approved|assigned -> cancelled
POST   /api/v1/trips/{trip_id}/reassign-vehicle  -- swap the vehicle of an active trip
GET    /api/v1/trips/{trip_id}/vehicle-assignments -- vehicle history

A transition attempted from the wrong status answers 409 with the trip's
current status; the trip is left untouched.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.api.dependencies import get_current_actor_id, get_db
from fleet.api.middleware import limiter
from fleet.api.schemas import (
    ERROR_RESPONSES,
    CompleteTripRequest,
    ReassignVehicleRequest,
    RejectTripRequest,
    StartTripRequest,
    TripResponse,
    TripWriteRequest,
    VehicleAssignmentResponse,
)
from fleet.config import settings
from fleet.domain.entities import TripDetails, TripPassenger
from fleet.infrastructure.repositories import TripVehicleAssignmentRepository
from fleet.services.trips import TripService

router = APIRouter(prefix="/trips", tags=["trips"], responses=ERROR_RESPONSES)


def _details(body: TripWriteRequest) -> TripDetails:
    return TripDetails(
        vehicle_id=body.vehicle_id,
        vehicle_route_id=body.vehicle_route_id,
        department_id=body.department_id,
        purpose=body.purpose,
        description=body.description,
        schedule_type=body.schedule_type,
        priority=body.priority,
        scheduled_date=body.scheduled_date,
        scheduled_start_time=body.scheduled_start_time,
        scheduled_end_time=body.scheduled_end_time,
        notes=body.notes,
    )


def _passengers(body: TripWriteRequest) -> list[TripPassenger] | None:
    if body.passengers is None:
        return None
    return [
        TripPassenger(
            user_id=p.user_id,
            pickup_stop_id=p.pickup_stop_id,
            dropoff_stop_id=p.dropoff_stop_id,
        )
        for p in body.passengers
    ]


@router.post("", status_code=201, response_model=TripResponse, summary="Request a trip")
@limiter.limit(settings.rate_limit)
async def create_trip(
    request: Request,
    body: TripWriteRequest,
    actor_id: int = Depends(get_current_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).create_trip(_details(body), actor_id, _passengers(body))


@router.get("/{trip_id}", response_model=TripResponse, summary="Get a trip")
@limiter.limit(settings.rate_limit)
async def get_trip(request: Request, trip_id: int, db: AsyncSession = Depends(get_db)):
    return await TripService(db).get_trip(trip_id)


@router.put("/{trip_id}", response_model=TripResponse, summary="Edit a trip")
@limiter.limit(settings.rate_limit)
async def update_trip(
    request: Request,
    trip_id: int,
    body: TripWriteRequest,
    actor_id: int = Depends(get_current_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).update_trip(
        trip_id, _details(body), actor_id, _passengers(body)
    )


@router.delete("/{trip_id}", status_code=204, summary="Delete a pending trip")
@limiter.limit(settings.rate_limit)
async def delete_trip(request: Request, trip_id: int, db: AsyncSession = Depends(get_db)):
    await TripService(db).delete_trip(trip_id)


@router.post("/{trip_id}/approve", response_model=TripResponse, summary="Approve a trip")
@limiter.limit(settings.rate_limit)
async def approve_trip(
    request: Request,
    trip_id: int,
    actor_id: int = Depends(get_current_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).approve(trip_id, actor_id)


@router.post("/{trip_id}/reject", response_model=TripResponse, summary="Reject a trip")
@limiter.limit(settings.rate_limit)
async def reject_trip(
    request: Request,
    trip_id: int,
    body: RejectTripRequest,
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).reject(trip_id, body.rejection_reason)


@router.post("/{trip_id}/start", response_model=TripResponse, summary="Start a trip")
@limiter.limit(settings.rate_limit)
async def start_trip(
    request: Request,
    trip_id: int,
    body: StartTripRequest,
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).start(trip_id, body.odometer_start)


@router.post(
    "/{trip_id}/complete",
    response_model=TripResponse,
    summary="Complete a trip",
    description=(
        "Records the closing odometer and costs.  When the vehicle has an "
        "assigned driver, the distance travelled is added to that driver's "
        "totals in the same transaction."
    ),
)
@limiter.limit(settings.rate_limit)
async def complete_trip(
    request: Request,
    trip_id: int,
    body: CompleteTripRequest,
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).complete(
        trip_id,
        body.odometer_end,
        fuel_consumed=body.fuel_consumed,
        fuel_cost=body.fuel_cost,
        other_costs=body.other_costs,
        notes=body.notes,
    )


@router.post("/{trip_id}/cancel", response_model=TripResponse, summary="Cancel a trip")
@limiter.limit(settings.rate_limit)
async def cancel_trip(request: Request, trip_id: int, db: AsyncSession = Depends(get_db)):
    return await TripService(db).cancel(trip_id)


@router.post(
    "/{trip_id}/reassign-vehicle",
    response_model=TripResponse,
    summary="Reassign the trip's vehicle",
)
@limiter.limit(settings.rate_limit)
async def reassign_vehicle(
    request: Request,
    trip_id: int,
    body: ReassignVehicleRequest,
    actor_id: int = Depends(get_current_actor_id),
    db: AsyncSession = Depends(get_db),
):
    return await TripService(db).reassign_vehicle(
        trip_id, body.vehicle_id, body.reason, actor_id, notes=body.notes
    )


@router.get(
    "/{trip_id}/vehicle-assignments",
    response_model=list[VehicleAssignmentResponse],
    summary="Vehicle assignment history of a trip",
)
@limiter.limit(settings.rate_limit)
async def list_vehicle_assignments(
    request: Request, trip_id: int, db: AsyncSession = Depends(get_db)
):
    await TripService(db).get_trip(trip_id)
    return await TripVehicleAssignmentRepository(db).list_for_trip(trip_id)
