"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from pydantic import BaseModel, Field

from fleet.domain.enums import (
    AssignmentReason,
    PassengerStatus,
    ScheduleType,
    TripPriority,
    TripStatus,
)

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def parse_hhmm(value: Optional[str]) -> Optional[time]:
    if value is None:
        return None
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


# ── Requests ──────────────────────────────────────────────────────────


class StopCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class RouteStopInput(BaseModel):
    stop_id: int
    arrival_time: Optional[str] = Field(None, pattern=HHMM_PATTERN, examples=["08:30"])
    departure_time: Optional[str] = Field(None, pattern=HHMM_PATTERN, examples=["08:35"])
    manual_distance: Optional[float] = Field(
        None,
        ge=0,
        description="Road distance in km from the previous stop; overrides the computed value.",
    )


class RouteWriteRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    remarks: Optional[str] = None
    stops: list[RouteStopInput] = []


class PassengerInput(BaseModel):
    user_id: int
    pickup_stop_id: Optional[int] = None
    dropoff_stop_id: Optional[int] = None


class TripWriteRequest(BaseModel):
    vehicle_id: int
    vehicle_route_id: Optional[int] = None
    department_id: Optional[int] = None
    purpose: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    schedule_type: ScheduleType = ScheduleType.ADHOC
    priority: TripPriority = TripPriority.MEDIUM
    scheduled_date: date
    scheduled_start_time: time
    scheduled_end_time: time
    notes: Optional[str] = None
    passengers: Optional[list[PassengerInput]] = Field(
        None, description="Replaces the passenger list when given."
    )


class RejectTripRequest(BaseModel):
    rejection_reason: str = Field(..., min_length=1)


class StartTripRequest(BaseModel):
    odometer_start: float = Field(..., ge=0)


class CompleteTripRequest(BaseModel):
    odometer_end: float = Field(..., ge=0)
    fuel_consumed: Optional[float] = Field(None, ge=0)
    fuel_cost: Optional[float] = Field(None, ge=0)
    other_costs: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class ReassignVehicleRequest(BaseModel):
    vehicle_id: int
    reason: AssignmentReason
    notes: Optional[str] = Field(None, max_length=500)


# ── Responses ─────────────────────────────────────────────────────────


class StopResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    model_config = {"from_attributes": True}


class RouteStopResponse(BaseModel):
    stop_id: int
    stop_name: Optional[str] = None
    stop_order: int
    arrival_time: Optional[time] = None
    departure_time: Optional[time] = None
    distance_from_previous: float
    cumulative_distance: float


class RouteResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    remarks: Optional[str] = None
    total_distance: float
    stops: list[RouteStopResponse] = []


class PassengerResponse(BaseModel):
    user_id: int
    pickup_stop_id: Optional[int] = None
    dropoff_stop_id: Optional[int] = None
    status: PassengerStatus

    model_config = {"from_attributes": True}


class TripResponse(BaseModel):
    id: int
    trip_number: str
    vehicle_id: int
    vehicle_route_id: Optional[int] = None
    department_id: Optional[int] = None
    purpose: str
    description: Optional[str] = None
    schedule_type: ScheduleType
    priority: TripPriority
    scheduled_date: date
    scheduled_start_time: time
    scheduled_end_time: time
    requested_by: int
    approved_by: Optional[int] = None
    status: TripStatus
    rejection_reason: Optional[str] = None
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    odometer_start: Optional[float] = None
    odometer_end: Optional[float] = None
    distance_traveled: Optional[float] = None
    fuel_consumed: Optional[float] = None
    fuel_cost: Optional[float] = None
    other_costs: Optional[float] = None
    total_cost: Optional[float] = None
    notes: Optional[str] = None
    passengers: list[PassengerResponse] = []

    model_config = {"from_attributes": True}


class VehicleAssignmentResponse(BaseModel):
    vehicle_id: int
    assigned_at: Optional[datetime] = None
    unassigned_at: Optional[datetime] = None
    is_current: bool
    assigned_by: Optional[int] = None
    reason: Optional[AssignmentReason] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
    current_status: Optional[TripStatus] = None


ERROR_RESPONSES: dict = {
    404: {"model": ErrorResponse, "description": "Referenced entity not found"},
    409: {"model": ErrorResponse, "description": "Conflict or invalid status transition"},
}
