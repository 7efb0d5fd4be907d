"""Domain enumerations and the trip state-transition table."""

import enum


class TripStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ASSIGNED = "assigned"  # set by the vehicle-assignment workflow
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TripAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    REASSIGN_VEHICLE = "reassign_vehicle"
    UPDATE = "update"
    DELETE = "delete"


class ScheduleType(str, enum.Enum):
    PICK_AND_DROP = "pick-and-drop"
    ENGINEER = "engineer"
    TRAINING = "training"
    ADHOC = "adhoc"
    REPOSITION = "reposition"


class TripPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PassengerStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    BOARDED = "boarded"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class AssignmentReason(str, enum.Enum):
    INITIAL = "initial"
    DAMAGED = "damaged"
    MAINTENANCE = "maintenance"
    BREAKDOWN = "breakdown"
    REPLACEMENT = "replacement"
    OTHER = "other"


# Reasons an operator may give when swapping a vehicle mid-trip
REASSIGNMENT_REASONS = frozenset(AssignmentReason) - {AssignmentReason.INITIAL}


# State machine: maps action -> (statuses it may run from, resulting status).
# A resulting status of None leaves the status unchanged.
TRIP_TRANSITIONS: dict[TripAction, tuple[frozenset[TripStatus], TripStatus | None]] = {
    TripAction.APPROVE: (
        frozenset({TripStatus.PENDING}),
        TripStatus.APPROVED,
    ),
    TripAction.REJECT: (
        frozenset({TripStatus.PENDING, TripStatus.APPROVED}),
        TripStatus.REJECTED,
    ),
    TripAction.START: (
        frozenset({TripStatus.APPROVED, TripStatus.ASSIGNED}),
        TripStatus.IN_PROGRESS,
    ),
    TripAction.COMPLETE: (
        frozenset({TripStatus.IN_PROGRESS}),
        TripStatus.COMPLETED,
    ),
    TripAction.CANCEL: (
        frozenset({TripStatus.PENDING, TripStatus.APPROVED, TripStatus.ASSIGNED}),
        TripStatus.CANCELLED,
    ),
    TripAction.REASSIGN_VEHICLE: (
        frozenset(
            {
                TripStatus.PENDING,
                TripStatus.APPROVED,
                TripStatus.ASSIGNED,
                TripStatus.IN_PROGRESS,
            }
        ),
        None,
    ),
    TripAction.UPDATE: (
        frozenset({TripStatus.PENDING, TripStatus.APPROVED}),
        None,
    ),
    TripAction.DELETE: (
        frozenset({TripStatus.PENDING}),
        None,
    ),
}
