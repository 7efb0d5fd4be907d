"""Typed errors raised by the domain core and the services around it."""

from __future__ import annotations

from typing import Any


class FleetError(Exception):
    """Base class for every error surfaced to request handlers."""


class ValidationError(FleetError):
    """Malformed or out-of-range input; raised before anything is mutated."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class InvalidStateTransition(FleetError):
    """Raised when a trip action is attempted from a status that forbids it."""

    def __init__(self, action: str, current_status: str):
        super().__init__(f"Cannot {action} a trip in status {current_status}")
        self.action = action
        self.current_status = current_status


class NotFoundError(FleetError):
    def __init__(self, entity: str, entity_id: Any):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(FleetError):
    """The operation would break data that other rows still depend on."""
