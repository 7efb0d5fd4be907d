"""
FastAPI application factory.

* Registers routes for stops, vehicle routes, trips and admin.
* Translates domain errors into JSON error responses.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from fleet.api.middleware import limiter
from fleet.api.routes import admin, stops, trips, vehicle_routes
from fleet.config import settings
from fleet.domain.exceptions import (
    ConflictError,
    FleetError,
    InvalidStateTransition,
    NotFoundError,
    ValidationError,
)

logging.basicConfig(level=settings.log_level)

_STATUS_CODES: dict[type[FleetError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    InvalidStateTransition: 409,
    ConflictError: 409,
}


async def _fleet_error_handler(request: Request, exc: FleetError) -> JSONResponse:
    body: dict = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
        body["value"] = exc.value
    elif isinstance(exc, InvalidStateTransition):
        body["current_status"] = exc.current_status
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(exc, cls)), 400
    )
    return JSONResponse(status_code=status_code, content=body)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Fleet Trip & Route API",
        description=(
            "Trip lifecycle (request, approval, execution, completion) and "
            "vehicle routes with per-leg and cumulative distances."
        ),
        version="1.0.0",
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Domain errors
    app.add_exception_handler(FleetError, _fleet_error_handler)

    # Routers
    app.include_router(stops.router, prefix="/api/v1")
    app.include_router(vehicle_routes.router, prefix="/api/v1")
    app.include_router(trips.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
