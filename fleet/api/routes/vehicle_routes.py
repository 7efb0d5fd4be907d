"""
Vehicle route endpoints
=======================

POST   /api/v1/routes            -- create a route and compute its distances
GET    /api/v1/routes/{route_id} -- route with ordered stops and distances
PUT    /api/v1/routes/{route_id} -- replace name/details and the whole stop list
DELETE /api/v1/routes/{route_id} -- delete a route and its route stops
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.api.dependencies import get_db
from fleet.api.middleware import limiter
from fleet.api.schemas import (
    ERROR_RESPONSES,
    RouteResponse,
    RouteStopResponse,
    RouteWriteRequest,
    parse_hhmm,
)
from fleet.config import settings
from fleet.domain.entities import StopInput
from fleet.infrastructure.models import VehicleRouteModel
from fleet.services.routes import RouteService

router = APIRouter(prefix="/routes", tags=["routes"], responses=ERROR_RESPONSES)


def _stop_inputs(body: RouteWriteRequest) -> list[StopInput]:
    return [
        StopInput(
            stop_id=s.stop_id,
            arrival_time=parse_hhmm(s.arrival_time),
            departure_time=parse_hhmm(s.departure_time),
            manual_distance=s.manual_distance,
        )
        for s in body.stops
    ]


def _to_response(route: VehicleRouteModel) -> RouteResponse:
    return RouteResponse(
        id=route.id,
        name=route.name,
        description=route.description,
        remarks=route.remarks,
        total_distance=route.total_distance,
        stops=[
            RouteStopResponse(
                stop_id=rs.stop_id,
                stop_name=rs.stop.name if rs.stop else None,
                stop_order=rs.stop_order,
                arrival_time=rs.arrival_time,
                departure_time=rs.departure_time,
                distance_from_previous=rs.distance_from_previous,
                cumulative_distance=rs.cumulative_distance,
            )
            for rs in route.route_stops
        ],
    )


@router.post("", status_code=201, response_model=RouteResponse, summary="Create a route")
@limiter.limit(settings.rate_limit)
async def create_route(
    request: Request,
    body: RouteWriteRequest,
    db: AsyncSession = Depends(get_db),
):
    route = await RouteService(db).create_route(
        name=body.name,
        description=body.description,
        remarks=body.remarks,
        stops=_stop_inputs(body),
    )
    return _to_response(route)


@router.get("/{route_id}", response_model=RouteResponse, summary="Get a route")
@limiter.limit(settings.rate_limit)
async def get_route(request: Request, route_id: int, db: AsyncSession = Depends(get_db)):
    return _to_response(await RouteService(db).get_route(route_id))


@router.put(
    "/{route_id}",
    response_model=RouteResponse,
    summary="Update a route",
    description=(
        "Replaces the route's stop list and recomputes every leg distance "
        "and the route total."
    ),
)
@limiter.limit(settings.rate_limit)
async def update_route(
    request: Request,
    route_id: int,
    body: RouteWriteRequest,
    db: AsyncSession = Depends(get_db),
):
    route = await RouteService(db).update_route(
        route_id,
        name=body.name,
        description=body.description,
        remarks=body.remarks,
        stops=_stop_inputs(body),
    )
    return _to_response(route)


@router.delete("/{route_id}", status_code=204, summary="Delete a route")
@limiter.limit(settings.rate_limit)
async def delete_route(request: Request, route_id: int, db: AsyncSession = Depends(get_db)):
    await RouteService(db).delete_route(route_id)
