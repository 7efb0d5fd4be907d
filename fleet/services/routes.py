"""
Stop reference data and vehicle routes.

Every route write recomputes the whole distance table from the submitted
stop order (see ``fleet.domain.distance``) and replaces the stored route
stops with it, so ``total_distance`` is never patched incrementally.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from fleet.domain.distance import compute_route_distances
from fleet.domain.entities import RouteDistanceResult, StopInput
from fleet.domain.exceptions import ConflictError, NotFoundError, ValidationError
from fleet.infrastructure.models import StopModel, VehicleRouteModel
from fleet.infrastructure.repositories import StopRepository, VehicleRouteRepository

logger = logging.getLogger(__name__)


def validate_coordinates(latitude: Optional[float], longitude: Optional[float]) -> None:
    """Both or neither, and within WGS84 ranges."""
    if (latitude is None) != (longitude is None):
        raise ValidationError(
            "latitude and longitude must be given together",
            field="latitude" if latitude is None else "longitude",
        )
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError(
            "latitude must be between -90 and 90", field="latitude", value=latitude
        )
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError(
            "longitude must be between -180 and 180", field="longitude", value=longitude
        )


class StopService:
    def __init__(self, session: AsyncSession):
        self.stops = StopRepository(session)

    async def create_stop(
        self,
        *,
        name: str,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        description: Optional[str] = None,
    ) -> StopModel:
        validate_coordinates(latitude, longitude)
        if await self.stops.get_by_name(name):
            raise ConflictError(f"A stop named {name!r} already exists")

        stop = await self.stops.create(
            StopModel(
                name=name,
                latitude=latitude,
                longitude=longitude,
                description=description,
            )
        )
        logger.info("Stop %d created (%s)", stop.id, name)
        return stop

    async def list_stops(self) -> list[StopModel]:
        return await self.stops.list_all()

    async def get_stop(self, stop_id: int) -> StopModel:
        stop = await self.stops.get_by_id(stop_id)
        if stop is None:
            raise NotFoundError("Stop", stop_id)
        return stop

    async def delete_stop(self, stop_id: int) -> None:
        stop = await self.get_stop(stop_id)
        usages = await self.stops.count_route_usages(stop_id)
        if usages:
            raise ConflictError(
                f"Stop {stop_id} is used by {usages} route stop(s) and cannot be deleted"
            )
        await self.stops.delete(stop)
        logger.info("Stop %d deleted", stop_id)


class RouteService:
    def __init__(self, session: AsyncSession):
        self.routes = VehicleRouteRepository(session)
        self.stops = StopRepository(session)

    async def compute(self, stops: Sequence[StopInput]) -> RouteDistanceResult:
        reference = await self.stops.get_reference_set(s.stop_id for s in stops)
        return compute_route_distances(stops, reference)

    async def create_route(
        self,
        *,
        name: str,
        description: Optional[str] = None,
        remarks: Optional[str] = None,
        stops: Sequence[StopInput] = (),
    ) -> VehicleRouteModel:
        distances = await self.compute(stops)

        route = await self.routes.create(
            VehicleRouteModel(
                name=name,
                description=description,
                remarks=remarks,
                total_distance=0.0,
                route_stops=[],
            )
        )
        await self.routes.replace_stops(route, distances.stops, distances.total_distance)
        logger.info(
            "Route %d created with %d stop(s), %.2f km",
            route.id, len(distances.stops), distances.total_distance,
        )
        return await self.get_route(route.id)

    async def update_route(
        self,
        route_id: int,
        *,
        name: str,
        description: Optional[str] = None,
        remarks: Optional[str] = None,
        stops: Sequence[StopInput] = (),
    ) -> VehicleRouteModel:
        route = await self.routes.get_for_update(route_id)
        if route is None:
            raise NotFoundError("VehicleRoute", route_id)
        distances = await self.compute(stops)

        route.name = name
        route.description = description
        route.remarks = remarks
        await self.routes.replace_stops(route, distances.stops, distances.total_distance)
        logger.info(
            "Route %d updated with %d stop(s), %.2f km",
            route_id, len(distances.stops), distances.total_distance,
        )
        return await self.get_route(route_id)

    async def get_route(self, route_id: int) -> VehicleRouteModel:
        route = await self.routes.get_by_id(route_id)
        if route is None:
            raise NotFoundError("VehicleRoute", route_id)
        return route

    async def delete_route(self, route_id: int) -> None:
        route = await self.get_route(route_id)
        await self.routes.delete(route)
        logger.info("Route %d deleted", route_id)
