"""
Stop endpoints
==============

POST   /api/v1/stops           -- create a stop (optional coordinates)
GET    /api/v1/stops           -- list stops ordered by name
GET    /api/v1/stops/{stop_id} -- fetch one stop
DELETE /api/v1/stops/{stop_id} -- delete a stop no route uses
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from fleet.api.dependencies import get_db
from fleet.api.middleware import limiter
from fleet.api.schemas import ERROR_RESPONSES, StopCreateRequest, StopResponse
from fleet.config import settings
from fleet.services.routes import StopService

router = APIRouter(prefix="/stops", tags=["stops"], responses=ERROR_RESPONSES)


@router.post("", status_code=201, response_model=StopResponse, summary="Create a stop")
@limiter.limit(settings.rate_limit)
async def create_stop(
    request: Request,
    body: StopCreateRequest,
    db: AsyncSession = Depends(get_db),
):
    return await StopService(db).create_stop(
        name=body.name,
        latitude=body.latitude,
        longitude=body.longitude,
        description=body.description,
    )


@router.get("", response_model=list[StopResponse], summary="List stops")
@limiter.limit(settings.rate_limit)
async def list_stops(request: Request, db: AsyncSession = Depends(get_db)):
    return await StopService(db).list_stops()


@router.get("/{stop_id}", response_model=StopResponse, summary="Get a stop")
@limiter.limit(settings.rate_limit)
async def get_stop(request: Request, stop_id: int, db: AsyncSession = Depends(get_db)):
    return await StopService(db).get_stop(stop_id)


@router.delete("/{stop_id}", status_code=204, summary="Delete a stop")
@limiter.limit(settings.rate_limit)
async def delete_stop(request: Request, stop_id: int, db: AsyncSession = Depends(get_db)):
    await StopService(db).delete_stop(stop_id)
