"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL.  The production models carry no PostgreSQL-only column
types, so the real metadata is created directly.  ``StaticPool`` keeps a
single connection alive so every session sees the same in-memory database.
"""

from datetime import date, time
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from fleet.domain.entities import TripDetails
from fleet.domain.enums import ScheduleType, TripPriority
from fleet.infrastructure.database import Base
from fleet.infrastructure.models import (
    DepartmentModel,
    StopModel,
    UserModel,
    VehicleModel,
)

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Seeded ids
REQUESTER_ID = 1
APPROVER_ID = 2
DRIVER_ID = 3
PASSENGER_ID = 4
VEHICLE_WITH_DRIVER_ID = 1
VEHICLE_WITHOUT_DRIVER_ID = 2
SPARE_VEHICLE_ID = 3
DEPARTMENT_ID = 1

# Dhaka: Shahbag -> Dhaka University area -> Motijheel
STOP_A = (23.8103, 90.4125)
STOP_B = (23.7808, 90.4128)
STOP_C = (23.7330, 90.4172)


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Create tables on a fresh in-memory database, seed it, then drop it."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        await _seed(session)
        await session.commit()

    yield factory

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient whose requests each run in their own SQLite transaction."""
    from fleet.api.app import create_app
    from fleet.api.dependencies import get_db
    from fleet.api.middleware import limiter

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_db] = _test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-Actor-Id": str(REQUESTER_ID)},
    ) as ac:
        yield ac


@pytest.fixture
def trip_details() -> TripDetails:
    return TripDetails(
        vehicle_id=VEHICLE_WITH_DRIVER_ID,
        purpose="Site visit",
        scheduled_date=date(2026, 10, 20),
        scheduled_start_time=time(9, 0),
        scheduled_end_time=time(17, 0),
        schedule_type=ScheduleType.ENGINEER,
        priority=TripPriority.HIGH,
        department_id=DEPARTMENT_ID,
    )


async def _seed(session: AsyncSession) -> None:
    session.add_all(
        [
            UserModel(id=REQUESTER_ID, name="Requester", email="requester@example.com"),
            UserModel(id=APPROVER_ID, name="Approver", email="approver@example.com"),
            UserModel(
                id=DRIVER_ID,
                name="Driver",
                email="driver@example.com",
                total_distance_covered=1000.0,
                total_trips_completed=10,
            ),
            UserModel(id=PASSENGER_ID, name="Passenger", email="passenger@example.com"),
            DepartmentModel(id=DEPARTMENT_ID, name="Engineering"),
        ]
    )
    await session.flush()
    session.add_all(
        [
            VehicleModel(
                id=VEHICLE_WITH_DRIVER_ID,
                registration_number="DHA-1001",
                brand="Toyota",
                model="Hiace",
                driver_id=DRIVER_ID,
            ),
            VehicleModel(
                id=VEHICLE_WITHOUT_DRIVER_ID,
                registration_number="DHA-1002",
                brand="Toyota",
                model="Noah",
            ),
            VehicleModel(
                id=SPARE_VEHICLE_ID,
                registration_number="DHA-1003",
                brand="Nissan",
                model="Urvan",
            ),
            StopModel(id=1, name="Shahbag", latitude=STOP_A[0], longitude=STOP_A[1]),
            StopModel(id=2, name="Dhaka University", latitude=STOP_B[0], longitude=STOP_B[1]),
            StopModel(id=3, name="Motijheel", latitude=STOP_C[0], longitude=STOP_C[1]),
            StopModel(id=4, name="Depot (no coordinates)"),
        ]
    )
