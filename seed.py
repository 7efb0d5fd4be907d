"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample users (requesters, an approver, drivers)
  - 1 department
  - 3 vehicles (two with an assigned driver)
  - 5 stops around Dhaka (one without coordinates)
  - 1 route with computed leg distances
  - 3 trips (pending, approved, completed)
"""

import asyncio
from datetime import date, time

from sqlalchemy import text

from fleet.domain.entities import StopInput, TripDetails, TripPassenger
from fleet.domain.enums import ScheduleType, TripPriority
from fleet.infrastructure.database import async_session_factory, engine
from fleet.infrastructure.models import DepartmentModel, UserModel, VehicleModel
from fleet.services.routes import RouteService, StopService
from fleet.services.trips import TripService

USERS = [
    {"name": "Nusrat Jahan", "email": "nusrat@example.com"},
    {"name": "Tanvir Ahmed", "email": "tanvir@example.com"},
    {"name": "Farhana Islam", "email": "farhana@example.com"},
    {"name": "Rafiq Hossain", "email": "rafiq@example.com"},
    {"name": "Sajid Karim", "email": "sajid@example.com"},
    {"name": "Mitu Akter", "email": "mitu@example.com"},
]

STOPS = [
    {"name": "Shahbag", "latitude": 23.7380, "longitude": 90.3958},
    {"name": "Dhaka University", "latitude": 23.7340, "longitude": 90.3928},
    {"name": "Motijheel", "latitude": 23.7330, "longitude": 90.4172},
    {"name": "Gulshan 1", "latitude": 23.7806, "longitude": 90.4163},
    {"name": "Tejgaon Depot", "latitude": None, "longitude": None},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users / department / vehicles ─────────────────────────────
        users = [UserModel(**u) for u in USERS]
        session.add_all(users)
        department = DepartmentModel(name="Field Engineering")
        session.add(department)
        await session.flush()
        requester, approver, passenger, driver_a, driver_b, _ = users
        print(f"  Created {len(users)} users and 1 department")

        vehicles = [
            VehicleModel(registration_number="DHA-GA-1101", brand="Toyota", model="Hiace", driver_id=driver_a.id),
            VehicleModel(registration_number="DHA-GA-1102", brand="Toyota", model="Noah", driver_id=driver_b.id),
            VehicleModel(registration_number="DHA-GA-1103", brand="Nissan", model="Urvan"),
        ]
        session.add_all(vehicles)
        await session.flush()
        print(f"  Created {len(vehicles)} vehicles")

        # ── Stops / route ─────────────────────────────────────────────
        stop_service = StopService(session)
        stops = [await stop_service.create_stop(**s) for s in STOPS]
        print(f"  Created {len(stops)} stops")

        route = await RouteService(session).create_route(
            name="Morning pick-up (Gulshan -> Motijheel)",
            stops=[
                StopInput(stops[3].id, departure_time=time(7, 30)),
                StopInput(stops[0].id, arrival_time=time(7, 55), departure_time=time(8, 0)),
                StopInput(stops[1].id, arrival_time=time(8, 5), departure_time=time(8, 7)),
                StopInput(stops[2].id, arrival_time=time(8, 20)),
                StopInput(stops[4].id, arrival_time=time(8, 45), manual_distance=4.5),
            ],
        )
        print(f"  Created route {route.id} ({route.total_distance:.2f} km)")

        # ── Trips ─────────────────────────────────────────────────────
        trips = TripService(session)
        details = TripDetails(
            vehicle_id=vehicles[0].id,
            purpose="Staff pick-up",
            scheduled_date=date.today(),
            scheduled_start_time=time(7, 30),
            scheduled_end_time=time(9, 0),
            schedule_type=ScheduleType.PICK_AND_DROP,
            vehicle_route_id=route.id,
            department_id=department.id,
        )
        await trips.create_trip(
            details,
            requester.id,
            [TripPassenger(user_id=passenger.id, pickup_stop_id=stops[3].id, dropoff_stop_id=stops[2].id)],
        )

        approved = await trips.create_trip(
            TripDetails(
                vehicle_id=vehicles[1].id,
                purpose="Generator inspection",
                scheduled_date=date.today(),
                scheduled_start_time=time(10, 0),
                scheduled_end_time=time(15, 0),
                schedule_type=ScheduleType.ENGINEER,
                priority=TripPriority.HIGH,
                department_id=department.id,
            ),
            requester.id,
        )
        await trips.approve(approved.id, approver.id)

        completed = await trips.create_trip(
            TripDetails(
                vehicle_id=vehicles[0].id,
                purpose="Airport transfer",
                scheduled_date=date.today(),
                scheduled_start_time=time(5, 0),
                scheduled_end_time=time(6, 30),
            ),
            requester.id,
        )
        await trips.approve(completed.id, approver.id)
        await trips.start(completed.id, odometer_start=48_200)
        await trips.complete(completed.id, 48_236.5, fuel_consumed=4.2, fuel_cost=520.0)
        print("  Created 3 trips (pending, approved, completed)")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
