"""
SQLAlchemy ORM models  (maps to PostgreSQL).

Tables
------
* ``users``                     -- employees and drivers (driver counters live here)
* ``departments``               -- referenced by trips
* ``vehicles``                  -- fleet vehicles with an optional assigned driver
* ``stops``                     -- named geographic points (reference data)
* ``vehicle_routes``            -- named ordered paths with a derived total distance
* ``route_stops``               -- ordered stop bindings with per-leg distances
* ``trips``                     -- scheduled vehicle movements
* ``trip_passengers``           -- users riding a trip
* ``trip_vehicle_assignments``  -- vehicle history of a trip

Indexes
-------
* **B-Tree** on ``status``, ``scheduled_date`` and the foreign keys used by
  the lifecycle services.
* Unique ``(vehicle_route_id, stop_order)`` keeps stop order dense per route.
"""

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from fleet.domain.enums import (
    AssignmentReason,
    PassengerStatus,
    ScheduleType,
    TripPriority,
    TripStatus,
)


def _enum(enum_cls):
    """Store enum *values* (``pick-and-drop``), not member names."""
    return Enum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    total_distance_covered = Column(Float, default=0.0, nullable=False)
    total_trips_completed = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class DepartmentModel(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)


class VehicleModel(Base):
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    registration_number = Column(String(40), unique=True, nullable=False)
    brand = Column(String(80), nullable=True)
    model = Column(String(80), nullable=True)
    driver_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (Index("idx_vehicles_driver", "driver_id"),)


class StopModel(Base):
    __tablename__ = "stops"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    description = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class VehicleRouteModel(Base):
    __tablename__ = "vehicle_routes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    remarks = Column(Text, nullable=True)
    total_distance = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    route_stops = relationship(
        "RouteStopModel",
        order_by="RouteStopModel.stop_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class RouteStopModel(Base):
    __tablename__ = "route_stops"

    id = Column(Integer, primary_key=True, autoincrement=True)
    vehicle_route_id = Column(
        Integer, ForeignKey("vehicle_routes.id", ondelete="CASCADE"), nullable=False
    )
    stop_id = Column(Integer, ForeignKey("stops.id"), nullable=False)
    stop_order = Column(Integer, nullable=False)
    arrival_time = Column(Time, nullable=True)
    departure_time = Column(Time, nullable=True)
    distance_from_previous = Column(Float, default=0.0, nullable=False)
    cumulative_distance = Column(Float, default=0.0, nullable=False)

    stop = relationship("StopModel", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("vehicle_route_id", "stop_order", name="uq_route_stop_order"),
        Index("idx_route_stops_stop", "stop_id"),
    )


class TripModel(Base):
    __tablename__ = "trips"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_number = Column(String(32), unique=True, nullable=False)

    vehicle_route_id = Column(
        Integer, ForeignKey("vehicle_routes.id", ondelete="SET NULL"), nullable=True
    )
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    department_id = Column(
        Integer, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True
    )
    requested_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    approved_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    purpose = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    schedule_type = Column(_enum(ScheduleType), default=ScheduleType.ADHOC, nullable=False)
    priority = Column(_enum(TripPriority), default=TripPriority.MEDIUM, nullable=False)

    scheduled_date = Column(Date, nullable=False)
    scheduled_start_time = Column(Time, nullable=False)
    scheduled_end_time = Column(Time, nullable=False)
    actual_start_time = Column(DateTime(timezone=True), nullable=True)
    actual_end_time = Column(DateTime(timezone=True), nullable=True)

    odometer_start = Column(Float, nullable=True)
    odometer_end = Column(Float, nullable=True)
    fuel_consumed = Column(Float, nullable=True)
    fuel_cost = Column(Float, nullable=True)
    other_costs = Column(Float, nullable=True)
    total_cost = Column(Float, nullable=True)

    status = Column(_enum(TripStatus), default=TripStatus.PENDING, nullable=False)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    passengers = relationship(
        "TripPassengerModel", cascade="all, delete-orphan", lazy="selectin"
    )

    __table_args__ = (
        Index("idx_trips_status", "status"),
        Index("idx_trips_scheduled_date", "scheduled_date"),
        Index("idx_trips_vehicle_date", "vehicle_id", "scheduled_date"),
    )

    @property
    def distance_traveled(self):
        if self.odometer_start is None or self.odometer_end is None:
            return None
        return self.odometer_end - self.odometer_start


class TripPassengerModel(Base):
    __tablename__ = "trip_passengers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    pickup_stop_id = Column(
        Integer, ForeignKey("stops.id", ondelete="SET NULL"), nullable=True
    )
    dropoff_stop_id = Column(
        Integer, ForeignKey("stops.id", ondelete="SET NULL"), nullable=True
    )
    status = Column(
        _enum(PassengerStatus), default=PassengerStatus.PENDING, nullable=False
    )

    __table_args__ = (
        UniqueConstraint("trip_id", "user_id", name="uq_trip_passenger_user"),
        Index("idx_trip_passengers_trip", "trip_id", "status"),
    )


class TripVehicleAssignmentModel(Base):
    __tablename__ = "trip_vehicle_assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    trip_id = Column(Integer, ForeignKey("trips.id", ondelete="CASCADE"), nullable=False)
    vehicle_id = Column(Integer, ForeignKey("vehicles.id"), nullable=False)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    unassigned_at = Column(DateTime(timezone=True), nullable=True)
    is_current = Column(Boolean, default=True, nullable=False)
    assigned_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reason = Column(_enum(AssignmentReason), nullable=True)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_trip_assignments_current", "trip_id", "is_current"),
    )
