"""Initial schema: reference data, vehicle routes, trips.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # ── users ─────────────────────────────────────────────────────────
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column(
            "total_distance_covered", sa.Float, server_default="0", nullable=False
        ),
        sa.Column(
            "total_trips_completed", sa.Integer, server_default="0", nullable=False
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── departments ───────────────────────────────────────────────────
    op.create_table(
        "departments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(120), nullable=False),
    )

    # ── vehicles ──────────────────────────────────────────────────────
    op.create_table(
        "vehicles",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("registration_number", sa.String(40), unique=True, nullable=False),
        sa.Column("brand", sa.String(80), nullable=True),
        sa.Column("model", sa.String(80), nullable=True),
        sa.Column(
            "driver_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )
    op.create_index("idx_vehicles_driver", "vehicles", ["driver_id"])

    # ── stops ─────────────────────────────────────────────────────────
    op.create_table(
        "stops",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), unique=True, nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
    )

    # ── vehicle_routes / route_stops ──────────────────────────────────
    op.create_table(
        "vehicle_routes",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("remarks", sa.Text, nullable=True),
        sa.Column("total_distance", sa.Float, server_default="0", nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "route_stops",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "vehicle_route_id",
            sa.Integer,
            sa.ForeignKey("vehicle_routes.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("stop_id", sa.Integer, sa.ForeignKey("stops.id"), nullable=False),
        sa.Column("stop_order", sa.Integer, nullable=False),
        sa.Column("arrival_time", sa.Time, nullable=True),
        sa.Column("departure_time", sa.Time, nullable=True),
        sa.Column(
            "distance_from_previous", sa.Float, server_default="0", nullable=False
        ),
        sa.Column("cumulative_distance", sa.Float, server_default="0", nullable=False),
        sa.UniqueConstraint(
            "vehicle_route_id", "stop_order", name="uq_route_stop_order"
        ),
    )
    op.create_index("idx_route_stops_stop", "route_stops", ["stop_id"])

    # ── trips ─────────────────────────────────────────────────────────
    op.create_table(
        "trips",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("trip_number", sa.String(32), unique=True, nullable=False),
        sa.Column(
            "vehicle_route_id",
            sa.Integer,
            sa.ForeignKey("vehicle_routes.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column(
            "department_id",
            sa.Integer,
            sa.ForeignKey("departments.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "requested_by", sa.Integer, sa.ForeignKey("users.id"), nullable=False
        ),
        sa.Column(
            "approved_by", sa.Integer, sa.ForeignKey("users.id"), nullable=True
        ),
        sa.Column("purpose", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("schedule_type", sa.String(32), nullable=False),
        sa.Column("priority", sa.String(32), nullable=False),
        sa.Column("scheduled_date", sa.Date, nullable=False),
        sa.Column("scheduled_start_time", sa.Time, nullable=False),
        sa.Column("scheduled_end_time", sa.Time, nullable=False),
        sa.Column("actual_start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("actual_end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("odometer_start", sa.Float, nullable=True),
        sa.Column("odometer_end", sa.Float, nullable=True),
        sa.Column("fuel_consumed", sa.Float, nullable=True),
        sa.Column("fuel_cost", sa.Float, nullable=True),
        sa.Column("other_costs", sa.Float, nullable=True),
        sa.Column("total_cost", sa.Float, nullable=True),
        sa.Column("status", sa.String(32), server_default="pending", nullable=False),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_trips_status", "trips", ["status"])
    op.create_index("idx_trips_scheduled_date", "trips", ["scheduled_date"])
    op.create_index(
        "idx_trips_vehicle_date", "trips", ["vehicle_id", "scheduled_date"]
    )

    # ── trip_passengers ───────────────────────────────────────────────
    op.create_table(
        "trip_passengers",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer,
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "pickup_stop_id",
            sa.Integer,
            sa.ForeignKey("stops.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "dropoff_stop_id",
            sa.Integer,
            sa.ForeignKey("stops.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("status", sa.String(32), server_default="pending", nullable=False),
        sa.UniqueConstraint("trip_id", "user_id", name="uq_trip_passenger_user"),
    )
    op.create_index(
        "idx_trip_passengers_trip", "trip_passengers", ["trip_id", "status"]
    )

    # ── trip_vehicle_assignments ──────────────────────────────────────
    op.create_table(
        "trip_vehicle_assignments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column(
            "trip_id",
            sa.Integer,
            sa.ForeignKey("trips.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "vehicle_id", sa.Integer, sa.ForeignKey("vehicles.id"), nullable=False
        ),
        sa.Column("assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("unassigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_current", sa.Boolean, server_default=sa.true(), nullable=False),
        sa.Column(
            "assigned_by",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("reason", sa.String(32), nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
    )
    op.create_index(
        "idx_trip_assignments_current",
        "trip_vehicle_assignments",
        ["trip_id", "is_current"],
    )


def downgrade() -> None:
    op.drop_table("trip_vehicle_assignments")
    op.drop_table("trip_passengers")
    op.drop_table("trips")
    op.drop_table("route_stops")
    op.drop_table("vehicle_routes")
    op.drop_table("stops")
    op.drop_table("vehicles")
    op.drop_table("departments")
    op.drop_table("users")
