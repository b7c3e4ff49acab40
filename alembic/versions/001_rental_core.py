# alembic/versions/001_rental_core.py
"""Rental core - accounts, inventory, bookings, credit ledger, audit

Revision ID: 001_rental_core
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the full booking engine schema. On PostgreSQL it also enables
btree_gist and installs the bookings_no_overlap exclusion constraint, which is
the authoritative guarantee that no two CONFIRMED bookings of a unit overlap.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001_rental_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OVERLAP_CONSTRAINT_NAME = "bookings_no_overlap"


def _is_postgres() -> bool:
    bind = op.get_bind()
    dialect_name = bind.dialect.name if bind is not None else "postgresql"
    return dialect_name == "postgresql"


def upgrade() -> None:
    """Create rental core schema."""
    print("Creating rental core schema...")
    is_postgres = _is_postgres()

    if is_postgres:
        print("Ensuring btree_gist extension...")
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug", name="uq_businesses_slug"),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(200), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="CUSTOMER"),
        sa.Column("business_id", sa.String(36), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("ledger_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('CUSTOMER', 'BUSINESS', 'ADMIN')", name="ck_users_role"),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "car_models",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=False),
        sa.Column("make", sa.String(100), nullable=True),
        sa.Column("model", sa.String(100), nullable=True),
        sa.Column("year", sa.Integer(), nullable=True),
        sa.Column("suggested_credits_per_hour", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "suggested_credits_per_hour IS NULL OR suggested_credits_per_hour > 0",
            name="ck_car_models_rate_positive",
        ),
    )

    op.create_table(
        "car_units",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("business_id", sa.String(36), nullable=False),
        sa.Column("car_model_id", sa.String(36), nullable=False),
        sa.Column("display_name", sa.String(200), nullable=True),
        sa.Column("color", sa.String(50), nullable=True),
        sa.Column("color_hex", sa.String(7), nullable=True),
        sa.Column("credits_per_hour", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("booking_version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.ForeignKeyConstraint(["car_model_id"], ["car_models.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "credits_per_hour IS NULL OR credits_per_hour > 0",
            name="ck_car_units_rate_positive",
        ),
    )
    op.create_index("ix_car_units_business_id", "car_units", ["business_id"])
    op.create_index("ix_car_units_car_model_id", "car_units", ["car_model_id"])
    op.create_index("ix_car_units_model_active", "car_units", ["car_model_id", "active"])

    op.create_table(
        "car_blackouts",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("car_unit_id", sa.String(36), nullable=False),
        sa.Column("start_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["car_unit_id"], ["car_units.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("start_ts < end_ts", name="ck_car_blackouts_window"),
    )
    op.create_index(
        "ix_car_blackouts_unit_window", "car_blackouts", ["car_unit_id", "start_ts", "end_ts"]
    )

    print("Creating bookings table...")
    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("car_unit_id", sa.String(36), nullable=False),
        sa.Column("customer_id", sa.String(36), nullable=False),
        sa.Column("start_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_ts", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="CONFIRMED"),
        # Pricing snapshot
        sa.Column("credits_charged", sa.Integer(), nullable=False),
        sa.Column("pricing_mode", sa.String(20), nullable=False),
        sa.Column("hourly_rate_used", sa.Integer(), nullable=False),
        sa.Column("day_price_used", sa.Integer(), nullable=False),
        sa.Column("billable_days", sa.Integer(), nullable=True),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_by_id", sa.String(36), nullable=True),
        sa.ForeignKeyConstraint(["car_unit_id"], ["car_units.id"]),
        sa.ForeignKeyConstraint(["customer_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["canceled_by_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("status IN ('CONFIRMED', 'CANCELED')", name="ck_bookings_status"),
        sa.CheckConstraint(
            "pricing_mode IN ('HOURLY', 'DAY_CAP', 'WEEK_CAP')", name="ck_bookings_pricing_mode"
        ),
        sa.CheckConstraint("start_ts < end_ts", name="ck_bookings_window"),
        sa.CheckConstraint("credits_charged >= 0", name="ck_bookings_credits_non_negative"),
        sa.CheckConstraint("duration_minutes > 0", name="ck_bookings_duration_positive"),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_unit_window", "bookings", ["car_unit_id", "start_ts", "end_ts"])

    if is_postgres:
        print("Adding booking overlap exclusion constraint...")
        op.execute(
            f"""
            ALTER TABLE bookings
            ADD CONSTRAINT {OVERLAP_CONSTRAINT_NAME}
            EXCLUDE USING gist (
                car_unit_id WITH =,
                tstzrange(start_ts, end_ts, '[)') WITH &&
            )
            WHERE (status = 'CONFIRMED')
            """
        )

    op.create_table(
        "credit_ledger",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("delta", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("related_booking_id", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["related_booking_id"], ["bookings.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("delta <> 0", name="ck_credit_ledger_delta_nonzero"),
    )
    op.create_index("ix_credit_ledger_related_booking_id", "credit_ledger", ["related_booking_id"])
    op.create_index("ix_credit_ledger_user_created", "credit_ledger", ["user_id", "created_at"])

    metadata_type = JSONB(astext_type=sa.Text()) if is_postgres else sa.JSON()
    op.create_table(
        "audit_log",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("actor_user_id", sa.String(36), nullable=True),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("metadata", metadata_type, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_entity", "audit_log", ["entity_type", "entity_id"])

    print("Rental core schema created successfully!")


def downgrade() -> None:
    """Drop rental core schema."""
    print("Dropping rental core schema...")

    op.drop_index("ix_audit_log_entity", table_name="audit_log")
    op.drop_table("audit_log")

    op.drop_index("ix_credit_ledger_user_created", table_name="credit_ledger")
    op.drop_index("ix_credit_ledger_related_booking_id", table_name="credit_ledger")
    op.drop_table("credit_ledger")

    if _is_postgres():
        op.execute(f"ALTER TABLE bookings DROP CONSTRAINT IF EXISTS {OVERLAP_CONSTRAINT_NAME}")
    op.drop_index("ix_bookings_unit_window", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_index("ix_bookings_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_car_blackouts_unit_window", table_name="car_blackouts")
    op.drop_table("car_blackouts")

    op.drop_index("ix_car_units_model_active", table_name="car_units")
    op.drop_index("ix_car_units_car_model_id", table_name="car_units")
    op.drop_index("ix_car_units_business_id", table_name="car_units")
    op.drop_table("car_units")

    op.drop_table("car_models")

    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_id", table_name="users")
    op.drop_table("users")

    op.drop_table("businesses")

    print("Rental core schema dropped.")
