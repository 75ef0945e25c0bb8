"""Initial schema: catalog, brands, users, schedule, appointments

Revision ID: 001
Revises: None
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

APPOINTMENT_STATUSES = ("SCHEDULED", "CONFIRMED", "CANCELLED", "NO_SHOW", "COMPLETED")


def upgrade() -> None:
    op.create_table(
        "business_types",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.String, unique=True, index=True, nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("subtitle", sa.String, nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("icon", sa.String, nullable=False),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "features",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.String, unique=True, index=True, nullable=False),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("subtitle", sa.String, nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("price", sa.Float, nullable=False, server_default="0"),
        sa.Column("category", sa.String, nullable=False),
        sa.Column("is_recommended", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("is_popular", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("order", sa.Integer, nullable=False, server_default="0"),
        sa.Column("business_types", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "plans",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("type", sa.String, unique=True, nullable=False),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("base_price", sa.Float, nullable=False),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "brands",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("slug", sa.String, unique=True, index=True, nullable=False),
        sa.Column("business_type_key", sa.String, nullable=True),
        sa.Column("plan_id", sa.Integer, sa.ForeignKey("plans.id"), nullable=True),
        sa.Column("feature_keys", sa.JSON, nullable=True),
        sa.Column("timezone", sa.String, nullable=True),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String, index=True, nullable=False),
        sa.Column("hashed_password", sa.String, nullable=False),
        sa.Column("brand_id", sa.Integer, sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=True, index=True),
        sa.Column("first_name", sa.String, nullable=True),
        sa.Column("last_name", sa.String, nullable=True),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("role", sa.String, nullable=False, server_default="CLIENT"),
        sa.Column("is_active", sa.Boolean, server_default=sa.true()),
        sa.Column("last_login_at", sa.DateTime, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("brand_id", "email", name="uq_users_brand_email"),
    )

    op.create_table(
        "business_hours",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("brand_id", sa.Integer, sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("day_of_week", sa.Integer, nullable=False),
        sa.Column("is_open", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("open_time", sa.String, nullable=True),
        sa.Column("close_time", sa.String, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("brand_id", "day_of_week", name="uq_business_hours_brand_day"),
    )
    op.create_table(
        "special_hours",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("brand_id", sa.Integer, sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("date", sa.Date, nullable=False, index=True),
        sa.Column("is_open", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("open_time", sa.String, nullable=True),
        sa.Column("close_time", sa.String, nullable=True),
        sa.Column("reason", sa.String, nullable=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
        sa.UniqueConstraint("brand_id", "date", name="uq_special_hours_brand_date"),
    )
    op.create_table(
        "appointment_settings",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("brand_id", sa.Integer, sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, unique=True),
        sa.Column("default_duration", sa.Integer, nullable=False, server_default="30"),
        sa.Column("buffer_time", sa.Integer, nullable=False, server_default="5"),
        sa.Column("min_advance_booking_hours", sa.Integer, nullable=False, server_default="2"),
        sa.Column("max_advance_booking_days", sa.Integer, nullable=False, server_default="30"),
        sa.Column("allow_same_day_booking", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("brand_id", sa.Integer, sa.ForeignKey("brands.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("client_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("created_by_id", sa.Integer, sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("start_time", sa.DateTime, nullable=False, index=True),
        sa.Column("end_time", sa.DateTime, nullable=False),
        sa.Column("duration", sa.Integer, nullable=False),
        sa.Column(
            "status",
            sa.Enum(*APPOINTMENT_STATUSES, name="appointmentstatus"),
            nullable=False,
            server_default="SCHEDULED",
            index=True,
        ),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("appointments")
    op.drop_table("appointment_settings")
    op.drop_table("special_hours")
    op.drop_table("business_hours")
    op.drop_table("users")
    op.drop_table("brands")
    op.drop_table("plans")
    op.drop_table("features")
    op.drop_table("business_types")
    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS appointmentstatus")
