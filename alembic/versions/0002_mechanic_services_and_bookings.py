"""mechanic services and bookings

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-20 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None

booking_status = sa.Enum("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED", name="bookingstatus")


def upgrade() -> None:
    op.create_table(
        "services",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("mechanic_id", sa.String(36), sa.ForeignKey("mechanic_profiles.id"), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("base_price", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_services_mechanic_id", "services", ["mechanic_id"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("customer_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("mechanic_id", sa.String(36), sa.ForeignKey("mechanic_profiles.id"), nullable=False),
        sa.Column("service_id", sa.String(36), sa.ForeignKey("services.id"), nullable=False),
        sa.Column("date", sa.DateTime(), nullable=False),
        sa.Column("notes", sa.Text()),
        sa.Column("status", booking_status, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_mechanic_id", "bookings", ["mechanic_id"])
    op.create_index("ix_bookings_service_id", "bookings", ["service_id"])


def downgrade() -> None:
    op.drop_table("bookings")
    op.drop_table("services")
    booking_status.drop(op.get_bind(), checkfirst=True)
