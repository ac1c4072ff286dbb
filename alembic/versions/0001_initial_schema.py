"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from alembic import op
import sqlalchemy as sa


revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

product_type = sa.Enum("BIKE", "ACCESSORY", "PART", name="producttype")
order_status = sa.Enum("PENDING", "PAID", "SHIPPED", "DELIVERED", "CANCELLED", name="orderstatus")
inspection_type = sa.Enum("INSPECTION", "SERVICE", name="inspectiontype")
inspection_status = sa.Enum("PENDING", "ACCEPTED", "REJECTED", "COMPLETED", "CANCELLED", name="inspectionstatus")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("phone", sa.String(32)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "seller_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("business_name", sa.String(200), nullable=False),
        sa.Column("gst_number", sa.String(32)),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "mechanic_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, unique=True),
        sa.Column("experience_years", sa.Integer(), nullable=False),
        sa.Column("shop_address", sa.String(255), nullable=False),
        sa.Column("hourly_rate", sa.Float(), nullable=False),
        sa.Column("is_mobile_service", sa.Boolean(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "admin_profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False, unique=True),
    )
    op.create_table(
        "user_bikes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("brand", sa.String(80), nullable=False),
        sa.Column("model", sa.String(120), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("registration", sa.String(32)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_user_bikes_user_id", "user_bikes", ["user_id"])

    op.create_table(
        "categories",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(80), nullable=False, unique=True),
    )
    op.create_table(
        "products",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("seller_id", sa.String(36), sa.ForeignKey("seller_profiles.id"), nullable=False),
        sa.Column("category_id", sa.String(36), sa.ForeignKey("categories.id")),
        sa.Column("type", product_type, nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("price", sa.Float(), nullable=False),
        sa.Column("condition", sa.String(32)),
        sa.Column("brand", sa.String(80)),
        sa.Column("model", sa.String(120)),
        sa.Column("year", sa.Integer()),
        sa.Column("km_driven", sa.Integer()),
        sa.Column("ownership", sa.Integer()),
        sa.Column("address", sa.String(255)),
        sa.Column("stock", sa.Integer(), nullable=False),
        sa.Column("is_sold", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )
    op.create_index("ix_products_seller_id", "products", ["seller_id"])
    op.create_index("ix_products_category_id", "products", ["category_id"])

    op.create_table(
        "cart_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("product_id", sa.String(36), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )
    op.create_index("ix_cart_items_user_id", "cart_items", ["user_id"])
    op.create_index("ix_cart_items_product_id", "cart_items", ["product_id"])

    op.create_table(
        "orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("buyer_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("total_amount", sa.Float(), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("payment_id", sa.String(64)),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_id", sa.String(36), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("product_id", sa.String(36), sa.ForeignKey("products.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price_at_purchase", sa.Float(), nullable=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_index("ix_order_items_product_id", "order_items", ["product_id"])

    op.create_table(
        "inspections",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("buyer_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", inspection_type, nullable=False),
        sa.Column("product_id", sa.String(36), sa.ForeignKey("products.id")),
        sa.Column("user_bike_id", sa.String(36), sa.ForeignKey("user_bikes.id")),
        sa.Column("service_type", sa.String(120)),
        sa.Column("mechanic_id", sa.String(36), sa.ForeignKey("mechanic_profiles.id")),
        sa.Column("status", inspection_status, nullable=False),
        sa.Column("offer_amount", sa.Float()),
        sa.Column("message", sa.Text()),
        sa.Column("scheduled_date", sa.DateTime()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("report_data", sa.JSON()),
        sa.Column("completed_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint(
            "(product_id IS NULL) <> (user_bike_id IS NULL)",
            name="ck_inspections_single_subject",
        ),
    )
    op.create_index("ix_inspections_buyer_id", "inspections", ["buyer_id"])
    op.create_index("ix_inspections_product_id", "inspections", ["product_id"])
    op.create_index("ix_inspections_user_bike_id", "inspections", ["user_bike_id"])
    op.create_index("ix_inspections_mechanic_id", "inspections", ["mechanic_id"])


def downgrade() -> None:
    op.drop_table("inspections")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("cart_items")
    op.drop_table("products")
    op.drop_table("categories")
    op.drop_table("user_bikes")
    op.drop_table("admin_profiles")
    op.drop_table("mechanic_profiles")
    op.drop_table("seller_profiles")
    op.drop_table("users")
    inspection_status.drop(op.get_bind(), checkfirst=True)
    inspection_type.drop(op.get_bind(), checkfirst=True)
    order_status.drop(op.get_bind(), checkfirst=True)
    product_type.drop(op.get_bind(), checkfirst=True)
