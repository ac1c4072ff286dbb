from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from datetime import datetime
from uuid import uuid4
import enum

from marketplace.database import Base


def new_id() -> str:
    return str(uuid4())


class ProductType(enum.Enum):
    BIKE = "BIKE"
    ACCESSORY = "ACCESSORY"
    PART = "PART"


class OrderStatus(enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class InspectionType(enum.Enum):
    INSPECTION = "INSPECTION"
    SERVICE = "SERVICE"


class InspectionStatus(enum.Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class BookingStatus(enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    name = Column(String(120), nullable=False)
    phone = Column(String(32))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    seller_profile = relationship("SellerProfile", back_populates="user", uselist=False)
    mechanic_profile = relationship("MechanicProfile", back_populates="user", uselist=False)
    admin_profile = relationship("AdminProfile", back_populates="user", uselist=False)
    bikes = relationship("UserBike", back_populates="user")


class SellerProfile(Base):
    __tablename__ = "seller_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    business_name = Column(String(200), nullable=False)
    gst_number = Column(String(32))
    is_verified = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="seller_profile")
    products = relationship("Product", back_populates="seller")


class MechanicProfile(Base):
    __tablename__ = "mechanic_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)
    experience_years = Column(Integer, nullable=False)
    shop_address = Column(String(255), nullable=False)
    hourly_rate = Column(Float, nullable=False)
    is_mobile_service = Column(Boolean, default=False, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="mechanic_profile")
    services = relationship("Service", back_populates="mechanic", order_by="Service.created_at")


class AdminProfile(Base):
    __tablename__ = "admin_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)

    user = relationship("User", back_populates="admin_profile")


class UserBike(Base):
    __tablename__ = "user_bikes"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    brand = Column(String(80), nullable=False, default="")
    model = Column(String(120), nullable=False)
    year = Column(Integer, nullable=False)
    registration = Column(String(32))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="bikes")


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(80), unique=True, nullable=False)


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    seller_id = Column(String(36), ForeignKey("seller_profiles.id"), index=True, nullable=False)
    category_id = Column(String(36), ForeignKey("categories.id"), index=True)
    type = Column(Enum(ProductType), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Float, nullable=False)
    condition = Column(String(32))
    brand = Column(String(80))
    model = Column(String(120))
    year = Column(Integer)
    km_driven = Column(Integer)
    ownership = Column(Integer)
    address = Column(String(255))
    stock = Column(Integer, default=1, nullable=False)
    is_sold = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    seller = relationship("SellerProfile", back_populates="products")
    category = relationship("Category")


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    product = relationship("Product")


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    buyer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    total_amount = Column(Float, nullable=False)
    # Shared by every item, even when the items come from different sellers
    status = Column(Enum(OrderStatus), default=OrderStatus.PENDING, nullable=False)
    payment_id = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    buyer = relationship("User")
    items = relationship("OrderItem", back_populates="order", order_by="OrderItem.id")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=new_id)
    order_id = Column(String(36), ForeignKey("orders.id"), index=True, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), index=True, nullable=False)
    quantity = Column(Integer, nullable=False)
    price_at_purchase = Column(Float, nullable=False)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")


class Inspection(Base):
    __tablename__ = "inspections"
    __table_args__ = (
        CheckConstraint(
            "(product_id IS NULL) <> (user_bike_id IS NULL)",
            name="ck_inspections_single_subject",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    buyer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    type = Column(Enum(InspectionType), default=InspectionType.INSPECTION, nullable=False)
    product_id = Column(String(36), ForeignKey("products.id"), index=True)
    user_bike_id = Column(String(36), ForeignKey("user_bikes.id"), index=True)
    service_type = Column(String(120))
    mechanic_id = Column(String(36), ForeignKey("mechanic_profiles.id"), index=True)
    status = Column(Enum(InspectionStatus), default=InspectionStatus.PENDING, nullable=False)
    offer_amount = Column(Float)
    message = Column(Text)
    scheduled_date = Column(DateTime)
    rejection_reason = Column(Text)
    report_data = Column(JSON)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    buyer = relationship("User")
    product = relationship("Product")
    user_bike = relationship("UserBike")
    mechanic = relationship("MechanicProfile")


class Service(Base):
    """A priced job a mechanic offers for booking."""
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=new_id)
    mechanic_id = Column(String(36), ForeignKey("mechanic_profiles.id"), index=True, nullable=False)
    name = Column(String(120), nullable=False)
    description = Column(Text)
    base_price = Column(Float, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    mechanic = relationship("MechanicProfile", back_populates="services")


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    customer_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    mechanic_id = Column(String(36), ForeignKey("mechanic_profiles.id"), index=True, nullable=False)
    service_id = Column(String(36), ForeignKey("services.id"), index=True, nullable=False)
    date = Column(DateTime, nullable=False)
    notes = Column(Text)
    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    customer = relationship("User")
    mechanic = relationship("MechanicProfile")
    service = relationship("Service")
