from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from marketplace.models import BookingStatus, InspectionStatus, InspectionType, OrderStatus, ProductType


# --- Auth & users ---

class RoleDetails(BaseModel):
    # seller
    business_name: Optional[str] = None
    gst_number: Optional[str] = None
    # mechanic
    experience_years: Optional[int] = None
    shop_address: Optional[str] = None
    hourly_rate: Optional[float] = None
    is_mobile_service: bool = False
    # plain user with a bike to put in the garage
    has_bike: bool = False
    bike_model: Optional[str] = None
    bike_year: Optional[int] = None
    registration: Optional[str] = None


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: Literal["user", "seller", "mechanic"] = "user"
    role_details: Optional[RoleDetails] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserSummary(BaseModel):
    id: str
    name: str
    roles: Dict[str, bool]


class AuthResponse(BaseModel):
    message: Optional[str] = None
    token: str
    user: UserSummary


class ProfileRead(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    created_at: datetime
    roles: Dict[str, bool]


class BikeCreate(BaseModel):
    brand: str = Field(..., min_length=1)
    model: str = Field(..., min_length=1)
    year: int = Field(..., example=2021)
    registration: Optional[str] = None


class BikeRead(BaseModel):
    id: str
    user_id: str
    brand: str
    model: str
    year: int
    registration: Optional[str] = None

    class Config:
        from_attributes = True


class PartyRead(BaseModel):
    """A person shown alongside an order or inspection."""
    id: Optional[str] = None
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None


# --- Catalog ---

class CategoryCreate(BaseModel):
    name: str


class CategoryRead(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class ProductCreate(BaseModel):
    type: ProductType
    title: str = Field(..., min_length=1, example="Royal Enfield Classic 350")
    description: Optional[str] = None
    price: float = Field(..., gt=0.0)
    category: str = Field(..., description="Category id or name")
    condition: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    km_driven: Optional[int] = None
    ownership: Optional[int] = None
    stock: Optional[int] = Field(None, ge=0)
    address: Optional[str] = None


class ProductUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0.0)
    condition: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    km_driven: Optional[int] = None
    ownership: Optional[int] = None
    stock: Optional[int] = Field(None, ge=0)
    is_sold: Optional[bool] = None
    address: Optional[str] = None


class ProductRead(BaseModel):
    id: str
    seller_id: str
    category_id: Optional[str] = None
    type: ProductType
    title: str
    description: Optional[str] = None
    price: float
    condition: Optional[str] = None
    brand: Optional[str] = None
    model: Optional[str] = None
    year: Optional[int] = None
    km_driven: Optional[int] = None
    ownership: Optional[int] = None
    address: Optional[str] = None
    stock: int
    is_sold: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProductSummary(BaseModel):
    id: str
    title: str
    type: ProductType
    price: float
    brand: Optional[str] = None
    model: Optional[str] = None
    address: Optional[str] = None

    class Config:
        from_attributes = True


# --- Cart & orders ---

class CartItemCreate(BaseModel):
    product_id: str = Field(..., example="7c9e6679-7425-40de-944b-e07fc1f90ae7")
    quantity: int = Field(1, gt=0, example=1)


class CartItemUpdate(BaseModel):
    quantity: int


class CartItemRead(BaseModel):
    id: str
    user_id: str
    product_id: str
    quantity: int
    product: Optional[ProductRead] = None

    class Config:
        from_attributes = True


class OrderItemRead(BaseModel):
    id: str
    product_id: str
    quantity: int
    price_at_purchase: float
    product: Optional[ProductSummary] = None

    class Config:
        from_attributes = True


class OrderRead(BaseModel):
    id: str
    buyer_id: str
    total_amount: float
    status: OrderStatus
    payment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemRead] = []
    buyer: Optional[PartyRead] = None


class CheckoutResponse(BaseModel):
    message: str
    order: OrderRead


class OrderStatusUpdate(BaseModel):
    status: str


class SaleOrderInfo(BaseModel):
    id: str
    status: OrderStatus
    created_at: datetime
    buyer: PartyRead


class SaleRead(BaseModel):
    """One order line seen from the seller's side."""
    id: str
    product_id: str
    quantity: int
    price_at_purchase: float
    product: ProductSummary
    order: SaleOrderInfo


class MessageResponse(BaseModel):
    message: str


# --- Inspections ---

class InspectionCreate(BaseModel):
    type: str = "INSPECTION"
    product_id: Optional[str] = None
    user_bike_id: Optional[str] = None
    service_type: Optional[str] = Field(None, example="Water Wash")
    offer_amount: Optional[float] = None
    message: Optional[str] = None
    scheduled_date: Optional[datetime] = None


class InspectionStatusUpdate(BaseModel):
    status: str
    rejection_reason: Optional[str] = None


class InspectionReportCreate(BaseModel):
    scores: Dict[str, Any] = Field(..., example={"engine": 80, "brakes": 70})
    overall_comment: Optional[str] = None


class InspectionRead(BaseModel):
    id: str
    buyer_id: str
    type: InspectionType
    product_id: Optional[str] = None
    user_bike_id: Optional[str] = None
    service_type: Optional[str] = None
    mechanic_id: Optional[str] = None
    status: InspectionStatus
    offer_amount: Optional[float] = None
    message: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    report_data: Optional[Dict[str, Any]] = None
    completed_at: Optional[datetime] = None
    created_at: datetime
    product: Optional[ProductSummary] = None
    user_bike: Optional[BikeRead] = None
    buyer: Optional[PartyRead] = None
    mechanic: Optional[PartyRead] = None


# --- Mechanics & bookings ---

class ServiceCreate(BaseModel):
    name: str = Field(..., min_length=1, example="Engine Oil Change")
    description: Optional[str] = None
    base_price: float = Field(..., gt=0.0, example=800.0)


class ServiceRead(BaseModel):
    id: str
    mechanic_id: str
    name: str
    description: Optional[str] = None
    base_price: float

    class Config:
        from_attributes = True


class MechanicProfileUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    experience_years: Optional[int] = Field(None, ge=0)
    shop_address: Optional[str] = None
    is_mobile_service: Optional[bool] = None
    hourly_rate: Optional[float] = Field(None, gt=0.0)


class MechanicRead(BaseModel):
    id: str
    user_id: str
    name: str
    phone: Optional[str] = None
    experience_years: int
    shop_address: str
    is_mobile_service: bool
    hourly_rate: float
    is_verified: bool
    services: List[ServiceRead] = []


class BookingCreate(BaseModel):
    mechanic_id: str
    service_id: str
    date: datetime = Field(..., example="2024-12-25T10:00:00Z")
    notes: Optional[str] = Field(None, example="Please bring spare parts")


class BookingRead(BaseModel):
    id: str
    customer_id: str
    mechanic_id: str
    service_id: str
    date: datetime
    notes: Optional[str] = None
    status: BookingStatus
    created_at: datetime
    mechanic: Optional[PartyRead] = None
    service: Optional[ServiceRead] = None


class BookingCreated(BaseModel):
    message: str
    booking: BookingRead
