"""
Database Schemas for the Water Delivery Ordering API

Each top-level Pydantic model below corresponds to a MongoDB collection:
User -> "users", Product -> "products", Order -> "orders".
Request payloads accepted by the API are defined at the bottom.
"""
from datetime import datetime
from typing import Any, List, Optional, Literal
from pydantic import BaseModel, Field, EmailStr

Role = Literal["customer", "admin"]
OrderStatus = Literal["planned", "in_progress", "completed", "cancelled"]

SERVICE_TIME = 120


class User(BaseModel):
    user_id: str = Field(..., description="Sequentially assigned identifier")
    full_name: str
    email: EmailStr = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="BCrypt password hash")
    phone_number: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    is_active: bool = Field(False, description="Set by an admin before the user may order")
    role: Role = "customer"
    profile_picture: Optional[str] = None
    last_login: Optional[datetime] = None


class Measure(BaseModel):
    value: float
    unit: str


class Dimensions(BaseModel):
    length: Measure
    width: Measure
    height: Measure


class Product(BaseModel):
    product_id: str
    name: str
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    weight: Measure
    dimensions: Optional[Dimensions] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    product_type: Optional[str] = None


class Location(BaseModel):
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class OrderLine(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    notes: str = ""
    demand: float = Field(..., description="Product weight times quantity")


class ChangeLogEntry(BaseModel):
    field: str
    old_value: Any = None
    new_value: Any = None
    changed_at: datetime
    changed_by: str


class Order(BaseModel):
    order_id: str
    task_id: str
    customer_id: str
    location: Location
    ready_time: str
    due_time: str
    order_date: datetime
    service_time: int = SERVICE_TIME
    request: OrderLine
    total_price: float
    status: OrderStatus = "planned"
    change_log: List[ChangeLogEntry] = []
    priority_level: int = 0
    assigned_vehicle: str = "default_vehicle"
    assigned_route_id: str = "default_route"


# ===================== Request payloads =====================

class RegisterRequest(BaseModel):
    full_name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=1)
    phone_number: str
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class CreateOrderRequest(BaseModel):
    product_id: str
    quantity: int = Field(..., ge=1)
    ready_time: str
    due_time: str
    order_date: Optional[datetime] = None
    notes: Optional[str] = None


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus


class ApproveUserRequest(BaseModel):
    is_active: bool


class SetRoleRequest(BaseModel):
    role: Role
