"""
Domain Models - Pydantic models for rental business entities.

These models represent orders and the field tasks derived from them, and
are used for validation and serialization when reading from and writing
to the orders/tasks tables.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict


# ============================================================================
# Enums
# ============================================================================

class OrderStatus(str, Enum):
    """Status values for orders."""
    PENDING = "Pending"
    PROCESSING = "Processing"
    PAID = "Paid"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    REFUNDED = "Refunded"


class PaymentStatus(str, Enum):
    """Status values for order payments."""
    PENDING = "Pending"
    AUTHORIZED = "Authorized"
    PAID = "Paid"
    FAILED = "Failed"
    REFUNDED = "Refunded"
    PARTIALLY_REFUNDED = "Partially Refunded"


class PaymentMethod(str, Enum):
    """Accepted payment methods."""
    PAYPAL = "paypal"
    CASH = "cash"
    QUICKBOOKS = "quickbooks"
    FREE = "free"


class OrderItemType(str, Enum):
    """Kinds of rentable items."""
    BOUNCER = "bouncer"
    EXTRA = "extra"
    ADD_ON = "add-on"


class TaskType(str, Enum):
    """Kinds of field work."""
    DELIVERY = "Delivery"
    SETUP = "Setup"
    PICKUP = "Pickup"
    MAINTENANCE = "Maintenance"


class TaskStatus(str, Enum):
    """Status values for tasks."""
    PENDING = "Pending"
    ASSIGNED = "Assigned"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class TaskPriority(str, Enum):
    """Task priority levels."""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


# ============================================================================
# Domain Models
# ============================================================================

class OrderItem(BaseModel):
    """Line item of an order."""

    model_config = ConfigDict(from_attributes=True)

    type: OrderItemType
    name: str
    description: Optional[str] = None
    quantity: int = Field(default=1, ge=1)
    unit_price: float = Field(ge=0)
    total_price: float = Field(default=0.0, ge=0)


class Order(BaseModel):
    """Order entity from the orders table."""

    model_config = ConfigDict(from_attributes=True)

    order_id: Optional[UUID] = None
    order_number: str

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    customer_address: Optional[str] = None
    customer_city: Optional[str] = None
    customer_state: Optional[str] = None
    customer_zip_code: Optional[str] = None

    items: List[OrderItem] = Field(default_factory=list)
    subtotal: float = 0.0
    tax_amount: float = 0.0
    delivery_fee: float = 0.0
    processing_fee: float = 0.0
    discount_amount: float = 0.0
    total_amount: float = 0.0
    deposit_amount: float = 0.0
    balance_due: float = 0.0
    amount_paid: float = 0.0

    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    payment_method: PaymentMethod

    event_date: Optional[date] = None
    delivery_date: Optional[date] = None
    notes: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Task(BaseModel):
    """Task entity from the tasks table."""

    model_config = ConfigDict(from_attributes=True)

    task_id: Optional[UUID] = None
    order_id: UUID
    template_id: Optional[UUID] = None
    type: TaskType
    title: str
    description: str = ""
    scheduled_date_time: Optional[datetime] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    assigned_contractors: List[str] = Field(default_factory=list)
    payment_amount: Optional[float] = Field(default=None, ge=0, le=999999.99)
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
