"""
API Models - Pydantic models for handler requests and responses.

These models define the payloads exchanged between the HTTP layer and the
order, payment and task services.
"""

from datetime import date
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from .domain import (
    OrderItemType,
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    TaskPriority,
    TaskStatus,
    TaskType,
)
from .templates import PaymentRules, SchedulingRules
from rental_api.utils.exceptions import RentalError


# ============================================================================
# Order API Models
# ============================================================================

class OrderItemInput(BaseModel):
    """Line item as submitted at checkout."""

    type: OrderItemType = Field(..., description="Item kind")
    name: str = Field(..., min_length=1, description="Item name")
    description: Optional[str] = Field(default=None, description="Item description")
    quantity: int = Field(default=1, ge=1, description="Quantity ordered")
    unit_price: float = Field(..., ge=0, description="Price per unit")


class OrderCreateRequest(BaseModel):
    """Request payload for creating an order."""

    customer_name: Optional[str] = Field(default=None, description="Customer name")
    customer_email: Optional[str] = Field(default=None, description="Customer email")
    customer_phone: Optional[str] = Field(default=None, description="Customer phone")
    customer_address: Optional[str] = Field(default=None, description="Street address")
    customer_city: Optional[str] = Field(default=None, description="City")
    customer_state: Optional[str] = Field(default=None, description="State")
    customer_zip_code: Optional[str] = Field(default=None, description="Zip code")

    items: List[OrderItemInput] = Field(..., min_length=1, description="Ordered items")
    tax_amount: float = Field(default=0.0, ge=0, description="Tax amount, passed through")
    discount_amount: float = Field(default=0.0, ge=0, description="Discount amount")
    delivery_fee: Optional[float] = Field(default=None, ge=0, description="Defaults to the configured fee")
    processing_fee: Optional[float] = Field(default=None, ge=0, description="Defaults to a percentage of the subtotal")
    deposit_amount: Optional[float] = Field(default=None, ge=0, description="Initial deposit")
    payment_method: PaymentMethod = Field(..., description="Method of payment")

    event_date: Optional[date] = Field(default=None, description="Party date")
    delivery_date: Optional[date] = Field(default=None, description="Delivery date")
    notes: Optional[str] = Field(default=None, description="Special instructions")


class OrderUpdateRequest(BaseModel):
    """Request payload for an admin order edit. Only set fields are applied."""

    status: Optional[OrderStatus] = None
    payment_status: Optional[PaymentStatus] = None
    payment_method: Optional[PaymentMethod] = None
    items: Optional[List[OrderItemInput]] = None
    tax_amount: Optional[float] = Field(default=None, ge=0)
    discount_amount: Optional[float] = Field(default=None, ge=0)
    delivery_fee: Optional[float] = Field(default=None, ge=0)
    processing_fee: Optional[float] = Field(default=None, ge=0)
    deposit_amount: Optional[float] = Field(default=None, ge=0)
    event_date: Optional[date] = None
    delivery_date: Optional[date] = None
    notes: Optional[str] = None


class OrderTotals(BaseModel):
    """Derived monetary amounts of an order, all rounded to cents."""

    subtotal: float
    tax_amount: float
    delivery_fee: float
    processing_fee: float
    discount_amount: float
    total_amount: float
    deposit_amount: float
    balance_due: float


# ============================================================================
# Payment API Models
# ============================================================================

class PaymentCaptureRequest(BaseModel):
    """Request payload for recording a captured payment."""

    amount: float = Field(..., gt=0, description="Captured amount")
    transaction_id: Optional[str] = Field(default=None, description="Processor transaction ID")


class PaymentCapture(BaseModel):
    """Outcome of applying a captured amount to an order."""

    payment_status: PaymentStatus
    order_status: OrderStatus
    amount_paid: float
    balance_due: float


class PaymentCaptureResponse(BaseModel):
    """Response payload after a payment capture."""

    order_number: str
    payment_status: PaymentStatus
    order_status: OrderStatus
    amount_paid: float
    balance_due: float


# ============================================================================
# Task Template API Models
# ============================================================================

class TaskTemplateCreateRequest(BaseModel):
    """Request payload for creating a task template."""

    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., max_length=500)
    task_type: TaskType = TaskType.DELIVERY
    is_active: bool = True
    default_priority: TaskPriority = TaskPriority.MEDIUM
    title_pattern: str = Field(..., min_length=1, max_length=300)
    description_pattern: str = Field(..., max_length=2000)
    payment_rules: PaymentRules
    scheduling_rules: SchedulingRules
    created_by: str = Field(..., description="Admin user ID")
    created_by_name: str = Field(..., max_length=200, description="Admin display name")


class TaskTemplateUpdateRequest(BaseModel):
    """Request payload for editing a task template."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None
    default_priority: Optional[TaskPriority] = None
    title_pattern: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description_pattern: Optional[str] = Field(default=None, max_length=2000)
    payment_rules: Optional[PaymentRules] = None
    scheduling_rules: Optional[SchedulingRules] = None


# ============================================================================
# Task API Models
# ============================================================================

class TaskGenerationRequest(BaseModel):
    """Request payload for generating a task from a template."""

    order_id: UUID
    template_id: UUID
    priority: Optional[TaskPriority] = Field(default=None, description="Overrides the template default")
    assigned_contractors: List[str] = Field(default_factory=list)


class TaskStatusUpdateRequest(BaseModel):
    """Request payload for changing a task status."""

    status: TaskStatus


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Client-facing error payload. Never carries internal state."""

    error: str = Field(..., description="Human-readable message")

    @classmethod
    def from_exception(cls, exc: RentalError) -> "ErrorResponse":
        return cls(error=exc.message)
