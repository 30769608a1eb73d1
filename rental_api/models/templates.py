"""
Task Template Models - Pydantic models for reusable task rule bundles.

A template pairs text patterns with a payment rule and a scheduling rule;
tasks are generated from a template plus an order.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Dict
from uuid import UUID

from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

from .domain import TaskPriority, TaskType


# ============================================================================
# Enums
# ============================================================================

class PaymentRuleType(str, Enum):
    """How a task payment is calculated."""
    FIXED = "fixed"
    PERCENTAGE = "percentage"
    FORMULA = "formula"


class SchedulingRelativeTo(str, Enum):
    """Reference date a scheduling offset is counted from."""
    EVENT_DATE = "eventDate"
    DELIVERY_DATE = "deliveryDate"
    MANUAL = "manual"


# ============================================================================
# Rule Models
# ============================================================================

class PaymentRules(BaseModel):
    """Payment calculation rule. Percentages are whole numbers (10 = 10%)."""

    model_config = ConfigDict(from_attributes=True)

    type: PaymentRuleType = PaymentRuleType.FIXED
    base_amount: float = Field(default=0.0, description="Base amount for fixed or formula rules")
    percentage: float = Field(default=0.0, description="Percent of the order total (0-100)")
    minimum_amount: Optional[float] = Field(default=None, description="Lower clamp, 0 when absent")
    maximum_amount: Optional[float] = Field(default=None, description="Upper clamp, unbounded when absent")


class SchedulingRules(BaseModel):
    """Scheduling rule: offset from a reference date plus a wall-clock time."""

    model_config = ConfigDict(from_attributes=True)

    relative_to: SchedulingRelativeTo = SchedulingRelativeTo.MANUAL
    offset_days: int = Field(default=0, description="Days before (-) or after (+) the reference date")
    default_time: str = Field(default="09:00", description="HH:MM, 24-hour clock")
    business_hours_only: bool = False


# ============================================================================
# Template Models
# ============================================================================

class TaskTemplate(BaseModel):
    """Task template from the task_templates table."""

    model_config = ConfigDict(from_attributes=True)

    template_id: Optional[UUID] = None
    name: str = Field(max_length=100)
    description: str = Field(default="", max_length=500)
    task_type: TaskType = TaskType.DELIVERY
    is_system_template: bool = False
    is_active: bool = True
    default_priority: TaskPriority = TaskPriority.MEDIUM

    title_pattern: str = Field(max_length=300)
    description_pattern: str = Field(default="", max_length=2000)

    payment_rules: PaymentRules = Field(default_factory=PaymentRules)
    scheduling_rules: SchedulingRules = Field(default_factory=SchedulingRules)

    usage_count: int = Field(default=0, ge=0)
    created_by: str = ""
    created_by_name: str = ""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None


class TemplateVariables(BaseModel):
    """
    Flattened order data available to title/description patterns.

    Serialized with camelCase keys, which are the placeholder names used in
    patterns, e.g. {orderNumber}.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_number: str = ""
    customer_name: str = ""
    customer_email: str = ""
    customer_phone: str = ""
    event_date: str = ""
    delivery_date: str = ""
    delivery_address: str = ""
    full_address: str = ""
    order_items: str = ""
    item_names: str = ""
    order_total: str = ""
    special_instructions: str = ""
    task_type: str = ""
    template_name: str = ""

    def as_mapping(self) -> Dict[str, str]:
        """Placeholder name -> value"""
        return self.model_dump(by_alias=True)


class TaskTemplatePreview(BaseModel):
    """What a task generated from a template and an order would look like."""

    title: str
    description: str
    payment_amount: float
    scheduled_date_time: Optional[datetime] = None
    variables: TemplateVariables
    missing_variables: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class TemplateUsage(BaseModel):
    """Usage counter of a single template."""

    template_id: UUID
    name: str
    usage_count: int


class TaskTemplateStats(BaseModel):
    """Aggregate template statistics."""

    total_active: int = 0
    total_system: int = 0
    total_custom: int = 0
    total_usage: int = 0
    most_used_templates: List[TemplateUsage] = Field(default_factory=list)
