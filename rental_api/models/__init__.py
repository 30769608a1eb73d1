"""
Models package for the rental operations API.
"""

# Domain models
from .domain import (
    Order,
    OrderItem,
    Task,
    OrderStatus,
    PaymentStatus,
    PaymentMethod,
    OrderItemType,
    TaskType,
    TaskStatus,
    TaskPriority,
)

# Task template models
from .templates import (
    TaskTemplate,
    PaymentRules,
    SchedulingRules,
    TemplateVariables,
    TaskTemplatePreview,
    TaskTemplateStats,
    TemplateUsage,
    PaymentRuleType,
    SchedulingRelativeTo,
)

# API models
from .api import (
    OrderItemInput,
    OrderCreateRequest,
    OrderUpdateRequest,
    OrderTotals,
    PaymentCaptureRequest,
    PaymentCapture,
    PaymentCaptureResponse,
    TaskTemplateCreateRequest,
    TaskTemplateUpdateRequest,
    TaskGenerationRequest,
    TaskStatusUpdateRequest,
    ErrorResponse,
)

__version__ = "0.1.0"

__all__ = [
    # Domain
    "Order",
    "OrderItem",
    "Task",
    "OrderStatus",
    "PaymentStatus",
    "PaymentMethod",
    "OrderItemType",
    "TaskType",
    "TaskStatus",
    "TaskPriority",
    # Templates
    "TaskTemplate",
    "PaymentRules",
    "SchedulingRules",
    "TemplateVariables",
    "TaskTemplatePreview",
    "TaskTemplateStats",
    "TemplateUsage",
    "PaymentRuleType",
    "SchedulingRelativeTo",
    # API
    "OrderItemInput",
    "OrderCreateRequest",
    "OrderUpdateRequest",
    "OrderTotals",
    "PaymentCaptureRequest",
    "PaymentCapture",
    "PaymentCaptureResponse",
    "TaskTemplateCreateRequest",
    "TaskTemplateUpdateRequest",
    "TaskGenerationRequest",
    "TaskStatusUpdateRequest",
    "ErrorResponse",
]
