"""
Services package for the Party Rental Operations API.
"""

from .payment_rules import evaluate_payment_rule
from .scheduling import resolve_scheduled_datetime
from .order_status import (
    is_valid_transition,
    ensure_valid_transition,
    can_delete_order,
)
from .template_engine import render
from .orders import OrderService, get_order_service
from .task_templates import TaskTemplateService, get_task_template_service
from .tasks import (
    TaskGenerationService,
    TaskService,
    get_task_generation_service,
    get_task_service,
)

__version__ = "0.1.0"

__all__ = [
    "evaluate_payment_rule",
    "resolve_scheduled_datetime",
    "is_valid_transition",
    "ensure_valid_transition",
    "can_delete_order",
    "render",
    "OrderService",
    "get_order_service",
    "TaskTemplateService",
    "get_task_template_service",
    "TaskGenerationService",
    "TaskService",
    "get_task_generation_service",
    "get_task_service",
]
