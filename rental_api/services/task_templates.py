"""
Task Template Service

Admin management of task templates: creation and edits are validated
before anything is stored, system templates are protected, and deletes
are soft so tasks keep pointing at the template that produced them.
"""

import logging
from typing import List, Optional
from uuid import UUID

from rental_api.models.api import TaskTemplateCreateRequest, TaskTemplateUpdateRequest
from rental_api.models.domain import Order, TaskPriority, TaskType
from rental_api.models.templates import (
    PaymentRules,
    SchedulingRules,
    TaskTemplate,
    TaskTemplatePreview,
    TaskTemplateStats,
)
from rental_api.services.repositories import get_task_template_repository
from rental_api.services.template_engine import generate_task_preview, validate_template
from rental_api.utils.config import settings
from rental_api.utils.exceptions import (
    NotFoundError,
    SystemTemplateError,
    TemplateValidationError,
)

logger = logging.getLogger(__name__)

SYSTEM_CREATOR_NAME = "System Migration"

_TASK_FOOTER = "Customer: {customerName} | Order: {orderNumber}\n{specialInstructions}"
_PER_ORDER_PAYMENT = PaymentRules(
    type="formula", base_amount=10.0, percentage=10.0, minimum_amount=10.0, maximum_amount=999999.99
)
_FLAT_PAYMENT = PaymentRules(type="fixed", base_amount=20.0, minimum_amount=20.0, maximum_amount=20.0)

SYSTEM_TEMPLATES = [
    {
        "name": "Delivery",
        "description": "Standard delivery task for bounce house equipment",
        "task_type": TaskType.DELIVERY,
        "title_pattern": "Delivery - {itemNames}",
        "description_pattern": "Deliver {orderItems} to {fullAddress}\n" + _TASK_FOOTER,
        "payment_rules": _PER_ORDER_PAYMENT,
        "scheduling_rules": SchedulingRules(
            relative_to="deliveryDate", offset_days=0, default_time="09:00", business_hours_only=True
        ),
    },
    {
        "name": "Setup",
        "description": "Setup task for bounce house equipment at event location",
        "task_type": TaskType.SETUP,
        "title_pattern": "Setup - {itemNames}",
        "description_pattern": "Setup {orderItems} at {fullAddress}\n" + _TASK_FOOTER,
        "payment_rules": _FLAT_PAYMENT,
        "scheduling_rules": SchedulingRules(
            relative_to="eventDate", offset_days=0, default_time="09:00", business_hours_only=True
        ),
    },
    {
        "name": "Pickup",
        "description": "Pickup task for bounce house equipment after event",
        "task_type": TaskType.PICKUP,
        "title_pattern": "Pickup - {itemNames}",
        "description_pattern": "Pickup {orderItems} from {fullAddress}\n" + _TASK_FOOTER,
        "payment_rules": _PER_ORDER_PAYMENT,
        "scheduling_rules": SchedulingRules(
            relative_to="eventDate", offset_days=1, default_time="10:00", business_hours_only=True
        ),
    },
    {
        "name": "Maintenance",
        "description": "Maintenance task for bounce house equipment",
        "task_type": TaskType.MAINTENANCE,
        "title_pattern": "Maintenance - {itemNames}",
        "description_pattern": "Maintenance for {orderItems}\n" + _TASK_FOOTER,
        "payment_rules": _FLAT_PAYMENT,
        "scheduling_rules": SchedulingRules(
            relative_to="manual", offset_days=0, default_time="10:00", business_hours_only=True
        ),
    },
]


def _required_text_errors(template) -> List[str]:
    errors = []
    for label, field in (
        ("Template name", "name"),
        ("Template description", "description"),
        ("Title pattern", "title_pattern"),
        ("Description pattern", "description_pattern"),
    ):
        if not (getattr(template, field) or "").strip():
            errors.append(f"{label} is required")
    return errors


class TaskTemplateService:
    """Create, edit, remove and seed task templates"""

    def __init__(self):
        self.repository = get_task_template_repository()

    def get_template(self, template_id: UUID) -> TaskTemplate:
        template = self.repository.get(template_id)
        if template is None:
            raise NotFoundError("task template", template_id)
        return template

    def list_templates(self, include_system: bool = True) -> List[TaskTemplate]:
        return self.repository.find_active(include_system=include_system)

    def create_template(self, request: TaskTemplateCreateRequest) -> TaskTemplate:
        """
        Validate and store a custom template.

        Raises:
            TemplateValidationError: missing text, bad patterns or rules,
                or an active template already uses the name
        """
        template = TaskTemplate(
            name=request.name.strip(),
            description=request.description.strip(),
            task_type=request.task_type,
            is_system_template=False,
            is_active=request.is_active,
            default_priority=request.default_priority,
            title_pattern=request.title_pattern.strip(),
            description_pattern=request.description_pattern.strip(),
            payment_rules=request.payment_rules,
            scheduling_rules=request.scheduling_rules,
            usage_count=0,
            created_by=request.created_by,
            created_by_name=request.created_by_name or "Unknown User",
        )
        self._validate(template)

        stored = self.repository.insert(template)
        logger.info(f"Created task template '{stored.name}' by {stored.created_by_name}")
        return stored

    def update_template(self, template_id: UUID, request: TaskTemplateUpdateRequest) -> TaskTemplate:
        """
        Apply an edit to a custom template.

        Raises:
            SystemTemplateError: system templates are read-only
            TemplateValidationError: the edited template is invalid
            NotFoundError: unknown or deleted template
        """
        existing = self.get_template(template_id)
        if existing.is_system_template:
            raise SystemTemplateError(existing.name, action="modified")

        changes = {
            key: value.strip() if isinstance(value, str) else value
            for key, value in request.model_dump(exclude_unset=True, exclude_none=True).items()
        }
        if "payment_rules" in changes:
            changes["payment_rules"] = request.payment_rules
        if "scheduling_rules" in changes:
            changes["scheduling_rules"] = request.scheduling_rules

        updated = existing.model_copy(update=changes)
        self._validate(updated, current_id=existing.template_id)

        stored = self.repository.save(updated)
        logger.info(f"Updated task template '{stored.name}': {', '.join(sorted(changes))}")
        return stored

    def delete_template(self, template_id: UUID) -> TaskTemplate:
        """
        Soft delete a custom template.

        Raises:
            SystemTemplateError: system templates cannot be deleted
            NotFoundError: unknown or already deleted template
        """
        existing = self.get_template(template_id)
        if existing.is_system_template:
            raise SystemTemplateError(existing.name)

        deleted = self.repository.soft_delete(template_id)
        if deleted is None:
            raise NotFoundError("task template", template_id)
        logger.info(f"Soft deleted task template '{existing.name}'")
        return deleted

    def seed_system_templates(self, created_by: str = "system") -> List[TaskTemplate]:
        """Store the built-in templates that are not present yet; existing ones are returned as-is"""
        templates = []
        for data in SYSTEM_TEMPLATES:
            existing = self.repository.find_system_template(data["name"])
            if existing is not None:
                templates.append(existing)
                continue

            template = TaskTemplate(
                **data,
                is_system_template=True,
                is_active=True,
                default_priority=TaskPriority.MEDIUM,
                usage_count=0,
                created_by=created_by,
                created_by_name=SYSTEM_CREATOR_NAME,
            )
            templates.append(self.repository.insert(template))
            logger.info(f"Seeded system template '{template.name}'")
        return templates

    def usage_stats(self, limit: Optional[int] = None) -> TaskTemplateStats:
        return self.repository.usage_stats(limit or settings.MOST_USED_TEMPLATES_LIMIT)

    def preview(self, template_id: UUID, order: Order) -> TaskTemplatePreview:
        template = self.get_template(template_id)
        return generate_task_preview(
            template,
            order,
            business_hours_start=settings.BUSINESS_HOURS_START,
            business_hours_end=settings.BUSINESS_HOURS_END,
        )

    def _validate(self, template: TaskTemplate, current_id: Optional[UUID] = None) -> None:
        errors = _required_text_errors(template) + validate_template(template)

        same_name = self.repository.find_active_by_name(template.name)
        if same_name is not None and same_name.template_id != current_id:
            errors.append(f"Template name '{template.name}' is already in use")

        if errors:
            logger.warning(f"Rejected task template '{template.name}': {'; '.join(errors)}")
            raise TemplateValidationError(errors)


# Singleton instance
_task_template_service = None


def get_task_template_service() -> TaskTemplateService:
    """Get singleton instance of TaskTemplateService"""
    global _task_template_service
    if _task_template_service is None:
        _task_template_service = TaskTemplateService()
    return _task_template_service
