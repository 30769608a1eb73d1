"""
Task Services

Generates field tasks from a template and an order, and moves existing
tasks through their status lifecycle.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from rental_api.models.domain import Order, Task, TaskPriority, TaskStatus
from rental_api.models.templates import TaskTemplate
from rental_api.services.order_status import ensure_task_deletable, ensure_valid_task_transition
from rental_api.services.repositories import get_task_repository
from rental_api.services.template_engine import generate_task_preview
from rental_api.utils.config import settings
from rental_api.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)


class TaskGenerationService:
    """Turns template rules plus order data into stored tasks"""

    def __init__(self):
        self.tasks = get_task_repository()

    def build_task(
        self,
        template: TaskTemplate,
        order: Order,
        priority: Optional[TaskPriority] = None,
        assigned_contractors: Optional[List[str]] = None
    ) -> Tuple[Task, List[str]]:
        """
        Build an unsaved task and the business-hours warnings for it.

        Payment is evaluated against the order total, the schedule against
        the order's event and delivery dates.
        """
        preview = generate_task_preview(
            template,
            order,
            business_hours_start=settings.BUSINESS_HOURS_START,
            business_hours_end=settings.BUSINESS_HOURS_END,
        )
        contractors = list(assigned_contractors or [])
        task = Task(
            order_id=order.order_id,
            template_id=template.template_id,
            type=template.task_type,
            title=preview.title,
            description=preview.description,
            scheduled_date_time=preview.scheduled_date_time,
            priority=priority or template.default_priority,
            status=TaskStatus.ASSIGNED if contractors else TaskStatus.PENDING,
            assigned_contractors=contractors,
            payment_amount=preview.payment_amount,
        )
        return task, preview.warnings

    def generate_task(
        self,
        template: TaskTemplate,
        order: Order,
        priority: Optional[TaskPriority] = None,
        assigned_contractors: Optional[List[str]] = None
    ) -> Tuple[Task, List[str]]:
        """
        Generate, store and count a task for an order.

        Returns:
            The stored task and any business-hours warnings
        """
        task, warnings = self.build_task(template, order, priority, assigned_contractors)
        if template.template_id is not None:
            stored = self.tasks.insert_with_template_usage(task)
        else:
            stored = self.tasks.insert(task)

        logger.info(
            f"Generated {stored.type.value} task '{stored.title}' for order {order.order_number} "
            f"from template '{template.name}'"
        )
        return stored, warnings


class TaskService:
    """Status changes and deletion of existing tasks"""

    def __init__(self):
        self.repository = get_task_repository()

    def get_task(self, task_id: UUID) -> Task:
        task = self.repository.get(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def list_for_order(self, order_id: UUID) -> List[Task]:
        return self.repository.find_by_order(order_id)

    def update_status(self, task_id: UUID, status: TaskStatus) -> Task:
        """
        Move a task to a new status.

        Raises:
            InvalidTransitionError: the task cannot move to that status
            NotFoundError: unknown task
        """
        task = self.get_task(task_id)
        status = TaskStatus(status)
        ensure_valid_task_transition(task.status, status)
        if status is task.status:
            return task

        completed_at = datetime.now(timezone.utc) if status is TaskStatus.COMPLETED else None
        stored = self.repository.save(task.model_copy(update={
            "status": status,
            "completed_at": completed_at,
        }))
        logger.info(f"Task {task_id} moved {task.status.value} -> {status.value}")
        return stored

    def delete_task(self, task_id: UUID) -> bool:
        """
        Delete a task that has not been picked up yet.

        Raises:
            TaskDeletionError: task is no longer Pending
            NotFoundError: unknown task
        """
        task = self.get_task(task_id)
        ensure_task_deletable(task.status)
        deleted = self.repository.delete(task_id)
        if deleted:
            logger.info(f"Deleted task {task_id}")
        return deleted


# Singleton instances
_task_generation_service = None
_task_service = None


def get_task_generation_service() -> TaskGenerationService:
    """Get singleton instance of TaskGenerationService"""
    global _task_generation_service
    if _task_generation_service is None:
        _task_generation_service = TaskGenerationService()
    return _task_generation_service


def get_task_service() -> TaskService:
    """Get singleton instance of TaskService"""
    global _task_service
    if _task_service is None:
        _task_service = TaskService()
    return _task_service
