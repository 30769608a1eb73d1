"""
Repositories

Persist orders, task templates and tasks in PostgreSQL. Rule bundles and
order items are stored in JSONB columns; every row is returned as the
matching pydantic model.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple, Type
from uuid import UUID

from psycopg2.extras import Json
from pydantic import BaseModel

from rental_api.models.domain import Order, Task
from rental_api.models.templates import TaskTemplate, TaskTemplateStats, TemplateUsage
from rental_api.services.order_numbers import format_order_number, year_prefix
from rental_api.utils.config import settings
from rental_api.utils.database import db

logger = logging.getLogger(__name__)


class BaseRepository:
    """Row <-> model mapping shared by the repositories"""

    table: str = ""
    primary_key: str = ""
    model: Type[BaseModel] = BaseModel
    json_columns: tuple = ()
    generated_columns: tuple = ("created_at", "updated_at")

    def _to_model(self, row: Optional[Dict[str, Any]]) -> Optional[Any]:
        if not row:
            return None
        values = {
            key: float(value) if isinstance(value, Decimal) else value
            for key, value in dict(row).items()
        }
        return self.model(**values)

    def _to_models(self, rows: Optional[List[Dict[str, Any]]]) -> List[Any]:
        return [self._to_model(row) for row in rows or []]

    def _column_values(self, instance: BaseModel) -> Dict[str, Any]:
        data = instance.model_dump(mode="json", exclude=set(self.generated_columns))
        if data.get(self.primary_key) is None:
            data.pop(self.primary_key, None)
        return {
            column: Json(value) if column in self.json_columns else value
            for column, value in data.items()
        }

    def get(self, record_id: UUID) -> Optional[Any]:
        query = f"SELECT * FROM {self.table} WHERE {self.primary_key} = %s"
        return self._to_model(db.execute_query(query, (str(record_id),), fetch_one=True))

    def _insert_statement(self, instance: BaseModel) -> Tuple[str, tuple]:
        values = self._column_values(instance)
        columns = ", ".join(values)
        placeholders = ", ".join(["%s"] * len(values))
        query = f"INSERT INTO {self.table} ({columns}) VALUES ({placeholders}) RETURNING *"
        return query, tuple(values.values())

    def insert(self, instance: BaseModel) -> Any:
        """Insert a new row and return it as stored"""
        query, params = self._insert_statement(instance)
        row = db.execute_query(query, params, fetch_one=True)
        logger.debug(f"Inserted row into {self.table}")
        return self._to_model(row)

    def save(self, instance: BaseModel) -> Any:
        """Write every column of an existing row"""
        values = self._column_values(instance)
        record_id = values.pop(self.primary_key)
        assignments = ", ".join(f"{column} = %s" for column in values)
        query = f"""
            UPDATE {self.table}
            SET {assignments}, updated_at = now()
            WHERE {self.primary_key} = %s
            RETURNING *
        """
        row = db.execute_query(query, tuple(values.values()) + (record_id,), fetch_one=True)
        return self._to_model(row)

    def delete(self, record_id: UUID) -> bool:
        query = f"DELETE FROM {self.table} WHERE {self.primary_key} = %s"
        return db.execute_update(query, (str(record_id),)) > 0


class OrderRepository(BaseRepository):
    """Orders table access"""

    table = "orders"
    primary_key = "order_id"
    model = Order
    json_columns = ("items",)

    def get_by_number(self, order_number: str) -> Optional[Order]:
        query = "SELECT * FROM orders WHERE order_number = %s"
        return self._to_model(db.execute_query(query, (order_number,), fetch_one=True))

    def next_order_number(self, year: int) -> str:
        """
        Allocate the next order number for a year.

        The counter row is seeded from the highest existing order number so
        imported orders are never collided with; the upsert keeps allocation
        atomic under concurrent checkouts.
        """
        prefix = settings.ORDER_NUMBER_PREFIX
        counter_name = f"orderNumber-{year}"
        query = """
            INSERT INTO order_counters (name, seq)
            VALUES (
                %s,
                COALESCE((
                    SELECT MAX(CAST(split_part(order_number, '-', 3) AS integer))
                    FROM orders
                    WHERE order_number LIKE %s
                ), 0) + 1
            )
            ON CONFLICT (name) DO UPDATE
            SET seq = GREATEST(order_counters.seq, EXCLUDED.seq - 1) + 1
            RETURNING seq
        """
        row = db.execute_query(query, (counter_name, year_prefix(year, prefix) + "%"), fetch_one=True)
        return format_order_number(year, int(row["seq"]), prefix)


class TaskTemplateRepository(BaseRepository):
    """Task templates table access. Soft-deleted rows are hidden from reads."""

    table = "task_templates"
    primary_key = "template_id"
    model = TaskTemplate
    json_columns = ("payment_rules", "scheduling_rules")

    def get(self, record_id: UUID) -> Optional[TaskTemplate]:
        query = "SELECT * FROM task_templates WHERE template_id = %s AND deleted_at IS NULL"
        return self._to_model(db.execute_query(query, (str(record_id),), fetch_one=True))

    def find_active_by_name(self, name: str) -> Optional[TaskTemplate]:
        query = """
            SELECT * FROM task_templates
            WHERE name = %s AND is_active AND deleted_at IS NULL
        """
        return self._to_model(db.execute_query(query, (name,), fetch_one=True))

    def find_system_template(self, name: str) -> Optional[TaskTemplate]:
        query = """
            SELECT * FROM task_templates
            WHERE name = %s AND is_system_template AND deleted_at IS NULL
        """
        return self._to_model(db.execute_query(query, (name,), fetch_one=True))

    def find_active(self, include_system: bool = True) -> List[TaskTemplate]:
        """Active templates, system templates first, then by name"""
        query = """
            SELECT * FROM task_templates
            WHERE is_active AND deleted_at IS NULL
        """
        if not include_system:
            query += " AND NOT is_system_template"
        query += " ORDER BY is_system_template DESC, name ASC"
        return self._to_models(db.execute_query(query))

    def soft_delete(self, template_id: UUID) -> Optional[TaskTemplate]:
        query = """
            UPDATE task_templates
            SET deleted_at = now(), is_active = FALSE, updated_at = now()
            WHERE template_id = %s AND deleted_at IS NULL
            RETURNING *
        """
        return self._to_model(db.execute_query(query, (str(template_id),), fetch_one=True))

    def usage_stats(self, limit: int = 10) -> TaskTemplateStats:
        totals_query = """
            SELECT
                COUNT(*) FILTER (WHERE is_active) AS total_active,
                COUNT(*) FILTER (WHERE is_system_template) AS total_system,
                COUNT(*) FILTER (WHERE NOT is_system_template) AS total_custom,
                COALESCE(SUM(usage_count), 0) AS total_usage
            FROM task_templates
            WHERE deleted_at IS NULL
        """
        totals = db.execute_query(totals_query, fetch_one=True) or {}

        most_used_query = """
            SELECT template_id, name, usage_count
            FROM task_templates
            WHERE deleted_at IS NULL AND usage_count > 0
            ORDER BY usage_count DESC
            LIMIT %s
        """
        most_used = db.execute_query(most_used_query, (limit,)) or []

        return TaskTemplateStats(
            **{key: int(value or 0) for key, value in dict(totals).items()},
            most_used_templates=[TemplateUsage(**row) for row in most_used],
        )


class TaskRepository(BaseRepository):
    """Tasks table access"""

    table = "tasks"
    primary_key = "task_id"
    model = Task

    def find_by_order(self, order_id: UUID) -> List[Task]:
        query = """
            SELECT * FROM tasks
            WHERE order_id = %s
            ORDER BY scheduled_date_time ASC NULLS LAST,
                     CASE priority WHEN 'High' THEN 0 WHEN 'Medium' THEN 1 ELSE 2 END
        """
        return self._to_models(db.execute_query(query, (str(order_id),)))

    def insert_with_template_usage(self, task: Task) -> Task:
        """
        Insert a task generated from a template and bump the template's
        usage count in the same transaction.
        """
        query, params = self._insert_statement(task)
        usage_query = """
            UPDATE task_templates
            SET usage_count = usage_count + 1, updated_at = now()
            WHERE template_id = %s
        """
        with db.get_cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
            cursor.execute(usage_query, (str(task.template_id),))
        logger.debug(f"Inserted task and counted use of template {task.template_id}")
        return self._to_model(row)


# Singleton instances
_order_repository = None
_task_template_repository = None
_task_repository = None


def get_order_repository() -> OrderRepository:
    """Get singleton instance of OrderRepository"""
    global _order_repository
    if _order_repository is None:
        _order_repository = OrderRepository()
    return _order_repository


def get_task_template_repository() -> TaskTemplateRepository:
    """Get singleton instance of TaskTemplateRepository"""
    global _task_template_repository
    if _task_template_repository is None:
        _task_template_repository = TaskTemplateRepository()
    return _task_template_repository


def get_task_repository() -> TaskRepository:
    """Get singleton instance of TaskRepository"""
    global _task_repository
    if _task_repository is None:
        _task_repository = TaskRepository()
    return _task_repository
