"""
Tests for the PostgreSQL repositories

Database access is mocked through the global db instance.
"""

import sys
import os
from datetime import date, datetime
from decimal import Decimal
from unittest.mock import MagicMock, patch
from uuid import uuid4

import psycopg2
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from psycopg2.extras import Json

from rental_api.models.domain import Order, OrderStatus, Task
from rental_api.models.templates import PaymentRules, SchedulingRules, TaskTemplate
from rental_api.services.repositories import (
    OrderRepository,
    TaskRepository,
    TaskTemplateRepository,
)
from rental_api.utils.database import db


def order_row(**overrides):
    row = {
        'order_id': str(uuid4()),
        'order_number': 'BB-2025-0001',
        'customer_name': 'Jane Doe',
        'items': [{'type': 'bouncer', 'name': 'Castle Bouncer', 'quantity': 1,
                   'unit_price': 150.0, 'total_price': 150.0}],
        'subtotal': Decimal('150.00'),
        'tax_amount': Decimal('12.38'),
        'delivery_fee': Decimal('20.00'),
        'processing_fee': Decimal('4.50'),
        'discount_amount': Decimal('0.00'),
        'total_amount': Decimal('186.88'),
        'deposit_amount': Decimal('50.00'),
        'balance_due': Decimal('136.88'),
        'amount_paid': Decimal('0.00'),
        'status': 'Pending',
        'payment_status': 'Pending',
        'payment_method': 'paypal',
        'event_date': date(2025, 8, 2),
        'delivery_date': None,
        'notes': None,
        'created_at': datetime(2025, 7, 1, 12, 0),
        'updated_at': datetime(2025, 7, 1, 12, 0),
    }
    row.update(overrides)
    return row


def as_order(row):
    return Order(**{key: float(value) if isinstance(value, Decimal) else value for key, value in row.items()})


class TestOrderRepository:
    """Test order persistence"""

    def test_get_converts_numeric_columns(self):
        repository = OrderRepository()
        with patch.object(db, 'execute_query', return_value=order_row()) as mock_query:
            order = repository.get(uuid4())

        assert mock_query.call_args.kwargs['fetch_one'] is True
        assert isinstance(order, Order)
        assert order.total_amount == 186.88
        assert isinstance(order.total_amount, float)
        assert order.items[0].name == 'Castle Bouncer'
        assert order.status == OrderStatus.PENDING

    def test_get_missing_returns_none(self):
        repository = OrderRepository()
        with patch.object(db, 'execute_query', return_value=None):
            assert repository.get(uuid4()) is None

    def test_next_order_number(self):
        repository = OrderRepository()
        with patch.object(db, 'execute_query', return_value={'seq': 7}) as mock_query:
            number = repository.next_order_number(2025)

        assert number == 'BB-2025-0007'
        query, params = mock_query.call_args[0][:2]
        assert 'ON CONFLICT (name) DO UPDATE' in query
        assert params == ('orderNumber-2025', 'BB-2025-%')

    def test_insert_wraps_items_as_json(self):
        repository = OrderRepository()
        order = as_order(order_row(order_id=None))
        with patch.object(db, 'execute_query', return_value=order_row()) as mock_query:
            repository.insert(order)

        query, params = mock_query.call_args[0][:2]
        assert query.startswith('INSERT INTO orders')
        assert 'order_id' not in query
        assert 'created_at' not in query
        assert sum(isinstance(p, Json) for p in params) == 1
        assert 'Pending' in params

    def test_save_targets_primary_key(self):
        repository = OrderRepository()
        row = order_row()
        order = as_order(row)
        with patch.object(db, 'execute_query', return_value=row) as mock_query:
            repository.save(order)

        query, params = mock_query.call_args[0][:2]
        assert 'UPDATE orders' in query
        assert 'WHERE order_id = %s' in query
        assert params[-1] == row['order_id']

    def test_delete(self):
        repository = OrderRepository()
        with patch.object(db, 'execute_update', return_value=1):
            assert repository.delete(uuid4()) is True
        with patch.object(db, 'execute_update', return_value=0):
            assert repository.delete(uuid4()) is False


class TestTaskTemplateRepository:
    """Test template persistence"""

    def test_insert_stores_rules_as_json(self):
        repository = TaskTemplateRepository()
        template = TaskTemplate(
            name='Balloon Arch',
            title_pattern='Balloons - {orderNumber}',
            payment_rules=PaymentRules(type='fixed', base_amount=35),
            scheduling_rules=SchedulingRules(relative_to='eventDate'),
        )
        stored_row = {**template.model_dump(mode='json'), 'template_id': str(uuid4())}
        with patch.object(db, 'execute_query', return_value=stored_row) as mock_query:
            stored = repository.insert(template)

        params = mock_query.call_args[0][1]
        json_params = [p for p in params if isinstance(p, Json)]
        assert len(json_params) == 2
        assert json_params[0].adapted == {
            'type': 'fixed', 'base_amount': 35.0, 'percentage': 0.0,
            'minimum_amount': None, 'maximum_amount': None,
        }
        assert stored.payment_rules.base_amount == 35.0

    def test_reads_exclude_deleted(self):
        repository = TaskTemplateRepository()
        with patch.object(db, 'execute_query', return_value=None) as mock_query:
            repository.get(uuid4())
        assert 'deleted_at IS NULL' in mock_query.call_args[0][0]

    def test_find_active_without_system_templates(self):
        repository = TaskTemplateRepository()
        with patch.object(db, 'execute_query', return_value=[]) as mock_query:
            assert repository.find_active(include_system=False) == []
        assert 'NOT is_system_template' in mock_query.call_args[0][0]

    def test_usage_stats(self):
        repository = TaskTemplateRepository()
        template_id = str(uuid4())
        with patch.object(db, 'execute_query') as mock_query:
            mock_query.side_effect = [
                {'total_active': 5, 'total_system': 4, 'total_custom': 2, 'total_usage': Decimal('17')},
                [{'template_id': template_id, 'name': 'Delivery', 'usage_count': 12}],
            ]
            stats = repository.usage_stats(limit=3)

        assert stats.total_active == 5
        assert stats.total_usage == 17
        assert stats.most_used_templates[0].name == 'Delivery'
        assert mock_query.call_args[0][1] == (3,)


class TestTaskRepository:
    """Test task persistence"""

    def test_find_by_order(self):
        repository = TaskRepository()
        order_id = uuid4()
        row = {
            'task_id': str(uuid4()),
            'order_id': str(order_id),
            'template_id': None,
            'type': 'Pickup',
            'title': 'Pickup - Castle Bouncer',
            'description': '',
            'scheduled_date_time': datetime(2025, 8, 3, 10, 0),
            'priority': 'Medium',
            'status': 'Pending',
            'assigned_contractors': [],
            'payment_amount': Decimal('30.00'),
            'completed_at': None,
            'created_at': None,
            'updated_at': None,
        }
        with patch.object(db, 'execute_query', return_value=[row]) as mock_query:
            tasks = repository.find_by_order(order_id)

        assert mock_query.call_args[0][1] == (str(order_id),)
        assert tasks[0].payment_amount == 30.0
        assert tasks[0].order_id == order_id

    def test_insert_with_template_usage_shares_transaction(self):
        repository = TaskRepository()
        template_id = uuid4()
        task = Task(order_id=uuid4(), template_id=template_id, type='Delivery', title='Delivery - Castle Bouncer')
        pool = MagicMock()
        conn = pool.getconn.return_value
        cursor = conn.cursor.return_value
        cursor.fetchone.return_value = {**task.model_dump(mode='json'), 'task_id': str(uuid4())}

        with patch.object(db, 'pool', pool):
            stored = repository.insert_with_template_usage(task)

        insert_call, usage_call = cursor.execute.call_args_list
        assert insert_call[0][0].startswith('INSERT INTO tasks')
        assert 'usage_count = usage_count + 1' in usage_call[0][0]
        assert usage_call[0][1] == (str(template_id),)
        pool.getconn.assert_called_once()
        conn.commit.assert_called_once()
        assert stored.template_id == template_id

    def test_failed_usage_count_rolls_back_task(self):
        repository = TaskRepository()
        task = Task(order_id=uuid4(), template_id=uuid4(), type='Pickup', title='Pickup - Castle Bouncer')
        pool = MagicMock()
        conn = pool.getconn.return_value
        cursor = conn.cursor.return_value
        cursor.execute.side_effect = [None, psycopg2.Error('template row locked')]

        with patch.object(db, 'pool', pool):
            with pytest.raises(psycopg2.Error):
                repository.insert_with_template_usage(task)

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)
