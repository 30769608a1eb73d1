"""
Status transition rules for orders and tasks.

Orders move forward only: Pending -> Processing -> Paid -> Confirmed, with
Cancelled and Refunded as terminal states. Re-submitting the current status
is always accepted as a no-op. Illegal changes raise InvalidTransitionError
so they can never be coerced silently.
"""

import logging
from collections import deque
from typing import Any, Dict, FrozenSet, List, Optional, Type, TypeVar

from rental_api.models.domain import OrderStatus, TaskStatus
from rental_api.utils.exceptions import (
    InvalidTransitionError,
    OrderDeletionError,
    TaskDeletionError,
)

logger = logging.getLogger(__name__)

ORDER_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.CONFIRMED, OrderStatus.REFUNDED}),
    OrderStatus.CONFIRMED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

TASK_TRANSITIONS: Dict[TaskStatus, FrozenSet[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.ASSIGNED, TaskStatus.CANCELLED}),
    TaskStatus.ASSIGNED: frozenset({TaskStatus.IN_PROGRESS, TaskStatus.PENDING, TaskStatus.CANCELLED}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.COMPLETED, TaskStatus.ASSIGNED, TaskStatus.CANCELLED}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.CANCELLED: frozenset({TaskStatus.PENDING}),
}

NON_DELETABLE_ORDER_STATUSES = frozenset({OrderStatus.PAID, OrderStatus.CONFIRMED})

S = TypeVar("S", OrderStatus, TaskStatus)


def _coerce(status: Any, enum_cls: Type[S]) -> Optional[S]:
    if isinstance(status, enum_cls):
        return status
    try:
        return enum_cls(status)
    except ValueError:
        return None


# ============================================================================
# Orders
# ============================================================================

def is_valid_transition(from_status: Any, to_status: Any) -> bool:
    """Whether an order may move from one status to another"""
    current = _coerce(from_status, OrderStatus)
    requested = _coerce(to_status, OrderStatus)
    if current is None or requested is None:
        return False
    if current is requested:
        return True
    return requested in ORDER_TRANSITIONS[current]


def ensure_valid_transition(from_status: Any, to_status: Any) -> None:
    """Raise InvalidTransitionError unless the order transition is legal"""
    if not is_valid_transition(from_status, to_status):
        logger.warning(f"Rejected order status transition {from_status} -> {to_status}")
        raise InvalidTransitionError(from_status, to_status)


def transition_path(from_status: Any, to_status: Any) -> Optional[List[OrderStatus]]:
    """
    Shortest chain of legal order transitions, excluding the start status.

    Returns [] for a self-transition and None when the target is unreachable.
    """
    start = _coerce(from_status, OrderStatus)
    goal = _coerce(to_status, OrderStatus)
    if start is None or goal is None:
        return None
    if start is goal:
        return []

    previous: Dict[OrderStatus, OrderStatus] = {}
    queue = deque([start])
    while queue:
        node = queue.popleft()
        for nxt in sorted(ORDER_TRANSITIONS[node], key=lambda s: s.value):
            if nxt in previous or nxt is start:
                continue
            previous[nxt] = node
            if nxt is goal:
                path = [goal]
                while previous[path[-1]] is not start:
                    path.append(previous[path[-1]])
                return list(reversed(path))
            queue.append(nxt)
    return None


def can_delete_order(status: Any) -> bool:
    """Orders that are Paid or Confirmed are kept for the financial record"""
    return _coerce(status, OrderStatus) not in NON_DELETABLE_ORDER_STATUSES


def ensure_order_deletable(status: Any) -> None:
    if not can_delete_order(status):
        raise OrderDeletionError(status)


# ============================================================================
# Tasks
# ============================================================================

def is_valid_task_transition(from_status: Any, to_status: Any) -> bool:
    """Whether a task may move from one status to another"""
    current = _coerce(from_status, TaskStatus)
    requested = _coerce(to_status, TaskStatus)
    if current is None or requested is None:
        return False
    if current is requested:
        return True
    return requested in TASK_TRANSITIONS[current]


def ensure_valid_task_transition(from_status: Any, to_status: Any) -> None:
    if not is_valid_task_transition(from_status, to_status):
        logger.warning(f"Rejected task status transition {from_status} -> {to_status}")
        raise InvalidTransitionError(from_status, to_status, entity="task")


def can_delete_task(status: Any) -> bool:
    """Only tasks nobody has picked up yet may be deleted"""
    return _coerce(status, TaskStatus) is TaskStatus.PENDING


def ensure_task_deletable(status: Any) -> None:
    if not can_delete_task(status):
        raise TaskDeletionError(status)
