"""
Exceptions - error taxonomy for the rental operations core.

Pure calculation helpers never raise for malformed input. These exceptions
are reserved for rule violations that must reach the caller, such as an
illegal status change or deleting a paid order.
"""

from enum import Enum
from typing import Optional, Dict, Any


def _label(value: Any) -> str:
    """Enum members render as their stored value"""
    return str(value.value) if isinstance(value, Enum) else str(value)


class RentalError(Exception):
    """
    Base exception for the rental core.

    Attributes:
        message: Human-readable message, safe to show to end users
        code: Stable error code
        details: Additional error details
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code or "RENTAL_ERROR"
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details,
        }


class InvalidTransitionError(RentalError):
    """Illegal order or task status change."""

    def __init__(self, from_status: str, to_status: str, entity: str = "order"):
        super().__init__(
            "Invalid status transition",
            "INVALID_STATUS_TRANSITION",
            {"entity": entity, "from": _label(from_status), "to": _label(to_status)}
        )
        self.from_status = from_status
        self.to_status = to_status


class OrderDeletionError(RentalError):
    """Order cannot be deleted in its current status."""

    def __init__(self, status: str):
        super().__init__(
            "Cannot delete orders with Paid or Confirmed status",
            "ORDER_NOT_DELETABLE",
            {"status": _label(status)}
        )


class TaskDeletionError(RentalError):
    """Task cannot be deleted in its current status."""

    def __init__(self, status: str):
        super().__init__(
            "Only pending tasks can be deleted",
            "TASK_NOT_DELETABLE",
            {"status": _label(status)}
        )


class PaymentAmountMismatchError(RentalError):
    """Captured amount matches neither the order total nor the deposit."""

    def __init__(self, amount: float, total_amount: float, deposit_amount: float):
        super().__init__(
            f"Payment amount must match either the total amount ({total_amount:.2f}) "
            f"or deposit amount ({deposit_amount:.2f})",
            "PAYMENT_AMOUNT_MISMATCH",
            {"amount": amount, "total_amount": total_amount, "deposit_amount": deposit_amount}
        )


class TemplateValidationError(RentalError):
    """Task template configuration is invalid."""

    def __init__(self, errors: list):
        super().__init__(
            "Invalid task template: " + "; ".join(errors),
            "INVALID_TEMPLATE",
            {"errors": list(errors)}
        )
        self.errors = list(errors)


class SystemTemplateError(RentalError):
    """System templates cannot be modified or deleted."""

    def __init__(self, template_name: str, action: str = "deleted"):
        super().__init__(
            f"System templates cannot be {action}",
            "SYSTEM_TEMPLATE",
            {"template": template_name}
        )


class NotFoundError(RentalError):
    """Requested record does not exist."""

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity.capitalize()} not found",
            "NOT_FOUND",
            {"entity": entity, "id": str(identifier)}
        )


class PaymentNotCompletedError(RentalError):
    """Order marked Paid before its payment has been captured."""

    def __init__(self, payment_status: str):
        super().__init__(
            "Cannot set order to Paid status without successful payment",
            "PAYMENT_NOT_COMPLETED",
            {"payment_status": _label(payment_status)}
        )
