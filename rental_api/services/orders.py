"""
Order Service

Checkout, admin edits, payment capture and deletion of orders. Every
monetary field is derived through the pricing helpers; status changes go
through the transition guard before anything is written.
"""

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from rental_api.models.api import (
    OrderCreateRequest,
    OrderUpdateRequest,
    PaymentCaptureResponse,
)
from rental_api.models.domain import Order, OrderStatus, PaymentStatus
from rental_api.services.order_status import ensure_order_deletable, ensure_valid_transition
from rental_api.services.pricing import (
    build_order_items,
    calculate_subtotal,
    compute_order_totals,
    derive_payment_capture,
)
from rental_api.services.repositories import get_order_repository
from rental_api.utils.config import settings
from rental_api.utils.exceptions import NotFoundError, PaymentNotCompletedError
from rental_api.utils.money import round2

logger = logging.getLogger(__name__)

PRICING_FIELDS = (
    "items",
    "tax_amount",
    "discount_amount",
    "delivery_fee",
    "processing_fee",
    "deposit_amount",
)


class OrderService:
    """Order lifecycle operations"""

    def __init__(self):
        self.repository = get_order_repository()

    def get_order(self, order_id: UUID) -> Order:
        order = self.repository.get(order_id)
        if order is None:
            raise NotFoundError("order", order_id)
        return order

    def get_order_by_number(self, order_number: str) -> Order:
        order = self.repository.get_by_number(order_number.strip())
        if order is None:
            raise NotFoundError("order", order_number)
        return order

    def create_order(self, request: OrderCreateRequest, today: Optional[date] = None) -> Order:
        """
        Price and store a new order.

        Delivery fee and deposit fall back to the configured defaults, the
        processing fee to PROCESSING_FEE_PERCENTAGE percent of the subtotal.
        New orders always start as Pending with a Pending payment.
        """
        items = build_order_items(request.items)
        totals = compute_order_totals(
            subtotal=calculate_subtotal(items),
            tax_amount=request.tax_amount,
            delivery_fee=request.delivery_fee,
            processing_fee=request.processing_fee,
            discount_amount=request.discount_amount,
            deposit_amount=(
                settings.DEFAULT_DEPOSIT_AMOUNT if request.deposit_amount is None
                else request.deposit_amount
            ),
            default_delivery_fee=settings.DEFAULT_DELIVERY_FEE,
            processing_fee_percentage=settings.PROCESSING_FEE_PERCENTAGE,
        )

        year = (today or date.today()).year
        order = Order(
            order_number=self.repository.next_order_number(year),
            customer_name=request.customer_name,
            customer_email=request.customer_email,
            customer_phone=request.customer_phone,
            customer_address=request.customer_address,
            customer_city=request.customer_city,
            customer_state=request.customer_state,
            customer_zip_code=request.customer_zip_code,
            items=items,
            **totals.model_dump(),
            amount_paid=0.0,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            payment_method=request.payment_method,
            event_date=request.event_date,
            delivery_date=request.delivery_date,
            notes=request.notes,
        )

        stored = self.repository.insert(order)
        logger.info(f"Created order {stored.order_number} total {stored.total_amount:.2f}")
        return stored

    def update_order(self, order_id: UUID, request: OrderUpdateRequest) -> Order:
        """
        Apply an admin edit.

        Fields left unset or sent as None keep their stored values. After a
        repricing the balance is measured against the amount already paid.

        Raises:
            InvalidTransitionError: requested status is not reachable
            PaymentNotCompletedError: status set to Paid before payment
            NotFoundError: unknown order
        """
        order = self.get_order(order_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)

        payment_status = changes.get("payment_status") or order.payment_status
        new_status = changes.get("status")
        if new_status is not None and new_status != order.status:
            ensure_valid_transition(order.status, new_status)
            if new_status == OrderStatus.PAID and payment_status != PaymentStatus.PAID:
                raise PaymentNotCompletedError(payment_status)

        updated = order.model_copy(update={
            key: value for key, value in changes.items()
            if key not in PRICING_FIELDS
        })

        if any(field in changes for field in PRICING_FIELDS):
            updated = self._reprice(updated, request, changes)

        stored = self.repository.save(updated)
        logger.info(f"Updated order {stored.order_number}: {', '.join(sorted(changes)) or 'no changes'}")
        return stored

    def _reprice(self, order: Order, request: OrderUpdateRequest, changes: dict) -> Order:
        items = build_order_items(request.items) if request.items else order.items
        subtotal = calculate_subtotal(items)

        processing_fee = changes.get("processing_fee")
        if processing_fee is None and "items" not in changes:
            processing_fee = order.processing_fee

        totals = compute_order_totals(
            subtotal=subtotal,
            tax_amount=changes.get("tax_amount", order.tax_amount),
            delivery_fee=changes.get("delivery_fee", order.delivery_fee),
            processing_fee=processing_fee,
            discount_amount=changes.get("discount_amount", order.discount_amount),
            deposit_amount=changes.get("deposit_amount", order.deposit_amount),
            default_delivery_fee=settings.DEFAULT_DELIVERY_FEE,
            processing_fee_percentage=settings.PROCESSING_FEE_PERCENTAGE,
        )
        values = totals.model_dump()
        if order.amount_paid > 0:
            # money already collected counts against the new total
            values["balance_due"] = round2(max(totals.total_amount - order.amount_paid, 0.0))
        return order.model_copy(update={"items": items, **values})

    def capture_payment(
        self,
        order_id: UUID,
        amount: float,
        transaction_id: Optional[str] = None
    ) -> PaymentCaptureResponse:
        """
        Record a captured payment against an order.

        Raises:
            PaymentAmountMismatchError: amount matches neither total nor deposit
            InvalidTransitionError: the order can no longer be paid
            NotFoundError: unknown order
        """
        order = self.get_order(order_id)
        capture = derive_payment_capture(
            amount,
            order.total_amount,
            order.deposit_amount,
            amount_paid=order.amount_paid,
            current_status=order.status,
        )

        stored = self.repository.save(order.model_copy(update={
            "payment_status": capture.payment_status,
            "status": capture.order_status,
            "amount_paid": capture.amount_paid,
            "balance_due": capture.balance_due,
        }))
        logger.info(
            f"Captured {amount:.2f} on order {stored.order_number} "
            f"(transaction {transaction_id or 'n/a'}): payment {capture.payment_status.value}"
        )

        return PaymentCaptureResponse(
            order_number=stored.order_number,
            payment_status=capture.payment_status,
            order_status=capture.order_status,
            amount_paid=capture.amount_paid,
            balance_due=capture.balance_due,
        )

    def delete_order(self, order_id: UUID) -> bool:
        """
        Delete an order unless it is Paid or Confirmed.

        Raises:
            OrderDeletionError: order is kept for the financial record
            NotFoundError: unknown order
        """
        order = self.get_order(order_id)
        ensure_order_deletable(order.status)
        deleted = self.repository.delete(order_id)
        if deleted:
            logger.info(f"Deleted order {order.order_number}")
        return deleted


# Singleton instance
_order_service = None


def get_order_service() -> OrderService:
    """Get singleton instance of OrderService"""
    global _order_service
    if _order_service is None:
        _order_service = OrderService()
    return _order_service
