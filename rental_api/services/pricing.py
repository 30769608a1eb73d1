"""
Order pricing and payment capture.

All amounts are rounded with round2 at every step so the stored totals
always satisfy:

    total_amount = subtotal + tax_amount + delivery_fee + processing_fee - discount_amount
    balance_due  = total_amount - deposit_amount
"""

import logging
from typing import Any, Iterable, List, Optional

from rental_api.models.api import OrderItemInput, OrderTotals, PaymentCapture
from rental_api.models.domain import OrderItem, OrderStatus, PaymentStatus
from rental_api.services.order_status import transition_path
from rental_api.services.payment_rules import percentage_of
from rental_api.utils.exceptions import InvalidTransitionError, PaymentAmountMismatchError
from rental_api.utils.money import amounts_match, round2, to_amount

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_FEE = 20.0
DEFAULT_PROCESSING_FEE_PERCENTAGE = 3.0


def item_total(quantity: Any, unit_price: Any) -> float:
    return round2(to_amount(quantity) * to_amount(unit_price))


def build_order_items(items: Iterable[OrderItemInput]) -> List[OrderItem]:
    """Checkout line items with their computed total price"""
    return [
        OrderItem(
            type=item.type,
            name=item.name.strip(),
            description=item.description,
            quantity=item.quantity,
            unit_price=round2(item.unit_price),
            total_price=item_total(item.quantity, item.unit_price),
        )
        for item in items
    ]


def calculate_subtotal(items: Iterable[OrderItem]) -> float:
    return round2(sum(to_amount(item.total_price) for item in items))


def calculate_total(
    subtotal: Any,
    tax_amount: Any = 0.0,
    delivery_fee: Any = 0.0,
    processing_fee: Any = 0.0,
    discount_amount: Any = 0.0
) -> float:
    return round2(
        to_amount(subtotal)
        + to_amount(tax_amount)
        + to_amount(delivery_fee)
        + to_amount(processing_fee)
        - to_amount(discount_amount)
    )


def calculate_balance_due(total_amount: Any, deposit_amount: Any) -> float:
    return round2(to_amount(total_amount) - to_amount(deposit_amount))


def compute_order_totals(
    subtotal: Any,
    tax_amount: Any = 0.0,
    delivery_fee: Optional[float] = None,
    processing_fee: Optional[float] = None,
    discount_amount: Any = 0.0,
    deposit_amount: Any = 0.0,
    default_delivery_fee: float = DEFAULT_DELIVERY_FEE,
    processing_fee_percentage: float = DEFAULT_PROCESSING_FEE_PERCENTAGE
) -> OrderTotals:
    """
    Derive every monetary field of an order.

    A delivery fee of None falls back to default_delivery_fee (an explicit 0
    is kept). A processing fee of None is processing_fee_percentage percent
    of the subtotal, evaluated as a percentage payment rule.
    """
    subtotal = round2(subtotal)
    tax_amount = round2(tax_amount)
    discount_amount = round2(discount_amount)
    deposit_amount = round2(deposit_amount)

    delivery_fee = round2(default_delivery_fee if delivery_fee is None else delivery_fee)
    if processing_fee is None:
        processing_fee = percentage_of(subtotal, processing_fee_percentage)
    else:
        processing_fee = round2(processing_fee)

    total_amount = calculate_total(subtotal, tax_amount, delivery_fee, processing_fee, discount_amount)

    return OrderTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        delivery_fee=delivery_fee,
        processing_fee=processing_fee,
        discount_amount=discount_amount,
        total_amount=total_amount,
        deposit_amount=deposit_amount,
        balance_due=calculate_balance_due(total_amount, deposit_amount),
    )


def derive_payment_capture(
    amount: Any,
    total_amount: Any,
    deposit_amount: Any,
    amount_paid: Any = 0.0,
    current_status: OrderStatus = OrderStatus.PENDING
) -> PaymentCapture:
    """
    Work out payment and order status after capturing an amount.

    - amount equal to the total, or a capture that brings the cumulative paid
      amount up to the total: payment Paid, order Paid, nothing left due
    - amount equal to the deposit: payment Authorized, order status unchanged
    - anything else: PaymentAmountMismatchError

    Raises:
        PaymentAmountMismatchError: amount matches neither total nor deposit
        InvalidTransitionError: the order can no longer become Paid
    """
    amount = round2(amount)
    total_amount = round2(total_amount)
    deposit_amount = round2(deposit_amount)
    paid = round2(to_amount(amount_paid) + amount)

    if amounts_match(amount, total_amount) or (total_amount > 0 and paid >= total_amount):
        if current_status in (OrderStatus.PAID, OrderStatus.CONFIRMED):
            order_status = current_status
        elif transition_path(current_status, OrderStatus.PAID) is None:
            raise InvalidTransitionError(current_status, OrderStatus.PAID)
        else:
            order_status = OrderStatus.PAID
        return PaymentCapture(
            payment_status=PaymentStatus.PAID,
            order_status=order_status,
            amount_paid=paid,
            balance_due=0.0,
        )

    if deposit_amount > 0 and amounts_match(amount, deposit_amount):
        return PaymentCapture(
            payment_status=PaymentStatus.AUTHORIZED,
            order_status=current_status,
            amount_paid=paid,
            balance_due=calculate_balance_due(total_amount, paid),
        )

    logger.warning(f"Captured amount {amount:.2f} matches neither total {total_amount:.2f} "
                   f"nor deposit {deposit_amount:.2f}")
    raise PaymentAmountMismatchError(amount, total_amount, deposit_amount)
