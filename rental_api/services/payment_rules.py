"""
Payment Rule Evaluator

Turns a template payment rule plus a reference amount (usually the order
total) into a clamped, cent-rounded payment amount.

Rules may arrive as PaymentRules models or as plain mappings loaded from
JSON columns. Evaluation never raises: malformed numbers count as 0 and an
unknown rule type is evaluated as a fixed amount.
"""

import logging
import math
from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic.alias_generators import to_camel

from rental_api.models.templates import PaymentRules, PaymentRuleType
from rental_api.utils.money import round2, to_amount

logger = logging.getLogger(__name__)

RuleInput = Union[PaymentRules, Mapping]


def rule_field(rule: Any, name: str) -> Any:
    """Read a rule field from a model or a snake/camelCase mapping"""
    if isinstance(rule, Mapping):
        if name in rule:
            return rule[name]
        return rule.get(to_camel(name))
    return getattr(rule, name, None)


def coerce_rule_type(value: Any) -> PaymentRuleType:
    """Map a stored rule type to the enum, falling back to FIXED"""
    if isinstance(value, PaymentRuleType):
        return value
    try:
        return PaymentRuleType(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown payment rule type {value!r}, evaluating as fixed")
        return PaymentRuleType.FIXED


def _non_negative(value: Any, label: str) -> float:
    amount = to_amount(value)
    if amount < 0:
        logger.warning(f"Negative {label} {amount} in payment rule, using 0")
        return 0.0
    return amount


def _optional_bound(value: Any) -> Optional[float]:
    """A clamp bound, or None when absent or not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    try:
        bound = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(bound):
        return None
    return round2(bound)


def clamp_amount(amount: float, minimum: Optional[float] = None, maximum: Optional[float] = None) -> float:
    """
    Constrain an amount to [minimum, maximum].

    A missing minimum is 0 and a missing maximum is unbounded. The minimum is
    applied first, so an inverted range resolves to the maximum.
    """
    lower = 0.0 if minimum is None else minimum
    if amount < lower:
        amount = lower
    if maximum is not None and amount > maximum:
        amount = maximum
    return amount


def evaluate_payment_rule(rule: RuleInput, reference_amount: Any) -> float:
    """
    Calculate the payment amount for a rule.

    Args:
        rule: PaymentRules model or mapping with type, base_amount,
            percentage, minimum_amount and maximum_amount
        reference_amount: Amount percentages apply to, e.g. the order total

    Returns:
        fixed      -> base_amount
        percentage -> reference_amount * percentage / 100
        formula    -> base_amount + reference_amount * percentage / 100
        clamped to the rule bounds and rounded to cents.
    """
    rule_type = coerce_rule_type(rule_field(rule, "type"))
    base_amount = _non_negative(rule_field(rule, "base_amount"), "base amount")
    percentage = _non_negative(rule_field(rule, "percentage"), "percentage")
    reference = _non_negative(reference_amount, "reference amount")

    if rule_type is PaymentRuleType.PERCENTAGE:
        amount = reference * (percentage / 100)
    elif rule_type is PaymentRuleType.FORMULA:
        amount = base_amount + reference * (percentage / 100)
    else:
        amount = base_amount

    amount = clamp_amount(
        amount,
        _optional_bound(rule_field(rule, "minimum_amount")),
        _optional_bound(rule_field(rule, "maximum_amount")),
    )
    return round2(amount)


def percentage_of(reference_amount: Any, percentage: float) -> float:
    """Whole-number percentage of an amount, rounded to cents"""
    return evaluate_payment_rule(
        PaymentRules(type=PaymentRuleType.PERCENTAGE, percentage=percentage),
        reference_amount,
    )
