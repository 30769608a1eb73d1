"""
Template Engine

Fills task title/description patterns such as
"Delivery - {itemNames}" from a flat variable map, builds that map from an
order, validates template configuration and produces task previews.
"""

import logging
import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, List, Optional, Union

from rental_api.models.domain import Order
from rental_api.models.templates import (
    PaymentRuleType,
    SchedulingRelativeTo,
    TaskTemplate,
    TaskTemplatePreview,
    TemplateVariables,
)
from rental_api.services.payment_rules import (
    evaluate_payment_rule,
    rule_field,
)
from rental_api.services.scheduling import (
    TIME_PATTERN,
    check_business_hours,
    resolve_scheduled_datetime,
)
from rental_api.utils.money import to_amount

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")

MAX_OFFSET_DAYS = 365
MAX_INSTRUCTIONS_LENGTH = 100
MAX_LISTED_ITEMS = 3

AVAILABLE_VARIABLES = [
    ("orderNumber", "Order number", "BB-2025-0001"),
    ("customerName", "Customer name", "John Smith"),
    ("customerEmail", "Customer email", "john@example.com"),
    ("customerPhone", "Customer phone", "(555) 123-4567"),
    ("eventDate", "Event date", "Jan 15, 2025"),
    ("deliveryDate", "Delivery date", "Jan 14, 2025"),
    ("deliveryAddress", "Delivery street address", "123 Main St"),
    ("fullAddress", "Complete delivery address", "123 Main St, Austin, TX 78701"),
    ("orderItems", "Detailed list of ordered items", "2x Large Bounce House, 1x Water Slide"),
    ("itemNames", "Simplified item names", "Large Bounce House, Water Slide"),
    ("orderTotal", "Order total amount", "$299.99"),
    ("specialInstructions", "Special instructions from order", "Setup in backyard"),
    ("taskType", "Task type/template name", "Delivery"),
    ("templateName", "Template name", "Standard Delivery"),
]

VariableMap = Union[TemplateVariables, Mapping]


# ============================================================================
# Substitution
# ============================================================================

def _as_mapping(variables: Optional[VariableMap]) -> Mapping:
    if variables is None:
        return {}
    if isinstance(variables, TemplateVariables):
        return variables.as_mapping()
    return variables


def render(pattern: str, variables: Optional[VariableMap]) -> str:
    """
    Replace every {key} in pattern with str(variables[key]).

    Unknown keys are left as the literal {key}. Substitution is a single
    pass: substituted values are never scanned for placeholders again.
    None values render as an empty string.
    """
    if not pattern:
        return ""

    values = _as_mapping(variables)
    missing = []

    def substitute(match: re.Match) -> str:
        key = match.group(1)
        if key not in values:
            missing.append(key)
            return match.group(0)
        value = values[key]
        return "" if value is None else str(value)

    result = PLACEHOLDER_PATTERN.sub(substitute, pattern)
    if missing:
        logger.debug(f"Unresolved placeholders left in pattern: {', '.join(missing)}")
    return result


def find_placeholders(pattern: str) -> List[str]:
    """Placeholder names in order of first appearance"""
    seen = []
    for key in PLACEHOLDER_PATTERN.findall(pattern or ""):
        if key not in seen:
            seen.append(key)
    return seen


def missing_placeholders(pattern: str, variables: Optional[VariableMap]) -> List[str]:
    values = _as_mapping(variables)
    return [key for key in find_placeholders(pattern) if key not in values]


def tidy_text(text: str) -> str:
    """Drop blank lines and trailing spaces left by empty variables"""
    text = re.sub(r"\n\s*\n", "\n", text)
    text = re.sub(r"[ \t]+\n", "\n", text)
    return text.strip()


# ============================================================================
# Validation
# ============================================================================

def validate_pattern(pattern: str) -> List[str]:
    """
    Check a pattern for syntax errors.

    Returns:
        List of error messages, empty when the pattern is valid
    """
    errors = []
    pattern = pattern or ""

    if pattern.count("{") != pattern.count("}"):
        errors.append("Unmatched braces in pattern")
    if re.search(r"\{\s*\}", pattern):
        errors.append("Empty variable names found")
    if re.search(r"\{[^}]*\{[^}]*\}", pattern):
        errors.append("Nested braces are not allowed")

    return errors


def validate_payment_rules(rules: Any) -> List[str]:
    """Creation-time checks; evaluation itself tolerates all of these"""
    errors = []
    try:
        rule_type = PaymentRuleType(rule_field(rules, "type"))
    except ValueError:
        errors.append("Payment rule type must be fixed, percentage or formula")
        return errors

    base_amount = to_amount(rule_field(rules, "base_amount"))
    percentage = to_amount(rule_field(rules, "percentage"))

    if rule_type in (PaymentRuleType.FIXED, PaymentRuleType.FORMULA) and base_amount <= 0:
        errors.append(f"{rule_type.value.capitalize()} payment type requires a base amount")
    if rule_type in (PaymentRuleType.PERCENTAGE, PaymentRuleType.FORMULA) and not 0 < percentage <= 100:
        errors.append("Percentage must be greater than 0 and at most 100")

    minimum = rule_field(rules, "minimum_amount")
    maximum = rule_field(rules, "maximum_amount")
    if minimum is not None and to_amount(minimum) < 0:
        errors.append("Minimum amount cannot be negative")
    if minimum is not None and maximum is not None and to_amount(minimum) > to_amount(maximum):
        errors.append("Minimum amount cannot be greater than maximum amount")

    return errors


def validate_scheduling_rules(rules: Any) -> List[str]:
    errors = []
    try:
        SchedulingRelativeTo(rule_field(rules, "relative_to"))
    except ValueError:
        errors.append("Scheduling reference must be eventDate, deliveryDate or manual")

    offset_days = rule_field(rules, "offset_days")
    if not isinstance(offset_days, int) or isinstance(offset_days, bool) \
            or not -MAX_OFFSET_DAYS <= offset_days <= MAX_OFFSET_DAYS:
        errors.append(f"Offset days must be a whole number between -{MAX_OFFSET_DAYS} and {MAX_OFFSET_DAYS}")

    if not TIME_PATTERN.match(str(rule_field(rules, "default_time") or "")):
        errors.append("Default time must be in HH:MM 24-hour format")

    if not isinstance(rule_field(rules, "business_hours_only"), bool):
        errors.append("Business hours flag must be true or false")

    return errors


def validate_template(template: Any) -> List[str]:
    """All configuration errors of a template or template request"""
    errors = []
    for label, field in (("Title", "title_pattern"), ("Description", "description_pattern")):
        errors.extend(f"{label}: {error}" for error in validate_pattern(getattr(template, field, "")))
    errors.extend(validate_payment_rules(template.payment_rules))
    errors.extend(validate_scheduling_rules(template.scheduling_rules))
    return errors


# ============================================================================
# Variables
# ============================================================================

def format_display_date(value: Optional[date]) -> str:
    """Jan 15, 2025 style, or TBD"""
    if value is None:
        return "TBD"
    return f"{value:%b} {value.day}, {value.year}"


def _clean_item_name(name: str) -> str:
    name = re.sub(r"\s*\(.*?\)\s*", "", name)  # parenthetical descriptions
    name = re.sub(r"\s*-.*$", "", name)  # dash descriptions
    name = re.sub(r"^\d+x?\s*", "", name, flags=re.IGNORECASE)  # quantity prefixes
    return name.strip()


def generate_variables(order: Order, template_name: str) -> TemplateVariables:
    """Flatten an order into the variables available to patterns"""
    if order.items:
        item_names = ", ".join(_clean_item_name(item.name) for item in order.items[:MAX_LISTED_ITEMS])
        if len(order.items) > MAX_LISTED_ITEMS:
            item_names += ", and more"
        order_items = ", ".join(f"{item.quantity}x {item.name}" for item in order.items)
    else:
        item_names = "Items"
        order_items = "No items"

    address_parts = [
        part for part in (
            order.customer_address,
            order.customer_city,
            order.customer_state,
            order.customer_zip_code,
        ) if part
    ]

    notes = (order.notes or "").strip()
    if len(notes) > MAX_INSTRUCTIONS_LENGTH:
        notes = notes[:MAX_INSTRUCTIONS_LENGTH - 3] + "..."

    return TemplateVariables(
        order_number=order.order_number,
        customer_name=order.customer_name or "Unknown Customer",
        customer_email=order.customer_email or "",
        customer_phone=order.customer_phone or "",
        event_date=format_display_date(order.event_date),
        delivery_date=format_display_date(order.delivery_date),
        delivery_address=order.customer_address or "Address TBD",
        full_address=", ".join(address_parts) if address_parts else "Address TBD",
        order_items=order_items,
        item_names=item_names,
        order_total=f"${order.total_amount:.2f}",
        special_instructions=notes,
        task_type=template_name,
        template_name=template_name,
    )


def available_variables() -> List[Dict[str, str]]:
    """Variables that can be used in patterns, for admin help text"""
    return [
        {"name": name, "description": description, "example": example}
        for name, description, example in AVAILABLE_VARIABLES
    ]


def order_reference_dates(order: Order) -> Dict[str, Optional[date]]:
    return {
        SchedulingRelativeTo.EVENT_DATE.value: order.event_date,
        SchedulingRelativeTo.DELIVERY_DATE.value: order.delivery_date,
    }


# ============================================================================
# Preview
# ============================================================================

def generate_task_preview(
    template: TaskTemplate,
    order: Order,
    business_hours_start: int = 8,
    business_hours_end: int = 18
) -> TaskTemplatePreview:
    """
    Show what a task generated from template and order would contain.

    Business-hours problems are reported in warnings; the scheduled time
    is never moved.
    """
    variables = generate_variables(order, template.name)
    mapping = variables.as_mapping()

    title = tidy_text(render(template.title_pattern, mapping))
    description = tidy_text(render(template.description_pattern, mapping))
    missing = missing_placeholders(
        f"{template.title_pattern}\n{template.description_pattern}", mapping
    )

    payment_amount = evaluate_payment_rule(template.payment_rules, order.total_amount)
    scheduled = resolve_scheduled_datetime(template.scheduling_rules, order_reference_dates(order))

    warnings = []
    if scheduled is not None and template.scheduling_rules.business_hours_only:
        warnings = check_business_hours(scheduled, business_hours_start, business_hours_end)
        for warning in warnings:
            logger.warning(f"{warning} for {template.name} task on order {order.order_number}")

    return TaskTemplatePreview(
        title=title,
        description=description,
        payment_amount=payment_amount,
        scheduled_date_time=scheduled,
        variables=variables,
        missing_variables=missing,
        warnings=warnings,
    )
