"""
Tests for pattern substitution, validation and task previews
"""

import sys
import os
from datetime import date, datetime

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rental_api.models.domain import Order, OrderItem
from rental_api.models.templates import PaymentRules, SchedulingRules, TaskTemplate, TemplateVariables
from rental_api.services.task_templates import SYSTEM_TEMPLATES
from rental_api.services.template_engine import (
    available_variables,
    find_placeholders,
    format_display_date,
    generate_task_preview,
    generate_variables,
    missing_placeholders,
    render,
    tidy_text,
    validate_pattern,
    validate_payment_rules,
    validate_scheduling_rules,
)


@pytest.fixture
def order():
    """A two-item order for a Saturday party"""
    return Order(
        order_number="BB-2025-0001",
        customer_name="Jane Doe",
        customer_email="jane@example.com",
        customer_address="12 Oak St",
        customer_city="Austin",
        customer_state="TX",
        customer_zip_code="78701",
        items=[
            OrderItem(type="bouncer", name="Castle Bouncer (Large)", quantity=1, unit_price=150, total_price=150),
            OrderItem(type="extra", name="Water Slide - 18ft", quantity=2, unit_price=25, total_price=50),
        ],
        total_amount=200.0,
        payment_method="paypal",
        event_date=date(2025, 8, 2),
        delivery_date=date(2025, 8, 1),
    )


def system_template(name):
    data = next(item for item in SYSTEM_TEMPLATES if item["name"] == name)
    return TaskTemplate(**data, is_system_template=True)


class TestRender:
    """Test placeholder substitution"""

    def test_basic_substitution(self):
        result = render("Hello {name}, order {orderNumber}", {"name": "Jane", "orderNumber": "BB-2024-0001"})
        assert result == "Hello Jane, order BB-2024-0001"

    def test_unknown_placeholder_left_as_is(self):
        assert render("{missing}", {}) == "{missing}"

    def test_repeated_placeholder(self):
        assert render("{a}-{a}", {"a": "x"}) == "x-x"

    def test_single_pass(self):
        """Substituted values are not scanned again"""
        assert render("{a}", {"a": "{b}", "b": "x"}) == "{b}"

    def test_none_renders_empty(self):
        assert render("[{notes}]", {"notes": None}) == "[]"

    def test_non_string_values(self):
        assert render("{count} items", {"count": 3}) == "3 items"

    def test_template_variables_model(self):
        variables = TemplateVariables(order_number="BB-2025-0009")
        assert render("Order {orderNumber}", variables) == "Order BB-2025-0009"

    def test_empty_pattern(self):
        assert render("", {"a": "b"}) == ""


class TestPlaceholders:
    """Test placeholder discovery"""

    def test_find_in_order(self):
        assert find_placeholders("{b} {a} {b}") == ["b", "a"]

    def test_missing(self):
        assert missing_placeholders("{a} {b}", {"a": 1}) == ["b"]

    def test_tidy_text(self):
        assert tidy_text("Line one  \n\n\nLine two\n") == "Line one\nLine two"


class TestValidation:
    """Test template configuration checks"""

    def test_valid_pattern(self):
        assert validate_pattern("Delivery - {itemNames}") == []

    def test_unmatched_braces(self):
        assert "Unmatched braces in pattern" in validate_pattern("Delivery {itemNames")

    def test_empty_variable(self):
        assert "Empty variable names found" in validate_pattern("Delivery { }")

    def test_nested_braces(self):
        assert "Nested braces are not allowed" in validate_pattern("{a{b}}")

    def test_fixed_rule_needs_base_amount(self):
        errors = validate_payment_rules(PaymentRules(type="fixed", base_amount=0))
        assert errors == ["Fixed payment type requires a base amount"]

    def test_percentage_out_of_range(self):
        errors = validate_payment_rules({"type": "percentage", "percentage": 150})
        assert errors == ["Percentage must be greater than 0 and at most 100"]

    def test_inverted_bounds(self):
        rules = PaymentRules(type="fixed", base_amount=20, minimum_amount=30, maximum_amount=10)
        assert "Minimum amount cannot be greater than maximum amount" in validate_payment_rules(rules)

    def test_unknown_rule_type(self):
        assert validate_payment_rules({"type": "hourly"}) == [
            "Payment rule type must be fixed, percentage or formula"
        ]

    def test_scheduling_rules(self):
        assert validate_scheduling_rules(SchedulingRules(relative_to="eventDate", offset_days=1)) == []
        errors = validate_scheduling_rules(
            {"relative_to": "party", "offset_days": 400, "default_time": "9am", "business_hours_only": True}
        )
        assert len(errors) == 3

    @pytest.mark.parametrize("data", SYSTEM_TEMPLATES, ids=lambda data: data["name"])
    def test_system_templates_are_valid(self, data):
        template = TaskTemplate(**data)
        assert validate_payment_rules(template.payment_rules) == []
        assert validate_scheduling_rules(template.scheduling_rules) == []
        assert validate_pattern(template.title_pattern) == []
        assert validate_pattern(template.description_pattern) == []


class TestVariables:
    """Test order flattening"""

    def test_display_date(self):
        assert format_display_date(date(2025, 1, 5)) == "Jan 5, 2025"
        assert format_display_date(None) == "TBD"

    def test_generate_variables(self, order):
        variables = generate_variables(order, "Delivery")
        assert variables.item_names == "Castle Bouncer, Water Slide"
        assert variables.order_items == "1x Castle Bouncer (Large), 2x Water Slide - 18ft"
        assert variables.full_address == "12 Oak St, Austin, TX 78701"
        assert variables.order_total == "$200.00"
        assert variables.event_date == "Aug 2, 2025"
        assert variables.template_name == "Delivery"

    def test_long_item_lists_are_shortened(self, order):
        items = [
            OrderItem(type="extra", name=f"Item {n}", quantity=1, unit_price=1, total_price=1)
            for n in range(5)
        ]
        variables = generate_variables(order.model_copy(update={"items": items}), "Setup")
        assert variables.item_names == "Item 0, Item 1, Item 2, and more"

    def test_defaults_for_missing_data(self):
        bare = Order(order_number="BB-2025-0002", payment_method="cash")
        variables = generate_variables(bare, "Pickup")
        assert variables.customer_name == "Unknown Customer"
        assert variables.full_address == "Address TBD"
        assert variables.item_names == "Items"
        assert variables.delivery_date == "TBD"

    def test_long_notes_are_truncated(self, order):
        variables = generate_variables(order.model_copy(update={"notes": "x" * 150}), "Setup")
        assert len(variables.special_instructions) == 100
        assert variables.special_instructions.endswith("...")

    def test_mapping_uses_placeholder_names(self, order):
        mapping = generate_variables(order, "Delivery").as_mapping()
        assert mapping["orderNumber"] == "BB-2025-0001"
        assert set(mapping) == {variable["name"] for variable in available_variables()}


class TestTaskPreview:
    """Test previews built from the system templates"""

    def test_delivery_preview(self, order):
        preview = generate_task_preview(system_template("Delivery"), order)
        assert preview.title == "Delivery - Castle Bouncer, Water Slide"
        assert preview.description == (
            "Deliver 1x Castle Bouncer (Large), 2x Water Slide - 18ft to 12 Oak St, Austin, TX 78701\n"
            "Customer: Jane Doe | Order: BB-2025-0001"
        )
        assert preview.payment_amount == 30.0
        assert preview.scheduled_date_time == datetime(2025, 8, 1, 9, 0)
        assert preview.warnings == []
        assert preview.missing_variables == []

    def test_setup_preview_on_weekend_warns(self, order):
        preview = generate_task_preview(system_template("Setup"), order)
        assert preview.payment_amount == 20.0
        assert preview.scheduled_date_time == datetime(2025, 8, 2, 9, 0)
        assert preview.warnings == ["Scheduled date falls on a weekend"]

    def test_pickup_is_day_after_event(self, order):
        preview = generate_task_preview(system_template("Pickup"), order)
        assert preview.scheduled_date_time == datetime(2025, 8, 3, 10, 0)

    def test_maintenance_is_manual(self, order):
        preview = generate_task_preview(system_template("Maintenance"), order)
        assert preview.scheduled_date_time is None
        assert preview.warnings == []

    def test_unknown_placeholders_are_reported(self, order):
        template = TaskTemplate(name="Custom", title_pattern="{crewName} - {orderNumber}")
        preview = generate_task_preview(template, order)
        assert preview.title == "{crewName} - BB-2025-0001"
        assert preview.missing_variables == ["crewName"]
