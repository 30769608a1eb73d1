"""
Tests for order number formatting
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rental_api.services.order_numbers import (
    format_order_number,
    is_valid_order_number,
    parse_order_number,
    year_prefix,
)


class TestOrderNumbers:
    """Test BB-YYYY-NNNN order numbers"""

    def test_format_pads_sequence(self):
        assert format_order_number(2024, 1) == "BB-2024-0001"
        assert format_order_number(2025, 12345) == "BB-2025-12345"

    def test_parse(self):
        assert parse_order_number("BB-2024-0042") == ("BB", 2024, 42)
        assert parse_order_number(" BB-2024-0042 ") == ("BB", 2024, 42)

    def test_parse_rejects_malformed(self):
        assert parse_order_number("BB-24-1") is None
        assert parse_order_number("") is None
        assert parse_order_number(None) is None

    def test_is_valid(self):
        assert is_valid_order_number("BB-2025-0001")
        assert not is_valid_order_number("XX-2025-0001")

    def test_year_prefix(self):
        assert year_prefix(2025) == "BB-2025-"
        assert format_order_number(2025, 7).startswith(year_prefix(2025))
