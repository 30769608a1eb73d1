"""
Order numbers of the form BB-YYYY-NNNN.

The sequence restarts every year. Allocation against the database lives in
OrderRepository.next_order_number; these helpers only format and parse.
"""

import re
from typing import Optional, Tuple

ORDER_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<seq>\d{4,})$")


def format_order_number(year: int, sequence: int, prefix: str = "BB") -> str:
    """format_order_number(2024, 1) -> 'BB-2024-0001'"""
    return f"{prefix}-{year:04d}-{sequence:04d}"


def parse_order_number(order_number: str) -> Optional[Tuple[str, int, int]]:
    """Split an order number into (prefix, year, sequence), or None if malformed"""
    match = ORDER_NUMBER_PATTERN.match((order_number or "").strip())
    if not match:
        return None
    return match.group("prefix"), int(match.group("year")), int(match.group("seq"))


def is_valid_order_number(order_number: str, prefix: str = "BB") -> bool:
    parsed = parse_order_number(order_number)
    return parsed is not None and parsed[0] == prefix


def year_prefix(year: int, prefix: str = "BB") -> str:
    return f"{prefix}-{year:04d}-"
