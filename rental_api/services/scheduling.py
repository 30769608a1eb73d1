"""
Scheduling Rule Resolver

Computes when a generated task should happen: a reference date from the
order (event or delivery date), shifted by a number of calendar days, at
the rule's default wall-clock time.

The resolver only computes the naive timestamp. Business-hours rules are
reported by check_business_hours and left to the caller to act on.
"""

import logging
import re
from collections.abc import Mapping
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional, Union

from pydantic.alias_generators import to_snake

from rental_api.models.templates import SchedulingRules, SchedulingRelativeTo
from rental_api.services.payment_rules import rule_field

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^([01]?\d|2[0-3]):([0-5]\d)$")
DEFAULT_TIME = time(9, 0)

# Tried in order when the rule's own reference date is missing
FALLBACK_REFERENCES = (SchedulingRelativeTo.DELIVERY_DATE, SchedulingRelativeTo.EVENT_DATE)

RuleInput = Union[SchedulingRules, Mapping]


def parse_time_of_day(value: Any, fallback: time = DEFAULT_TIME) -> time:
    """Parse an HH:MM (24-hour) string, returning fallback when malformed"""
    if isinstance(value, time):
        return value
    match = TIME_PATTERN.match(str(value or "").strip())
    if not match:
        logger.warning(f"Invalid default time {value!r}, using {fallback:%H:%M}")
        return fallback
    return time(int(match.group(1)), int(match.group(2)))


def coerce_relative_to(value: Any) -> Optional[SchedulingRelativeTo]:
    if isinstance(value, SchedulingRelativeTo):
        return value
    try:
        return SchedulingRelativeTo(str(value).strip())
    except ValueError:
        logger.warning(f"Unknown scheduling reference {value!r}")
        return None


def _coerce_date(value: Any) -> Optional[Union[date, datetime]]:
    """Accept date, datetime or ISO-8601 strings"""
    if value is None or isinstance(value, (date, datetime)):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text)
            return date.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable reference date {value!r}")
    return None


def _lookup(reference_dates: Mapping, reference: SchedulingRelativeTo) -> Optional[Union[date, datetime]]:
    # keys may be "eventDate" or "event_date"
    value = reference_dates.get(reference.value)
    if value is None:
        value = reference_dates.get(to_snake(reference.value))
    return _coerce_date(value)


def select_reference_date(
    reference_dates: Mapping,
    relative_to: SchedulingRelativeTo
) -> Optional[Union[date, datetime]]:
    """The named reference date, else the delivery date, else the event date"""
    candidates = (relative_to,) + tuple(r for r in FALLBACK_REFERENCES if r is not relative_to)
    for candidate in candidates:
        reference = _lookup(reference_dates, candidate)
        if reference is not None:
            if candidate is not relative_to:
                logger.debug(f"No {relative_to.value} available, scheduling from {candidate.value}")
            return reference
    return None


def resolve_scheduled_datetime(rule: RuleInput, reference_dates: Mapping) -> Optional[datetime]:
    """
    Resolve a scheduling rule against an order's dates.

    Args:
        rule: SchedulingRules model or mapping with relative_to, offset_days,
            default_time and business_hours_only
        reference_dates: Mapping supplying eventDate / deliveryDate

    Returns:
        The scheduled datetime, or None when the rule is manual or no
        reference date is available or the offset runs past the calendar
        range. A datetime reference keeps its tzinfo.
    """
    relative_to = coerce_relative_to(rule_field(rule, "relative_to"))
    if relative_to is None or relative_to is SchedulingRelativeTo.MANUAL:
        return None

    reference = select_reference_date(reference_dates or {}, relative_to)
    if reference is None:
        logger.warning("No suitable base date found for scheduling calculation")
        return None

    try:
        offset_days = int(rule_field(rule, "offset_days") or 0)
    except (TypeError, ValueError):
        logger.warning(f"Invalid offset days {rule_field(rule, 'offset_days')!r}, using 0")
        offset_days = 0
    except OverflowError:
        logger.warning(f"Offset days {rule_field(rule, 'offset_days')!r} is out of range")
        return None

    tzinfo = reference.tzinfo if isinstance(reference, datetime) else None
    day = reference.date() if isinstance(reference, datetime) else reference
    try:
        scheduled_day = day + timedelta(days=offset_days)
    except (OverflowError, ValueError):
        logger.warning(f"Offset of {offset_days} days from {day} is out of the calendar range")
        return None
    time_of_day = parse_time_of_day(rule_field(rule, "default_time"))

    return datetime.combine(scheduled_day, time_of_day, tzinfo=tzinfo)


def check_business_hours(scheduled: datetime, start_hour: int = 8, end_hour: int = 18) -> List[str]:
    """
    Describe how a scheduled time breaks business hours.

    Returns an empty list when the time falls on a weekday within
    [start_hour, end_hour).
    """
    warnings = []
    if scheduled.weekday() >= 5:
        warnings.append("Scheduled date falls on a weekend")
    if scheduled.hour < start_hour or scheduled.hour >= end_hour:
        warnings.append("Scheduled time is outside business hours")
    return warnings
