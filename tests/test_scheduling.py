"""
Tests for the scheduling rule resolver
"""

import sys
import os
from datetime import date, datetime, time, timedelta, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from rental_api.models.templates import SchedulingRules
from rental_api.services.scheduling import (
    check_business_hours,
    parse_time_of_day,
    resolve_scheduled_datetime,
)


class TestResolveScheduledDatetime:
    """Test offset and time resolution"""

    def test_offset_before_event(self):
        """eventDate 2025-08-02, one day earlier at 16:00"""
        rule = SchedulingRules(relative_to="eventDate", offset_days=-1, default_time="16:00")
        result = resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)})
        assert result == datetime(2025, 8, 1, 16, 0)

    def test_delivery_date_reference(self):
        rule = SchedulingRules(relative_to="deliveryDate", offset_days=0, default_time="09:00")
        dates = {"eventDate": date(2025, 8, 2), "deliveryDate": date(2025, 8, 1)}
        assert resolve_scheduled_datetime(rule, dates) == datetime(2025, 8, 1, 9, 0)

    def test_offset_crosses_month_boundary(self):
        rule = SchedulingRules(relative_to="eventDate", offset_days=1, default_time="10:00")
        result = resolve_scheduled_datetime(rule, {"eventDate": date(2025, 1, 31)})
        assert result == datetime(2025, 2, 1, 10, 0)

    def test_manual_returns_none(self):
        rule = SchedulingRules(relative_to="manual", offset_days=3)
        assert resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)}) is None

    def test_missing_reference_falls_back(self):
        """Without a delivery date the event date is used"""
        rule = SchedulingRules(relative_to="deliveryDate", default_time="09:00")
        result = resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)})
        assert result == datetime(2025, 8, 2, 9, 0)

    def test_no_dates_returns_none(self):
        rule = SchedulingRules(relative_to="eventDate")
        assert resolve_scheduled_datetime(rule, {}) is None

    def test_snake_case_keys_and_iso_strings(self):
        rule = {"relativeTo": "eventDate", "offsetDays": 2, "defaultTime": "08:30"}
        result = resolve_scheduled_datetime(rule, {"event_date": "2025-08-02"})
        assert result == datetime(2025, 8, 4, 8, 30)

    def test_malformed_time_uses_nine_am(self):
        rule = {"relative_to": "eventDate", "offset_days": 0, "default_time": "25:99"}
        result = resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)})
        assert result == datetime(2025, 8, 2, 9, 0)

    def test_datetime_reference_keeps_timezone(self):
        reference = datetime(2025, 8, 2, 18, 45, tzinfo=timezone.utc)
        rule = SchedulingRules(relative_to="eventDate", offset_days=-1, default_time="16:00")
        result = resolve_scheduled_datetime(rule, {"eventDate": reference})
        assert result == datetime(2025, 8, 1, 16, 0, tzinfo=timezone.utc)

    def test_offset_matches_day_difference(self):
        """Scheduled day is always reference + offset days"""
        reference = date(2025, 3, 10)
        for offset in (-30, -1, 0, 1, 7, 365):
            rule = SchedulingRules(relative_to="eventDate", offset_days=offset)
            result = resolve_scheduled_datetime(rule, {"eventDate": reference})
            assert result.date() == reference + timedelta(days=offset)

    @pytest.mark.parametrize("offset", [10**7, -10**7, float("inf")])
    def test_offset_out_of_calendar_range(self, offset):
        """Offsets that leave the date range resolve to no date"""
        rule = {"relativeTo": "eventDate", "offsetDays": offset, "defaultTime": "09:00"}
        assert resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)}) is None

    def test_offset_past_last_calendar_day(self):
        rule = SchedulingRules(relative_to="eventDate", offset_days=1)
        assert resolve_scheduled_datetime(rule, {"eventDate": date(9999, 12, 31)}) is None

    def test_nan_offset_uses_zero(self):
        rule = {"relativeTo": "eventDate", "offsetDays": float("nan"), "defaultTime": "10:00"}
        result = resolve_scheduled_datetime(rule, {"eventDate": date(2025, 8, 2)})
        assert result == datetime(2025, 8, 2, 10, 0)


class TestTimeParsing:
    """Test HH:MM parsing"""

    def test_single_digit_hour(self):
        assert parse_time_of_day("9:05") == time(9, 5)

    def test_invalid_values(self):
        assert parse_time_of_day("24:00") == time(9, 0)
        assert parse_time_of_day(None) == time(9, 0)
        assert parse_time_of_day("noon") == time(9, 0)


class TestBusinessHours:
    """Business hours are reported, never enforced"""

    def test_weekday_within_hours(self):
        assert check_business_hours(datetime(2025, 8, 1, 9, 0)) == []

    def test_weekend(self):
        warnings = check_business_hours(datetime(2025, 8, 2, 9, 0))
        assert warnings == ["Scheduled date falls on a weekend"]

    def test_after_hours(self):
        warnings = check_business_hours(datetime(2025, 8, 1, 19, 0))
        assert warnings == ["Scheduled time is outside business hours"]

    def test_end_hour_is_exclusive(self):
        assert check_business_hours(datetime(2025, 8, 1, 18, 0)) != []
        assert check_business_hours(datetime(2025, 8, 1, 17, 59)) == []
