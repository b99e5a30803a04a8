"""
Tests for quarter-hour parking billing.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from parkspot.services.billing import compute

START = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def test_37_minutes_bill_as_three_quarters():
    result = compute(START, START + timedelta(minutes=37), 10)
    assert result.billing_hours == Decimal("0.75")
    assert result.total_cost == Decimal("7.50")
    assert result.duration_hours == 0.62


def test_one_minute_bills_minimum_quarter():
    result = compute(START, START + timedelta(minutes=1), 20)
    assert result.billing_hours == Decimal("0.25")
    assert result.total_cost == Decimal("5.00")


def test_zero_rate_is_free():
    result = compute(START, START + timedelta(hours=2), 0)
    assert result.billing_hours == Decimal("2.00")
    assert result.total_cost == Decimal("0")


def test_exact_quarter_is_not_rounded_up():
    result = compute(START, START + timedelta(minutes=15), 8)
    assert result.billing_hours == Decimal("0.25")
    assert result.total_cost == Decimal("2.00")


def test_one_microsecond_past_quarter_bills_next_quarter():
    result = compute(START, START + timedelta(minutes=15, microseconds=1), 8)
    assert result.billing_hours == Decimal("0.50")


def test_zero_duration_bills_nothing():
    result = compute(START, START, 10)
    assert result.billing_hours == Decimal("0")
    assert result.total_cost == Decimal("0")


def test_cost_rounded_to_cents():
    # 0.25 h at 1.333 per hour = 0.33325
    result = compute(START, START + timedelta(minutes=10), Decimal("1.333"))
    assert result.total_cost == Decimal("0.33")


def test_float_rate_is_billed_exactly():
    result = compute(START, START + timedelta(minutes=45), 1.1)
    assert result.total_cost == Decimal("0.83")


def test_end_before_start_rejected():
    with pytest.raises(ValueError):
        compute(START, START - timedelta(seconds=1), 10)


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        compute(START, START + timedelta(hours=1), -1)


def test_formatted_durations_under_an_hour():
    result = compute(START, START + timedelta(minutes=37), 10)
    assert result.formatted_duration == "37m"
    assert result.formatted_billing_duration == "45m"


def test_formatted_durations_over_an_hour():
    result = compute(START, START + timedelta(hours=2, minutes=5), 10)
    assert result.formatted_duration == "2h 5m"
    assert result.formatted_billing_duration == "2.25h"
    assert result.total_cost == Decimal("22.50")
