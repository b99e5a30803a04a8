"""
Time-based parking fees.

Billing rule: the elapsed time is rounded UP to the next quarter hour, so
any positive duration costs at least 0.25 h. The quarter count is computed
from whole microseconds rather than float hours to keep 15/30/45 minute
boundaries exact.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

BILLING_INCREMENT = timedelta(minutes=15)
INCREMENTS_PER_HOUR = 4

_CENT = Decimal("0.01")
_MICROSECOND = timedelta(microseconds=1)


@dataclass(frozen=True)
class BillingResult:
    duration_hours: float
    billing_hours: Decimal
    total_cost: Decimal
    formatted_duration: str
    formatted_billing_duration: str


def _to_decimal(value: Union[Decimal, float, int]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _format_duration(elapsed: timedelta) -> str:
    hours = elapsed // timedelta(hours=1)
    minutes = round((elapsed - timedelta(hours=hours)) / timedelta(minutes=1))
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def _format_billing_duration(billing_hours: Decimal) -> str:
    if billing_hours < 1:
        return f"{int(billing_hours * 60)}m"
    return f"{billing_hours:.2f}h"


def compute(
    start_time: datetime,
    end_time: datetime,
    hourly_rate: Union[Decimal, float, int],
) -> BillingResult:
    """Bill the interval [start_time, end_time) at `hourly_rate` per hour."""
    if end_time < start_time:
        raise ValueError("end_time must not be before start_time")
    rate = _to_decimal(hourly_rate)
    if rate < 0:
        raise ValueError(f"hourly rate must be non-negative, got {rate}")

    elapsed = end_time - start_time
    elapsed_us = elapsed // _MICROSECOND
    increment_us = BILLING_INCREMENT // _MICROSECOND
    increments = -(-elapsed_us // increment_us)

    billing_hours = Decimal(increments) / INCREMENTS_PER_HOUR
    total_cost = (billing_hours * rate).quantize(_CENT, rounding=ROUND_HALF_UP)
    duration_hours = round(elapsed / timedelta(hours=1), 2)

    return BillingResult(
        duration_hours=duration_hours,
        billing_hours=billing_hours.quantize(_CENT),
        total_cost=total_cost,
        formatted_duration=_format_duration(elapsed),
        formatted_billing_duration=_format_billing_duration(billing_hours),
    )
