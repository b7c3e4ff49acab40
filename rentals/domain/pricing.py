"""
Rental pricing calculator.

Pure and deterministic: the booking transaction and the preview endpoint both
call calculate_rental_price so a quoted price always matches the charge.

Tiers:
- up to 5 hours: hourly rate, partial hours rounded up to a whole credit
- one calendar day (over 5h, up to 24h): capped at 5 hours of the hourly rate
- longer: each started day is one day price, and each full week bills
  at most 5 days
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.constants import (
    DAY_CAP_HOURS,
    DAY_MINUTES,
    HOURLY_THRESHOLD_HOURS,
    WEEK_BILLABLE_DAYS,
    WEEK_DAYS,
)
from ..core.enums import PricingMode
from ..core.exceptions import ValidationException


@dataclass(frozen=True)
class PricingResult:
    mode: PricingMode
    total_credits: int
    hourly_rate: int
    day_price: int
    duration_minutes: int
    billable_days: Optional[int]
    total_days: Optional[int]
    breakdown: str


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}{'' if n == 1 else 's'}"


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def format_duration(duration_minutes: int) -> str:
    """Human-readable duration such as ``"2 days, 3 hours"`` or ``"90 minutes"``."""
    if duration_minutes < 60:
        return _plural(duration_minutes, "minute")
    days, rest = divmod(duration_minutes, DAY_MINUTES)
    hours, minutes = divmod(rest, 60)
    parts = []
    if days:
        parts.append(_plural(days, "day"))
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    return ", ".join(parts)


def calculate_rental_price(duration_minutes: int, hourly_rate: int) -> PricingResult:
    """
    Price a rental of ``duration_minutes`` at ``hourly_rate`` credits per hour.

    Raises:
        ValidationException: if either input is not a positive integer.
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int):
        raise ValidationException("Duration must be a whole number of minutes")
    if isinstance(hourly_rate, bool) or not isinstance(hourly_rate, int):
        raise ValidationException("Hourly rate must be a whole number of credits")
    if duration_minutes <= 0:
        raise ValidationException(
            "Duration must be positive", details={"duration_minutes": duration_minutes}
        )
    if hourly_rate <= 0:
        raise ValidationException(
            "Hourly rate must be positive", details={"hourly_rate": hourly_rate}
        )

    day_price = hourly_rate * DAY_CAP_HOURS

    if duration_minutes <= HOURLY_THRESHOLD_HOURS * 60:
        total = _ceil_div(hourly_rate * duration_minutes, 60)
        return PricingResult(
            mode=PricingMode.HOURLY,
            total_credits=total,
            hourly_rate=hourly_rate,
            day_price=day_price,
            duration_minutes=duration_minutes,
            billable_days=None,
            total_days=None,
            breakdown=f"{format_duration(duration_minutes)} × {hourly_rate} cr = {total} credits",
        )

    total_days = _ceil_div(duration_minutes, DAY_MINUTES)
    weeks, remainder = divmod(total_days, WEEK_DAYS)
    billable_days = weeks * WEEK_BILLABLE_DAYS + min(remainder, WEEK_BILLABLE_DAYS)
    total = billable_days * day_price

    if total_days == 1:
        mode = PricingMode.DAY_CAP
        breakdown = (
            f"1 day ({format_duration(duration_minutes)} capped at {DAY_CAP_HOURS}h) "
            f"= {total} credits"
        )
    else:
        mode = PricingMode.WEEK_CAP
        if weeks:
            span = _plural(weeks, "week")
            if remainder:
                span += f" + {_plural(remainder, 'day')}"
        else:
            span = _plural(total_days, "day")
        breakdown = (
            f"{span} → {_plural(billable_days, 'billable day')} × {day_price} cr "
            f"= {total} credits"
        )

    return PricingResult(
        mode=mode,
        total_credits=total,
        hourly_rate=hourly_rate,
        day_price=day_price,
        duration_minutes=duration_minutes,
        billable_days=billable_days,
        total_days=total_days,
        breakdown=breakdown,
    )
