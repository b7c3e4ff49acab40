"""Shared time helpers for the test suite."""

from datetime import datetime, timedelta, timezone

FIXED_NOW = datetime(2030, 1, 15, 8, 0, tzinfo=timezone.utc)


def aligned_future(days: int = 2, hour: int = 10, minute: int = 0) -> datetime:
    """A 30-minute aligned UTC instant ``days`` days from today."""
    base = datetime.now(timezone.utc) + timedelta(days=days)
    return base.replace(hour=hour, minute=minute, second=0, microsecond=0)


def iso(ts: datetime) -> str:
    return ts.isoformat()


def insert_booking(db, unit, customer, start: datetime, end: datetime, status: str = "CONFIRMED"):
    """Write a booking row directly, bypassing the booking transaction."""
    from rentals.models import Booking

    minutes = int((end - start).total_seconds() // 60)
    booking = Booking(
        car_unit_id=unit.id,
        customer_id=customer.id,
        start_ts=start,
        end_ts=end,
        status=status,
        credits_charged=20 * minutes // 60,
        pricing_mode="HOURLY",
        hourly_rate_used=20,
        day_price_used=100,
        billable_days=None,
        duration_minutes=minutes,
    )
    db.add(booking)
    db.commit()
    return booking
