"""Half-open rental windows and the scheduling grid rules that apply to them."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.constants import MIN_BOOKING_MINUTES, SLOT_MINUTES
from ..core.exceptions import ValidationException
from ..core.timezone_utils import ensure_utc


def is_slot_aligned(ts: datetime) -> bool:
    """True when ts sits exactly on a 30-minute boundary."""
    return ts.second == 0 and ts.microsecond == 0 and ts.minute % SLOT_MINUTES == 0


@dataclass(frozen=True)
class TimeWindow:
    """A `[start, end)` interval in UTC."""

    start: datetime
    end: datetime

    @classmethod
    def from_bounds(cls, start: datetime, end: datetime) -> "TimeWindow":
        return cls(start=ensure_utc(start), end=ensure_utc(end))

    @property
    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: "TimeWindow") -> bool:
        # Touching endpoints do not overlap.
        return self.start < other.end and self.end > other.start

    def validate_bookable(self) -> None:
        """
        Validate the grid rules shared by availability search and booking.

        Raises:
            ValidationException: on an inverted window, misaligned bounds,
                or a window shorter than the minimum rental.
        """
        if self.end <= self.start:
            raise ValidationException(
                "End time must be after start time",
                details={"start": self.start.isoformat(), "end": self.end.isoformat()},
            )
        if not (is_slot_aligned(self.start) and is_slot_aligned(self.end)):
            raise ValidationException(
                f"Times must align to {SLOT_MINUTES}-minute boundaries",
                details={"start": self.start.isoformat(), "end": self.end.isoformat()},
            )
        minutes = self.duration_minutes
        if minutes < MIN_BOOKING_MINUTES:
            raise ValidationException(
                "Minimum booking duration is 1 hour",
                details={"duration_minutes": minutes},
            )
        if minutes % SLOT_MINUTES != 0:
            raise ValidationException(
                f"Booking duration must be in {SLOT_MINUTES}-minute increments",
                details={"duration_minutes": minutes},
            )

    def is_same_utc_day(self) -> bool:
        return self.start.date() == self.end.date()
