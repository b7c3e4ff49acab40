"""Cancellation refund tiers."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..core.constants import (
    FULL_REFUND_MIN_HOURS,
    FULL_REFUND_PCT,
    NO_REFUND_PCT,
    PARTIAL_REFUND_MIN_HOURS,
    PARTIAL_REFUND_PCT,
)
from ..core.timezone_utils import ensure_utc


@dataclass(frozen=True)
class RefundDecision:
    refund_pct: int
    refund_credits: int
    hours_until_start: float

    @property
    def tier(self) -> str:
        if self.refund_pct == FULL_REFUND_PCT:
            return "full"
        if self.refund_pct == PARTIAL_REFUND_PCT:
            return "partial"
        return "none"


class RefundPolicy:
    """Determines how much of a booking charge is returned on cancellation."""

    @staticmethod
    def refund_pct_for(seconds_until_start: float) -> int:
        # Tier edges: exactly 6h is partial, exactly 1h is partial.
        if seconds_until_start > FULL_REFUND_MIN_HOURS * 3600:
            return FULL_REFUND_PCT
        if seconds_until_start >= PARTIAL_REFUND_MIN_HOURS * 3600:
            return PARTIAL_REFUND_PCT
        return NO_REFUND_PCT

    def evaluate(self, credits_charged: int, start_ts: datetime, now: datetime) -> RefundDecision:
        seconds = (ensure_utc(start_ts) - ensure_utc(now)).total_seconds()
        pct = self.refund_pct_for(seconds)
        return RefundDecision(
            refund_pct=pct,
            refund_credits=(credits_charged * pct) // 100,
            hours_until_start=round(seconds / 3600, 2),
        )
