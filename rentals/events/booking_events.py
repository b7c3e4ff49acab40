"""Booking domain events, published after the owning transaction commits."""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after a booking is successfully created."""

    booking_id: str
    customer_id: str
    car_unit_id: str
    start_ts: datetime
    end_ts: datetime
    credits_charged: int
    pricing_mode: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is canceled."""

    booking_id: str
    customer_id: str
    car_unit_id: str
    canceled_by: str  # 'customer' or 'admin'
    canceled_at: datetime
    refund_credits: int = 0
    refund_pct: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CreditsGranted:
    """Fired after an admin grants credits to an account."""

    user_id: str
    amount: int
    granted_by: str
    new_balance: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
