# rentals/services/booking_service.py
"""
Booking Service

Owns the two write transactions of the engine:

- create_booking: validate, price, debit and reserve a unit atomically
- cancel_booking: release a reservation and refund by notice tier

Overlap safety does not depend on the advisory availability check. On
PostgreSQL the `bookings_no_overlap` exclusion constraint rejects a
conflicting insert. Every backend additionally claims the unit's
booking_version and re-checks overlaps inside the transaction, so a lost race
surfaces as SlotAlreadyBookedException with nothing written. Debits on one
account are serialized the same way through the users row and its
ledger_version.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Callable, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.constants import BOOKING_CHARGE_REASON, CANCELLATION_REFUND_REASON
from ..core.enums import AuditAction, BookingStatus
from ..core.exceptions import (
    AccountBusyException,
    ForbiddenException,
    InsufficientBalanceException,
    NoRateConfiguredException,
    NotFoundException,
    SlotAlreadyBookedException,
    UnauthorizedException,
    UnitUnavailableException,
    ValidationException,
)
from ..core.ids import normalize_id
from ..core.timezone_utils import ensure_utc, utc_now
from ..domain.pricing import PricingResult, calculate_rental_price
from ..domain.refund_policy import RefundDecision, RefundPolicy
from ..domain.time_window import TimeWindow
from ..events import BookingCancelled, BookingCreated, EventPublisher, get_event_publisher
from ..models.audit_log import AuditLog
from ..models.booking import OVERLAP_CONSTRAINT_NAME, Booking
from ..models.user import User
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.factory import RepositoryFactory
from .base import BaseService

logger = logging.getLogger(__name__)

SLOT_CONFLICT_MESSAGE = (
    "This car was just booked for an overlapping time. Please pick another slot."
)
ALREADY_CANCELED_MESSAGE = "Booking was already canceled"

# PostgreSQL SQLSTATEs
_EXCLUSION_VIOLATION = "23P01"
_DEADLOCK_DETECTED = "40P01"


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    pricing: PricingResult
    balance_after: int

    @property
    def booking_id(self) -> str:
        return self.booking.id

    @property
    def credits_charged(self) -> int:
        return self.pricing.total_credits


@dataclass(frozen=True)
class CancellationResult:
    booking_id: str
    status: str
    refund_credits: int
    refund_pct: int
    already_canceled: bool = False
    hours_until_start: Optional[float] = None

    @property
    def message(self) -> str:
        if self.already_canceled:
            return ALREADY_CANCELED_MESSAGE
        if self.refund_credits > 0:
            return (
                f"Booking canceled. {self.refund_credits} credits refunded "
                f"({self.refund_pct}%)."
            )
        return "Booking canceled. No refund (less than 1 hour notice)."


class BookingService(BaseService):
    """Transactional booking creation and cancellation."""

    @staticmethod
    def _is_deadlock_error(exc: OperationalError) -> bool:
        orig = getattr(exc, "orig", None)
        pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if pgcode == _DEADLOCK_DETECTED:
            return True
        return "deadlock detected" in str(exc).lower()

    @staticmethod
    def _is_overlap_violation(exc: IntegrityError) -> bool:
        """True when the IntegrityError came from the booking overlap constraint."""
        orig = getattr(exc, "orig", None)
        diag = getattr(orig, "diag", None)
        constraint_name = getattr(diag, "constraint_name", "") if diag is not None else ""
        if constraint_name:
            return constraint_name == OVERLAP_CONSTRAINT_NAME
        pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
        if pgcode == _EXCLUSION_VIOLATION:
            return True
        return OVERLAP_CONSTRAINT_NAME in str(orig if orig is not None else exc)

    def __init__(
        self,
        db: Session,
        event_publisher: Optional[EventPublisher] = None,
        clock: Callable[[], datetime] = utc_now,
        refund_policy: Optional[RefundPolicy] = None,
    ):
        super().__init__(db)
        self.booking_repository = RepositoryFactory.create_booking_repository(db)
        self.unit_repository = RepositoryFactory.create_car_unit_repository(db)
        self.conflict_repository = RepositoryFactory.create_conflict_checker_repository(db)
        self.ledger_repository = RepositoryFactory.create_ledger_repository(db)
        self.user_repository = RepositoryFactory.create_user_repository(db)
        self.audit_repository = RepositoryFactory.create_audit_repository(db)
        self.event_publisher = event_publisher or get_event_publisher()
        self.refund_policy = refund_policy or RefundPolicy()
        self._clock = clock

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    # Creation

    def _validate_request_window(self, start_ts: datetime, end_ts: datetime) -> TimeWindow:
        window = TimeWindow.from_bounds(start_ts, end_ts)
        window.validate_bookable()
        if window.start <= self._now():
            raise ValidationException(
                "Booking must start in the future",
                details={"start": window.start.isoformat()},
            )
        if settings.enforce_same_day_bookings and not window.is_same_utc_day():
            raise ValidationException(
                "Bookings must start and end on the same day",
                details={"start": window.start.isoformat(), "end": window.end.isoformat()},
            )
        return window

    def _slot_conflict(
        self, unit_id: str, window: TimeWindow, source: str
    ) -> SlotAlreadyBookedException:
        prometheus_metrics.inc_booking_conflict(source)
        self.logger.info(
            "Booking conflict on unit %s (%s)",
            unit_id,
            source,
            extra={"unit_id": unit_id, "conflict_source": source},
        )
        return SlotAlreadyBookedException(
            SLOT_CONFLICT_MESSAGE,
            details={
                "unit_id": unit_id,
                "start": window.start.isoformat(),
                "end": window.end.isoformat(),
            },
        )

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        caller: Optional[User],
        unit_id: str,
        start_ts: datetime,
        end_ts: datetime,
    ) -> BookingResult:
        """
        Reserve ``unit_id`` for ``[start_ts, end_ts)`` and debit the caller.

        Raises:
            UnauthorizedException: no caller
            ForbiddenException: caller is not a customer
            ValidationException: malformed id or window
            UnitUnavailableException: unit missing, inactive or blacked out
            NoRateConfiguredException: no positive hourly rate resolvable
            InsufficientBalanceException: balance below the price
            SlotAlreadyBookedException: an overlapping booking won the race
            AccountBusyException: another debit on the account committed first
        """
        if caller is None:
            raise UnauthorizedException("Authentication required")
        if not caller.is_customer:
            raise ForbiddenException("Only customers can create bookings")
        normalized_unit_id = normalize_id(unit_id)
        if normalized_unit_id is None:
            raise ValidationException("Invalid car unit id", details={"unit_id": unit_id})
        unit_id = normalized_unit_id

        window = self._validate_request_window(start_ts, end_ts)
        self.log_operation(
            "create_booking",
            customer_id=caller.id,
            unit_id=unit_id,
            start=window.start.isoformat(),
            end=window.end.isoformat(),
        )

        try:
            with self.transaction():
                unit = self.unit_repository.lock_for_booking(unit_id)
                if unit is None or not unit.active:
                    raise UnitUnavailableException(
                        "Car unit not found or inactive", details={"unit_id": unit_id}
                    )
                if self.conflict_repository.has_blackout(unit.id, window.start, window.end):
                    raise UnitUnavailableException(
                        "Car is unavailable during the requested time (blackout)",
                        details={"unit_id": unit_id},
                    )

                rate = unit.effective_credits_per_hour
                if rate is None or rate <= 0:
                    raise NoRateConfiguredException(unit.id)
                pricing = calculate_rental_price(window.duration_minutes, rate)

                account = self.user_repository.lock_for_debit(caller.id)
                if account is None:
                    raise UnauthorizedException("Authentication required")
                balance = self.ledger_repository.get_balance(caller.id)
                if balance < pricing.total_credits:
                    raise InsufficientBalanceException(balance, pricing.total_credits)

                if not self.unit_repository.claim_booking_version(unit.id, unit.booking_version):
                    raise self._slot_conflict(unit.id, window, "version")
                if not self.user_repository.claim_ledger_version(
                    account.id, account.ledger_version
                ):
                    prometheus_metrics.inc_booking_conflict("account")
                    raise AccountBusyException(account.id)
                if self.conflict_repository.get_overlapping_bookings(
                    unit.id, window.start, window.end
                ):
                    raise self._slot_conflict(unit.id, window, "precheck")

                booking = self.booking_repository.create(
                    car_unit_id=unit.id,
                    customer_id=caller.id,
                    start_ts=window.start,
                    end_ts=window.end,
                    status=BookingStatus.CONFIRMED.value,
                    credits_charged=pricing.total_credits,
                    pricing_mode=pricing.mode.value,
                    hourly_rate_used=pricing.hourly_rate,
                    day_price_used=pricing.day_price,
                    billable_days=pricing.billable_days,
                    duration_minutes=pricing.duration_minutes,
                )
                self.ledger_repository.append(
                    user_id=caller.id,
                    delta=-pricing.total_credits,
                    reason=BOOKING_CHARGE_REASON,
                    related_booking_id=booking.id,
                )
                self.audit_repository.write(
                    AuditLog.record(
                        action=AuditAction.BOOKING_CREATED.value,
                        entity_type="booking",
                        entity_id=booking.id,
                        actor_user_id=caller.id,
                        details={
                            "car_unit_id": unit.id,
                            "start_ts": window.start.isoformat(),
                            "end_ts": window.end.isoformat(),
                            "credits_charged": pricing.total_credits,
                            "pricing_mode": pricing.mode.value,
                            "hourly_rate": pricing.hourly_rate,
                            "day_price": pricing.day_price,
                            "billable_days": pricing.billable_days,
                            "duration_minutes": pricing.duration_minutes,
                        },
                    )
                )
        except IntegrityError as exc:
            if self._is_overlap_violation(exc):
                raise self._slot_conflict(unit_id, window, "constraint") from exc
            raise
        except OperationalError as exc:
            if self._is_deadlock_error(exc):
                raise self._slot_conflict(unit_id, window, "deadlock") from exc
            raise

        balance_after = balance - pricing.total_credits
        prometheus_metrics.inc_booking_created(pricing.mode.value)
        prometheus_metrics.inc_ledger_entry("charge")
        self.logger.info(
            f"Booking {booking.id} created: {pricing.total_credits} credits ({pricing.mode.value})"
        )
        self.event_publisher.publish(
            BookingCreated(
                booking_id=booking.id,
                customer_id=caller.id,
                car_unit_id=unit_id,
                start_ts=window.start,
                end_ts=window.end,
                credits_charged=pricing.total_credits,
                pricing_mode=pricing.mode.value,
            )
        )
        return BookingResult(booking=booking, pricing=pricing, balance_after=balance_after)

    # Cancellation

    def _load_for_caller(self, caller: Optional[User], booking_id: str) -> Booking:
        if caller is None:
            raise UnauthorizedException("Authentication required")
        normalized_booking_id = normalize_id(booking_id)
        if normalized_booking_id is None:
            raise ValidationException("Invalid booking id", details={"booking_id": booking_id})
        booking_id = normalized_booking_id
        booking = self.booking_repository.get_by_id(booking_id, load_relationships=False)
        if booking is None:
            raise NotFoundException("Booking not found", details={"booking_id": booking_id})
        if booking.customer_id != caller.id and not caller.is_admin:
            raise ForbiddenException("You can only access your own bookings")
        return booking

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(self, caller: Optional[User], booking_id: str) -> CancellationResult:
        """
        Cancel a booking and refund by notice tier.

        Re-canceling a canceled booking succeeds with a zero refund and no writes.

        Raises:
            UnauthorizedException: no caller
            ValidationException: malformed booking id
            NotFoundException: booking does not exist
            ForbiddenException: caller is neither the owner nor an admin
        """
        booking = self._load_for_caller(caller, booking_id)
        already = CancellationResult(
            booking_id=booking.id,
            status=BookingStatus.CANCELED.value,
            refund_credits=0,
            refund_pct=0,
            already_canceled=True,
        )
        if booking.is_canceled:
            return already

        now = self._now()
        canceled_by = "customer" if booking.customer_id == caller.id else "admin"
        decision: RefundDecision = self.refund_policy.evaluate(
            booking.credits_charged, booking.start_ts, now
        )
        self.log_operation(
            "cancel_booking",
            booking_id=booking.id,
            actor_id=caller.id,
            refund_pct=decision.refund_pct,
        )

        with self.transaction():
            if not self.booking_repository.cancel_if_confirmed(
                booking.id, canceled_by_id=caller.id, canceled_at=now
            ):
                # A concurrent cancel got there first and owns the refund.
                return already
            if decision.refund_credits > 0:
                self.ledger_repository.append(
                    user_id=booking.customer_id,
                    delta=decision.refund_credits,
                    reason=CANCELLATION_REFUND_REASON.format(pct=decision.refund_pct),
                    related_booking_id=booking.id,
                )
            self.audit_repository.write(
                AuditLog.record(
                    action=AuditAction.BOOKING_CANCELED.value,
                    entity_type="booking",
                    entity_id=booking.id,
                    actor_user_id=caller.id,
                    details={
                        "refund_credits": decision.refund_credits,
                        "refund_pct": decision.refund_pct,
                        "hours_until_start": decision.hours_until_start,
                        "car_unit_id": booking.car_unit_id,
                        "canceled_by": canceled_by,
                    },
                )
            )

        self.db.refresh(booking)
        prometheus_metrics.inc_booking_cancellation(decision.tier)
        if decision.refund_credits > 0:
            prometheus_metrics.inc_ledger_entry("refund")
        self.event_publisher.publish(
            BookingCancelled(
                booking_id=booking.id,
                customer_id=booking.customer_id,
                car_unit_id=booking.car_unit_id,
                canceled_by=canceled_by,
                canceled_at=now,
                refund_credits=decision.refund_credits,
                refund_pct=decision.refund_pct,
            )
        )
        return CancellationResult(
            booking_id=booking.id,
            status=BookingStatus.CANCELED.value,
            refund_credits=decision.refund_credits,
            refund_pct=decision.refund_pct,
            hours_until_start=decision.hours_until_start,
        )

    # Reads

    @BaseService.measure_operation("get_booking")
    def get_booking(self, caller: Optional[User], booking_id: str) -> Booking:
        return self._load_for_caller(caller, booking_id)

    @BaseService.measure_operation("list_bookings")
    def list_bookings(
        self,
        caller: Optional[User],
        *,
        status: Optional[BookingStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        if caller is None:
            raise UnauthorizedException("Authentication required")
        return self.booking_repository.list_for_customer(
            caller.id,
            status=status.value if status else None,
            limit=limit,
            offset=offset,
        )

    @BaseService.measure_operation("list_business_bookings")
    def list_business_bookings(
        self,
        caller: Optional[User],
        *,
        status: Optional[BookingStatus] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        """Bookings on the caller's business units, latest start first."""
        if caller is None:
            raise UnauthorizedException("Authentication required")
        if not caller.is_business or not caller.business_id:
            raise ForbiddenException("Only business accounts can view fleet bookings")
        return self.booking_repository.list_for_business(
            caller.business_id,
            status=status.value if status else None,
            limit=limit,
            offset=offset,
        )
