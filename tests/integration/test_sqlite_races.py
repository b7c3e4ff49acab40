"""
Concurrency tests against a file-backed SQLite database.

Each contender runs create_booking on its own connection, so the
compare-and-swap columns are what keeps the outcomes consistent.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
import threading

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from rentals.core.enums import RoleName
from rentals.core.exceptions import (
    AccountBusyException,
    InsufficientBalanceException,
    SlotAlreadyBookedException,
)
from rentals.core.ids import generate_id
from rentals.database import Base
from rentals.models import Booking, Business, CarModel, CarUnit, LedgerEntry, User
from rentals.repositories.ledger_repository import LedgerRepository
from rentals.services.booking_service import BookingService
from tests.helpers import FIXED_NOW

START = FIXED_NOW.replace(hour=10) + timedelta(days=1)
CONTENDERS = 6


def _foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
def file_sessions(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'races.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    event.listen(engine, "connect", _foreign_keys)
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    finally:
        engine.dispose()


@pytest.fixture
def fleet(file_sessions):
    """A business with a 20 cr/h model and two active units."""
    session = file_sessions()
    try:
        business = Business(name="Forza Uptown", slug="forza-uptown")
        model = CarModel(display_name="Porsche 911", suggested_credits_per_hour=20)
        session.add_all([business, model])
        session.commit()
        units = [
            CarUnit(business_id=business.id, car_model_id=model.id, active=True)
            for _ in range(2)
        ]
        session.add_all(units)
        session.commit()
        return units
    finally:
        session.close()


def _seed_customer(file_sessions, credits: int) -> User:
    session = file_sessions()
    try:
        user = User(
            email=f"racer-{generate_id()}@example.com",
            full_name="Racer",
            role=RoleName.CUSTOMER.value,
        )
        session.add(user)
        session.commit()
        session.add(LedgerEntry(user_id=user.id, delta=credits, reason="Test top-up"))
        session.commit()
        return user
    finally:
        session.close()


def _attempt(file_sessions, barrier, customer, unit_id):
    session = file_sessions()
    try:
        service = BookingService(session, clock=lambda: FIXED_NOW)
        barrier.wait()
        try:
            service.create_booking(customer, unit_id, START, START + timedelta(hours=2))
            return "booked"
        except SlotAlreadyBookedException:
            return "conflict"
        except AccountBusyException:
            return "busy"
        except InsufficientBalanceException:
            return "insufficient"
    finally:
        session.close()


def test_one_account_cannot_overspend_across_units(file_sessions, fleet):
    customer = _seed_customer(file_sessions, 40)
    barrier = threading.Barrier(len(fleet))

    with ThreadPoolExecutor(max_workers=len(fleet)) as pool:
        outcomes = list(
            pool.map(lambda unit: _attempt(file_sessions, barrier, customer, unit.id), fleet)
        )

    assert outcomes.count("booked") == 1
    assert set(outcomes) - {"booked"} <= {"busy", "insufficient"}

    check = file_sessions()
    try:
        assert LedgerRepository(check).get_balance(customer.id) == 0
        assert check.query(Booking).count() == 1
        assert check.query(LedgerEntry).filter(LedgerEntry.delta < 0).count() == 1
    finally:
        check.close()


def test_same_unit_admits_exactly_one(file_sessions, fleet):
    target = fleet[0]
    customers = [_seed_customer(file_sessions, 100) for _ in range(CONTENDERS)]
    barrier = threading.Barrier(CONTENDERS)

    with ThreadPoolExecutor(max_workers=CONTENDERS) as pool:
        outcomes = list(
            pool.map(lambda c: _attempt(file_sessions, barrier, c, target.id), customers)
        )

    assert outcomes.count("booked") == 1
    assert outcomes.count("conflict") == CONTENDERS - 1

    check = file_sessions()
    try:
        assert check.query(Booking).filter(Booking.car_unit_id == target.id).count() == 1
        charges = check.query(LedgerEntry).filter(LedgerEntry.delta < 0).all()
        assert [entry.delta for entry in charges] == [-40]
        balances = sorted(LedgerRepository(check).get_balance(c.id) for c in customers)
        assert balances == [60] + [100] * (CONTENDERS - 1)
    finally:
        check.close()
