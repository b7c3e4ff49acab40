# tests/conftest.py
"""
Pytest configuration for the booking engine.

Tests run against an in-memory SQLite database unless TEST_DATABASE_URL points
at a PostgreSQL instance. Every test gets a freshly created schema.
"""

import os

# Set test configuration BEFORE any rentals imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-rentals-booking-engine-0123456789")

from datetime import datetime
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from rentals.auth import create_access_token
from rentals.core.config import settings
from rentals.core.enums import RoleName
from rentals.database import Base, get_db
from rentals.events import EventPublisher
from rentals.main import app
from rentals.models import Business, CarBlackout, CarModel, CarUnit, LedgerEntry, User
from tests.helpers import FIXED_NOW

# ============================================================================
# Database
# ============================================================================


def _sqlite_foreign_keys(dbapi_connection: Any, connection_record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_test_engine() -> Engine:
    if settings.test_database_url:
        return create_engine(settings.test_database_url, pool_pre_ping=True)
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(test_engine, "connect", _sqlite_foreign_keys)
    return test_engine


@pytest.fixture
def engine() -> Iterator[Engine]:
    test_engine = _build_test_engine()
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    try:
        yield test_engine
    finally:
        Base.metadata.drop_all(bind=test_engine)
        test_engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)


@pytest.fixture
def db(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# ============================================================================
# Clock and events
# ============================================================================


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def recorded_events() -> Tuple[EventPublisher, List[Tuple[str, Dict[str, Any]]]]:
    received: List[Tuple[str, Dict[str, Any]]] = []
    publisher = EventPublisher()
    publisher.subscribe(lambda event_type, payload: received.append((event_type, payload)))
    return publisher, received


# ============================================================================
# Factories
# ============================================================================


@pytest.fixture
def business(db: Session) -> Business:
    row = Business(name="Forza Downtown", slug="forza-downtown")
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def car_model(db: Session) -> CarModel:
    row = CarModel(
        display_name="Ferrari 488 GTB",
        make="Ferrari",
        model="488 GTB",
        year=2019,
        suggested_credits_per_hour=20,
    )
    db.add(row)
    db.commit()
    return row


@pytest.fixture
def make_unit(db: Session, business: Business, car_model: CarModel) -> Callable[..., CarUnit]:
    counter = {"n": 0}

    def _make(
        *,
        color: Optional[str] = "Red",
        credits_per_hour: Optional[int] = None,
        active: bool = True,
        model: Optional[CarModel] = None,
    ) -> CarUnit:
        counter["n"] += 1
        unit = CarUnit(
            business_id=business.id,
            car_model_id=(model or car_model).id,
            display_name=f"Unit {counter['n']}",
            color=color,
            credits_per_hour=credits_per_hour,
            active=active,
        )
        db.add(unit)
        db.commit()
        return unit

    return _make


@pytest.fixture
def unit(make_unit: Callable[..., CarUnit]) -> CarUnit:
    return make_unit()


@pytest.fixture
def make_user(db: Session) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(role: RoleName = RoleName.CUSTOMER, *, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.value.lower()}{counter['n']}@example.com",
            full_name=f"{role.value.title()} {counter['n']}",
            role=role.value,
            is_active=is_active,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture
def customer(make_user: Callable[..., User]) -> User:
    return make_user(RoleName.CUSTOMER)


@pytest.fixture
def other_customer(make_user: Callable[..., User]) -> User:
    return make_user(RoleName.CUSTOMER)


@pytest.fixture
def admin(make_user: Callable[..., User]) -> User:
    return make_user(RoleName.ADMIN)


@pytest.fixture
def business_user(make_user: Callable[..., User]) -> User:
    return make_user(RoleName.BUSINESS)


@pytest.fixture
def business_owner(db: Session, make_user: Callable[..., User], business: Business) -> User:
    owner = make_user(RoleName.BUSINESS)
    owner.business_id = business.id
    db.commit()
    return owner


@pytest.fixture
def fund(db: Session) -> Callable[[User, int], LedgerEntry]:
    def _fund(user: User, amount: int) -> LedgerEntry:
        entry = LedgerEntry(user_id=user.id, delta=amount, reason="Test top-up")
        db.add(entry)
        db.commit()
        return entry

    return _fund


@pytest.fixture
def make_blackout(db: Session) -> Callable[..., CarBlackout]:
    def _make(unit: CarUnit, start: datetime, end: datetime, reason: str = "Maintenance"):
        row = CarBlackout(car_unit_id=unit.id, start_ts=start, end_ts=end, reason=reason)
        db.add(row)
        db.commit()
        return row

    return _make


# ============================================================================
# API client
# ============================================================================


@pytest.fixture
def client(db: Session) -> Iterator[TestClient]:
    def override_get_db() -> Iterator[Session]:
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


def auth_headers_for(user: User) -> Dict[str, str]:
    token = create_access_token({"sub": user.id})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def customer_headers(customer: User) -> Dict[str, str]:
    return auth_headers_for(customer)


@pytest.fixture
def admin_headers(admin: User) -> Dict[str, str]:
    return auth_headers_for(admin)


@pytest.fixture
def business_headers(business_owner: User) -> Dict[str, str]:
    return auth_headers_for(business_owner)
