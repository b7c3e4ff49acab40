"""BlackoutService and the business booking list: role and ownership scoping."""

from datetime import timedelta

import pytest

from rentals.core.enums import BookingStatus, RoleName
from rentals.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    UnauthorizedException,
    UnitUnavailableException,
    ValidationException,
)
from rentals.core.ids import generate_id
from rentals.models import AuditLog, Business, CarBlackout, CarUnit
from rentals.services.blackout_service import BlackoutService
from rentals.services.booking_service import BookingService
from tests.helpers import FIXED_NOW, insert_booking

START = FIXED_NOW.replace(hour=10) + timedelta(days=1)


@pytest.fixture
def service(db):
    return BlackoutService(db)


@pytest.fixture
def rival_unit(db, car_model):
    rival = Business(name="Rival Motors", slug="rival-motors")
    db.add(rival)
    db.commit()
    row = CarUnit(business_id=rival.id, car_model_id=car_model.id, active=True)
    db.add(row)
    db.commit()
    return row


class TestAddBlackout:
    def test_adds_blackout_and_audits(self, db, service, business_owner, unit):
        blackout = service.add_blackout(
            business_owner, unit.id, START, START + timedelta(hours=4), "  Detailing  "
        )

        row = db.query(CarBlackout).filter(CarBlackout.id == blackout.id).one()
        assert row.car_unit_id == unit.id
        assert row.reason == "Detailing"
        audit = db.query(AuditLog).filter(AuditLog.entity_id == blackout.id).one()
        assert audit.action == "blackout.created"
        assert audit.actor_user_id == business_owner.id
        assert audit.details["car_unit_id"] == unit.id

    def test_blank_reason_stored_as_null(self, service, business_owner, unit):
        blackout = service.add_blackout(
            business_owner, unit.id, START, START + timedelta(hours=1), "   "
        )

        assert blackout.reason is None

    def test_uppercase_unit_id(self, service, business_owner, unit):
        blackout = service.add_blackout(
            business_owner, unit.id.upper(), START, START + timedelta(hours=1)
        )

        assert blackout.car_unit_id == unit.id

    def test_blocks_new_bookings(self, db, service, business_owner, customer, unit, fund, fixed_clock):
        fund(customer, 500)
        service.add_blackout(business_owner, unit.id, START, START + timedelta(hours=4))

        with pytest.raises(UnitUnavailableException):
            BookingService(db, clock=fixed_clock).create_booking(
                customer, unit.id, START + timedelta(hours=1), START + timedelta(hours=2)
            )

    def test_requires_caller(self, service, unit):
        with pytest.raises(UnauthorizedException):
            service.add_blackout(None, unit.id, START, START + timedelta(hours=1))

    @pytest.mark.parametrize("role_fixture", ["customer", "admin", "business_user"])
    def test_requires_business_account(self, request, service, unit, role_fixture):
        caller = request.getfixturevalue(role_fixture)

        with pytest.raises(ForbiddenException):
            service.add_blackout(caller, unit.id, START, START + timedelta(hours=1))

    @pytest.mark.parametrize("hours", [0, -2])
    def test_rejects_empty_or_inverted_window(self, db, service, business_owner, unit, hours):
        with pytest.raises(ValidationException) as exc_info:
            service.add_blackout(business_owner, unit.id, START, START + timedelta(hours=hours))

        assert exc_info.value.message == "End time must be after start time"
        assert db.query(CarBlackout).count() == 0

    def test_rejects_long_reason(self, service, business_owner, unit):
        with pytest.raises(ValidationException):
            service.add_blackout(
                business_owner, unit.id, START, START + timedelta(hours=1), "x" * 501
            )

    def test_rejects_malformed_unit_id(self, service, business_owner):
        with pytest.raises(ValidationException):
            service.add_blackout(business_owner, "not-a-uuid", START, START + timedelta(hours=1))

    def test_unknown_unit(self, service, business_owner):
        with pytest.raises(NotFoundException):
            service.add_blackout(business_owner, generate_id(), START, START + timedelta(hours=1))

    def test_other_business_unit_is_not_found(self, db, service, business_owner, rival_unit):
        with pytest.raises(NotFoundException):
            service.add_blackout(business_owner, rival_unit.id, START, START + timedelta(hours=1))

        assert db.query(CarBlackout).count() == 0


class TestListAndDeleteBlackouts:
    def test_lists_only_own_units(self, service, business_owner, unit, rival_unit, make_blackout):
        mine = make_blackout(unit, START, START + timedelta(hours=1))
        make_blackout(rival_unit, START, START + timedelta(hours=1))

        assert [b.id for b in service.list_blackouts(business_owner)] == [mine.id]

    def test_list_latest_start_first_and_unit_filter(
        self, service, business_owner, make_unit, make_blackout
    ):
        first, second = make_unit(), make_unit()
        early = make_blackout(first, START, START + timedelta(hours=1))
        late = make_blackout(second, START + timedelta(days=1), START + timedelta(days=1, hours=1))

        assert [b.id for b in service.list_blackouts(business_owner)] == [late.id, early.id]
        assert [b.id for b in service.list_blackouts(business_owner, first.id)] == [early.id]

    def test_delete_removes_and_audits(self, db, service, business_owner, unit, make_blackout):
        blackout = make_blackout(unit, START, START + timedelta(hours=1))
        blackout_id = blackout.id

        service.delete_blackout(business_owner, blackout_id.upper())

        assert db.query(CarBlackout).count() == 0
        audit = db.query(AuditLog).filter(AuditLog.entity_id == blackout_id).one()
        assert audit.action == "blackout.deleted"
        assert audit.details["car_unit_id"] == unit.id

    def test_delete_other_business_blackout_is_not_found(
        self, db, service, business_owner, rival_unit, make_blackout
    ):
        theirs = make_blackout(rival_unit, START, START + timedelta(hours=1))

        with pytest.raises(NotFoundException):
            service.delete_blackout(business_owner, theirs.id)

        assert db.query(CarBlackout).count() == 1

    def test_delete_requires_business_account(self, service, customer, unit, make_blackout):
        blackout = make_blackout(unit, START, START + timedelta(hours=1))

        with pytest.raises(ForbiddenException):
            service.delete_blackout(customer, blackout.id)


class TestBusinessBookings:
    def test_lists_bookings_on_own_units(
        self, db, business_owner, customer, unit, rival_unit, fixed_clock
    ):
        mine = insert_booking(db, unit, customer, START, START + timedelta(hours=1))
        insert_booking(db, rival_unit, customer, START, START + timedelta(hours=1))

        rows, total = BookingService(db, clock=fixed_clock).list_business_bookings(business_owner)

        assert total == 1
        assert [b.id for b in rows] == [mine.id]

    def test_status_filter(self, db, business_owner, customer, unit, fixed_clock):
        insert_booking(db, unit, customer, START, START + timedelta(hours=1), status="CANCELED")
        insert_booking(db, unit, customer, START, START + timedelta(hours=1))

        rows, total = BookingService(db, clock=fixed_clock).list_business_bookings(
            business_owner, status=BookingStatus.CANCELED
        )

        assert total == 1
        assert rows[0].status == "CANCELED"

    def test_business_without_fleet_is_forbidden(self, db, make_user, fixed_clock):
        unattached = make_user(RoleName.BUSINESS)

        with pytest.raises(ForbiddenException):
            BookingService(db, clock=fixed_clock).list_business_bookings(unattached)

    def test_customer_is_forbidden(self, db, customer, fixed_clock):
        with pytest.raises(ForbiddenException):
            BookingService(db, clock=fixed_clock).list_business_bookings(customer)
