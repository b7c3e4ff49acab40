from datetime import timedelta

import pytest

from rentals.core.exceptions import ValidationException
from rentals.core.ids import generate_id
from rentals.services.availability_service import AvailabilityService
from tests.helpers import FIXED_NOW, insert_booking

START = FIXED_NOW.replace(hour=10) + timedelta(days=1)
END = START + timedelta(hours=2)


@pytest.fixture
def service(db):
    return AvailabilityService(db)


def test_all_free_units_returned(service, car_model, make_unit):
    units = [make_unit(), make_unit(), make_unit()]

    result = service.available_units(car_model.id, START, END)

    assert sorted(result.available_unit_ids) == sorted(u.id for u in units)
    assert result.available_count == 3
    assert result.total_units == 3


def test_excludes_booked_and_blacked_out_units(db, service, car_model, make_unit, customer, make_blackout):
    free, booked, blacked = make_unit(), make_unit(), make_unit()
    insert_booking(db, booked, customer, START + timedelta(hours=1), END + timedelta(hours=1))
    make_blackout(blacked, START - timedelta(hours=1), START + timedelta(minutes=30))

    result = service.available_units(car_model.id, START, END)

    assert result.available_unit_ids == [free.id]
    assert result.available_count == 1
    assert result.total_units == 3


def test_touching_and_canceled_bookings_do_not_block(db, service, car_model, make_unit, customer, make_blackout):
    unit_a, unit_b, unit_c = make_unit(), make_unit(), make_unit()
    insert_booking(db, unit_a, customer, END, END + timedelta(hours=1))
    insert_booking(db, unit_b, customer, START, END, status="CANCELED")
    make_blackout(unit_c, START - timedelta(hours=2), START)

    result = service.available_units(car_model.id, START, END)

    assert result.available_count == 3


def test_inactive_units_are_never_offered(service, car_model, make_unit):
    make_unit(active=False)
    active = make_unit()

    result = service.available_units(car_model.id, START, END)

    assert result.available_unit_ids == [active.id]
    assert result.total_units == 1


def test_color_filter_is_case_insensitive(service, car_model, make_unit):
    red = make_unit(color="Red")
    make_unit(color="Giallo Modena")

    result = service.available_units(car_model.id, START, END, color="RED")

    assert result.available_unit_ids == [red.id]
    assert result.total_units == 1


def test_blank_color_means_no_filter(service, car_model, make_unit):
    make_unit(color="Red")
    make_unit(color="Blue")

    assert service.available_units(car_model.id, START, END, color="  ").total_units == 2


def test_unknown_model_is_empty(service):
    result = service.available_units(generate_id(), START, END)

    assert result.available_unit_ids == []
    assert result.total_units == 0
    assert result.available_count == 0


def test_model_id_case_is_ignored(service, car_model, unit):
    result = service.available_units(car_model.id.upper(), START, END)

    assert result.available_unit_ids == [unit.id]


def test_model_without_units(service, car_model):
    result = service.available_units(car_model.id, START, END)

    assert result.available_unit_ids == []
    assert result.total_units == 0


@pytest.mark.parametrize(
    "start,end",
    [
        (START + timedelta(minutes=10), END),  # misaligned start
        (START, START + timedelta(minutes=30)),  # shorter than an hour
        (END, START),  # inverted
    ],
)
def test_rejects_bad_windows(service, car_model, make_unit, start, end):
    make_unit()

    with pytest.raises(ValidationException):
        service.available_units(car_model.id, start, end)


def test_rejects_oversized_color_filter(service, car_model):
    with pytest.raises(ValidationException):
        service.available_units(car_model.id, START, END, color="x" * 51)


def test_operations_are_timed(service, car_model, make_unit):
    make_unit()

    service.available_units(car_model.id, START, START + timedelta(hours=2))

    timings = service.get_metrics()["available_units"]
    assert timings["count"] >= 1
    assert 0 < timings["success_rate"] <= 1
