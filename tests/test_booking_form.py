from datetime import date, timedelta

import pytest

from booking_form import SUBMIT_FAILED, SimpleBookingForm

TODAY = date(2026, 5, 10)


@pytest.fixture
def form(gateway, session):
    f = SimpleBookingForm("package", 7, gateway, session=session, today=TODAY)
    assert f.load()
    return f


def test_start_date_defaults_to_tomorrow(form):
    assert form.start_date == TODAY + timedelta(days=1)
    assert form.number_of_travelers == 1


def test_validation_collects_every_field_error(form):
    form.start_date = TODAY
    form.number_of_travelers = 0

    assert form.validate() == {
        "start_date": "Start date must be in the future",
        "number_of_travelers": "At least 1 traveler is required",
        "agree_to_terms": "You must agree to the terms and conditions",
    }

    form.start_date = None
    assert form.validate()["start_date"] == "Start date is required"


def test_invalid_form_is_not_submitted(form, gateway):
    assert not form.submit()
    assert "agree_to_terms" in form.errors
    assert "create_booking" not in gateway.calls


def test_package_submission_uses_package_price_and_duration(form, gateway):
    form.number_of_travelers = 3
    form.agree_to_terms = True
    form.special_requests = "Window seats"

    assert form.submit()
    booking = form.booking
    assert booking.vacation_package == 7
    assert booking.total_price == pytest.approx(2400)
    assert booking.start_date == date(2026, 5, 11)
    assert booking.end_date == date(2026, 5, 17)
    assert booking.adults == 3
    assert booking.status == "pending"
    assert booking.traveler_info[0].email == "ayesha@example.com"


def test_destination_submission_uses_flat_three_day_price(gateway, session):
    form = SimpleBookingForm("destination", 3, gateway, session=session, today=TODAY)
    form.load()
    form.number_of_travelers = 2
    form.agree_to_terms = True

    assert form.submit()
    assert form.booking.destination == 3
    assert form.booking.total_price == pytest.approx(200)
    assert form.booking.end_date == date(2026, 5, 14)


def test_submission_failure_sets_error(form, gateway):
    gateway.fail_on.add("create_booking")
    form.agree_to_terms = True

    assert not form.submit()
    assert form.error == SUBMIT_FAILED
    assert not form.is_submitting


def test_load_failure(gateway):
    form = SimpleBookingForm("package", 404, gateway, today=TODAY)
    assert not form.load()
    assert form.error == "Failed to fetch package details"
