import json
from datetime import date, timedelta
from types import SimpleNamespace

import pytest
import stripe

from api_client import ApiClient, BookingGateway
from auth_context import AuthSession, CurrentUser
from booking_form import SimpleBookingForm
from booking_schemas import CheckoutStep
from booking_tools import MockCardPaymentProvider
from checkout_manager import PAYMENT_RECORD_FAILED, CheckoutManager

CARD = {"number": "4242424242424242", "exp_month": 12, "exp_year": 2030, "cvc": "123"}


@pytest.fixture
def stripe_create(monkeypatch):
    created = []

    def fake_create(**params):
        created.append(params)
        return SimpleNamespace(id="pi_e2e", status="requires_payment_method", client_secret="pi_e2e_secret_1")

    def fake_retrieve(intent_id):
        # the card was confirmed on the client, so the last intent has succeeded
        return SimpleNamespace(id=intent_id, status="succeeded", metadata=created[-1]["metadata"])

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    monkeypatch.setattr(stripe.PaymentIntent, "retrieve", fake_retrieve)
    return created


@pytest.fixture
def live_gateway(client, customer):
    session = AuthSession(
        CurrentUser(id=customer.id, name=customer.name, email=customer.email),
        token=customer.auth_token,
    )
    return BookingGateway(ApiClient(session=session, base_url="http://testserver/api", client=client))


def _start():
    return date.today() + timedelta(days=45)


def test_destination_checkout_against_the_api(client, customer, destination, live_gateway, stripe_create):
    checkout = CheckoutManager("destination", destination.id, live_gateway, MockCardPaymentProvider(),
                               session=live_gateway.api.session)
    assert checkout.load()
    assert checkout.destination.name == "Skardu"

    checkout.update_details(start_date=_start(), end_date=_start() + timedelta(days=7), adults=2, children=1)
    assert checkout.next_step()
    assert checkout.next_step()
    assert checkout.step == CheckoutStep.PAYMENT
    assert checkout.booking.total_price == pytest.approx(1170)
    assert checkout.booking.payment_status == "pending"

    assert checkout.pay(CARD)
    assert checkout.step == CheckoutStep.CONFIRMATION
    assert checkout.booking.payment_status == "paid"
    assert checkout.booking.payment_id == "pi_e2e"

    metadata = stripe_create[0]["metadata"]
    assert metadata["bookingId"] == str(checkout.booking.id)
    assert stripe_create[0]["amount"] == 117000

    # Stripe then reports the intent as succeeded
    event = {"type": "payment_intent.succeeded", "data": {"object": {"id": "pi_e2e", "metadata": metadata}}}
    client.post("/api/payments/webhook", content=json.dumps(event))
    booking = live_gateway.get_booking(checkout.booking.id)
    assert booking.status == "confirmed"


def test_back_navigation_reuses_server_booking(client, customer, package, live_gateway, stripe_create):
    checkout = CheckoutManager("package", package.id, live_gateway, MockCardPaymentProvider(),
                               session=live_gateway.api.session)
    checkout.load()
    checkout.update_details(start_date=_start(), end_date=_start() + timedelta(days=6), adults=1, children=2)
    checkout.next_step()
    checkout.next_step()
    first_id = checkout.booking.id

    checkout.prev_step()
    checkout.booking = None  # as if the client lost track of the response
    assert checkout.next_step()

    assert checkout.booking.id == first_id
    bookings = client.get("/api/bookings/user", headers={"x-auth-token": customer.auth_token}).json()
    assert len(bookings) == 1
    assert bookings[0]["totalPrice"] == 1920


def test_payment_recorded_failure_against_the_api(client, customer, other_customer, destination, stripe_create):
    # a session whose token belongs to someone else cannot record the payment
    session = AuthSession(CurrentUser(id=customer.id, name=customer.name, email=customer.email),
                          token=customer.auth_token)
    gateway = BookingGateway(ApiClient(session=session, base_url="http://testserver/api", client=client))
    checkout = CheckoutManager("destination", destination.id, gateway, MockCardPaymentProvider(), session=session)
    checkout.load()
    checkout.update_details(start_date=_start(), end_date=_start() + timedelta(days=3))
    checkout.next_step()
    checkout.next_step()

    session.token = other_customer.auth_token
    assert not checkout.pay(CARD)
    assert checkout.error == PAYMENT_RECORD_FAILED
    assert checkout.step == CheckoutStep.PAYMENT


def test_simple_form_against_the_api(client, customer, package, live_gateway):
    form = SimpleBookingForm("package", package.id, live_gateway, session=live_gateway.api.session)
    assert form.load()
    form.number_of_travelers = 2
    form.agree_to_terms = True

    assert form.submit()
    assert form.booking.total_price == pytest.approx(1600)
    assert (form.booking.end_date - form.booking.start_date).days == package.duration
