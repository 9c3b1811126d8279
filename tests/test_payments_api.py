import json
from datetime import date, datetime, timedelta
from types import SimpleNamespace

import pytest
import stripe

import config
from conftest import auth_headers
from payments import checkout
from persistence import crud
from persistence.models import BookingModel


@pytest.fixture
def stripe_intents(monkeypatch):
    created = []

    def fake_create(**params):
        intent_id = f"pi_test_{len(created) + 1}"
        created.append(params)
        return SimpleNamespace(id=intent_id, status="requires_payment_method",
                               client_secret=f"{intent_id}_secret_abc")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fake_create)
    return created


def _booking(db, user, days_until_start=30, payment_status="pending"):
    start = date.today() + timedelta(days=days_until_start)
    booking = BookingModel(
        user_id=user.id,
        destination_id=None,
        start_date=start,
        end_date=start + timedelta(days=5),
        adults=1,
        children=0,
        traveler_info=[{"name": user.name, "email": user.email, "phone": ""}],
        total_price=500.0,
        status="pending",
        payment_status=payment_status,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    return booking


# ── Payment intents ────────────────────────────────────────────────────────────

def test_create_payment_intent(client, customer, stripe_intents):
    res = client.post("/api/payments/create-payment-intent", headers=auth_headers(customer), json={
        "amount": 1170.5,
        "bookingData": {"id": "12", "bookingType": "destination", "email": "ayesha@example.com"},
    })

    assert res.status_code == 200
    assert res.json() == "pi_test_1_secret_abc"
    params = stripe_intents[0]
    assert params["amount"] == 117050
    assert params["currency"] == "usd"
    assert params["receipt_email"] == "ayesha@example.com"
    assert params["metadata"] == {
        "userId": str(customer.id),
        "bookingId": "12",
        "bookingType": "destination",
        "description": "Destination Booking",
    }


@pytest.mark.parametrize("amount", [0, -5])
def test_invalid_amount_is_rejected(client, customer, stripe_intents, amount):
    res = client.post("/api/payments/create-payment-intent", headers=auth_headers(customer), json={"amount": amount})
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid payment amount"
    assert stripe_intents == []


def test_stripe_error_is_a_server_error(client, customer, monkeypatch):
    def fail(**params):
        raise stripe.APIConnectionError("Stripe unreachable")

    monkeypatch.setattr(stripe.PaymentIntent, "create", fail)
    res = client.post("/api/payments/create-payment-intent", headers=auth_headers(customer), json={"amount": 10})
    assert res.status_code == 500


def test_payment_intent_requires_login(client):
    assert client.post("/api/payments/create-payment-intent", json={"amount": 10}).status_code == 401


# ── Webhook ────────────────────────────────────────────────────────────────────

def _event(event_type, booking_id, intent_id="pi_test_9"):
    return {
        "type": event_type,
        "data": {"object": {"id": intent_id, "metadata": {"bookingId": str(booking_id)}}},
    }


def test_succeeded_webhook_confirms_booking(client, db, customer):
    booking = _booking(db, customer)

    res = client.post("/api/payments/webhook", content=json.dumps(_event("payment_intent.succeeded", booking.id)))
    assert res.status_code == 200
    assert res.json()["result"] == {"status": "confirmed", "bookingId": booking.id}

    db.expire_all()
    stored = crud.get_booking_by_id(db, booking.id)
    assert (stored.status, stored.payment_status, stored.payment_id) == ("confirmed", "paid", "pi_test_9")


def test_failed_webhook_leaves_booking_pending(client, db, customer):
    booking = _booking(db, customer)

    res = client.post("/api/payments/webhook",
                      content=json.dumps(_event("payment_intent.payment_failed", booking.id)))
    assert res.json()["result"] == {"status": "payment_failed"}

    db.expire_all()
    assert crud.get_booking_by_id(db, booking.id).payment_status == "pending"


def test_webhook_without_booking_id(client):
    res = client.post("/api/payments/webhook", content=json.dumps(_event("payment_intent.succeeded", "new-booking")))
    assert res.status_code == 200
    assert "error" in res.json()["result"]


def test_unhandled_webhook_event(client):
    res = client.post("/api/payments/webhook", content=json.dumps({"type": "charge.refunded", "data": {}}))
    assert res.json() == {"received": True}


def test_webhook_rejects_bad_signature(client, monkeypatch):
    def reject(payload, sig_header, secret):
        raise stripe.SignatureVerificationError("No signatures found", sig_header)

    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", "whsec_test")
    monkeypatch.setattr(stripe.Webhook, "construct_event", reject)

    res = client.post("/api/payments/webhook", content=b"{}", headers={"stripe-signature": "t=1,v1=bad"})
    assert res.status_code == 400
    assert res.json()["detail"] == "Invalid Stripe signature"


def test_webhook_rejects_malformed_json(client):
    assert client.post("/api/payments/webhook", content=b"not json").status_code == 400


# ── History and refunds ────────────────────────────────────────────────────────

def test_history_lists_only_paid_or_refunded(client, db, customer, other_customer):
    paid = _booking(db, customer, payment_status="paid")
    refunded = _booking(db, customer, payment_status="refunded")
    _booking(db, customer)
    _booking(db, other_customer, payment_status="paid")

    ids = {b["id"] for b in client.get("/api/payments/history", headers=auth_headers(customer)).json()}
    assert ids == {paid.id, refunded.id}


def test_refund_request(client, db, customer):
    booking = _booking(db, customer, days_until_start=10, payment_status="paid")

    res = client.post(f"/api/payments/refund/{booking.id}", headers=auth_headers(customer))
    assert res.status_code == 200
    assert res.json()["message"] == "Refund request submitted successfully"
    assert res.json()["booking"]["paymentStatus"] == "refund_requested"


def test_refund_requires_paid_booking_of_caller(client, db, customer, other_customer):
    unpaid = _booking(db, customer)
    paid = _booking(db, customer, payment_status="paid")

    assert client.post(f"/api/payments/refund/{unpaid.id}", headers=auth_headers(customer)).status_code == 404
    res = client.post(f"/api/payments/refund/{paid.id}", headers=auth_headers(other_customer))
    assert res.status_code == 404
    assert res.json()["detail"] == "Booking not found or not eligible for refund"


def test_refund_too_close_to_start(client, db, customer):
    booking = _booking(db, customer, days_until_start=0, payment_status="paid")

    res = client.post(f"/api/payments/refund/{booking.id}", headers=auth_headers(customer))
    assert res.status_code == 400
    assert "24 hours" in res.json()["detail"]


def test_refund_window():
    start = date(2026, 8, 10)
    assert checkout.refund_window_open(start, now=datetime(2026, 8, 8, 23, 0))
    assert checkout.refund_window_open(start, now=datetime(2026, 8, 9, 0, 0))
    assert not checkout.refund_window_open(start, now=datetime(2026, 8, 9, 0, 1))
