import logging
from datetime import date, datetime
from typing import Optional

import stripe
from sqlalchemy.orm import Session

import config
from persistence import crud

logger = logging.getLogger(__name__)

stripe.api_key = config.STRIPE_API_KEY

REFUND_NOTICE_HOURS = 24


def create_payment_intent(
    amount: float,
    user_id: int,
    booking_data: dict,
    currency: Optional[str] = None,
) -> str:
    """
    Create a Stripe PaymentIntent for a booking and return its client secret.
    The booking id travels in metadata so the webhook can find the booking.
    """
    if not amount or amount <= 0:
        raise ValueError("Invalid payment amount")

    booking_type = booking_data.get("bookingType") or "package"
    default_description = "Destination Booking" if booking_type == "destination" else "Vacation Package Booking"

    params = {
        # Stripe expects amounts in cents
        "amount": int(round(amount * 100)),
        "currency": (currency or config.PAYMENT_CURRENCY).lower(),
        "metadata": {
            "userId": str(user_id),
            "bookingId": str(booking_data.get("id") or "new-booking"),
            "bookingType": booking_type,
            "description": booking_data.get("description") or default_description,
        },
    }
    if booking_data.get("email"):
        params["receipt_email"] = booking_data["email"]

    intent = stripe.PaymentIntent.create(**params)
    logger.info(f"Created payment intent {intent.id} for {params['amount']} {params['currency']}")
    return intent.client_secret


def payment_intent_succeeded(payment_id: Optional[str], booking_id: int) -> bool:
    """True when payment_id names a succeeded PaymentIntent created for this booking."""
    if not payment_id:
        return False
    try:
        intent = stripe.PaymentIntent.retrieve(payment_id)
    except stripe.StripeError as e:
        logger.warning(f"Could not retrieve payment intent {payment_id}: {e}")
        return False
    metadata = intent.metadata or {}
    return intent.status == "succeeded" and str(metadata.get("bookingId")) == str(booking_id)


def handle_payment_intent_succeeded(db: Session, intent: dict) -> dict:
    """
    Called after the webhook validates a 'payment_intent.succeeded' event.
    Marks the booking named in the metadata as paid and confirmed.
    """
    booking_id = (intent.get("metadata") or {}).get("bookingId")
    if not booking_id or booking_id == "new-booking":
        return {"error": "no booking id in payment intent metadata"}

    try:
        db_booking = crud.get_booking_by_id(db, int(booking_id))
    except ValueError:
        return {"error": f"invalid booking id {booking_id!r}"}
    if not db_booking:
        return {"error": "booking not found"}

    crud.save_booking(db, db_booking, payment_status="paid", status="confirmed", payment_id=intent.get("id"))
    logger.info(f"Booking {db_booking.id} confirmed by payment {intent.get('id')}")
    return {"status": "confirmed", "bookingId": db_booking.id}


def handle_payment_intent_failed(intent: dict) -> dict:
    logger.warning(f"Payment failed: {intent.get('id')}")
    return {"status": "payment_failed"}


def refund_window_open(start_date: date, now: Optional[datetime] = None) -> bool:
    """Refunds must be requested at least REFUND_NOTICE_HOURS before the trip starts."""
    now = now or datetime.now()
    start = datetime.combine(start_date, datetime.min.time())
    hours_until_start = (start - now).total_seconds() / 3600
    return hours_until_start >= REFUND_NOTICE_HOURS
