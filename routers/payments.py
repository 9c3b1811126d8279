import logging
from typing import List

import stripe
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from booking_schemas import Booking, PaymentIntentRequest
from payments import checkout
from persistence import crud
from persistence.db import get_db
from persistence.models import UserModel
from routers.deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payments", tags=["payments"])


@router.post("/create-payment-intent")
def create_payment_intent(body: PaymentIntentRequest, user: UserModel = Depends(get_current_user)):
    """Returns the client secret the card form confirms against."""
    if not body.amount or body.amount <= 0:
        raise HTTPException(status_code=400, detail="Invalid payment amount")
    try:
        return checkout.create_payment_intent(body.amount, user.id, body.booking_data, currency=body.currency)
    except stripe.StripeError as e:
        logger.error(f"Payment intent creation error: {e}")
        raise HTTPException(status_code=500, detail="Server error during payment intent creation")


@router.get("/history", response_model=List[Booking])
def payment_history(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return [crud.model_to_pydantic(b) for b in crud.payment_history(db, user.id)]


@router.post("/refund/{booking_id}")
def request_refund(booking_id: int, user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    db_booking = crud.get_booking_by_id(db, booking_id)
    if not db_booking or db_booking.user_id != user.id or db_booking.payment_status != "paid":
        raise HTTPException(status_code=404, detail="Booking not found or not eligible for refund")

    if not checkout.refund_window_open(db_booking.start_date):
        raise HTTPException(
            status_code=400,
            detail=f"Refunds must be requested at least {checkout.REFUND_NOTICE_HOURS} hours before the start date",
        )

    db_booking = crud.save_booking(db, db_booking, payment_status="refund_requested")
    logger.info(f"Refund requested for booking {db_booking.id} ({db_booking.total_price})")
    return {
        "message": "Refund request submitted successfully",
        "booking": crud.model_to_pydantic(db_booking).model_dump(mode="json", by_alias=True),
    }
