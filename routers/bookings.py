import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from booking_schemas import (
    BOOKING_STATUSES,
    SETTABLE_PAYMENT_STATUSES,
    Booking,
    BookingCreate,
    CancelRequest,
    PaymentUpdate,
    StatusUpdate,
)
from payments import checkout
from persistence import crud
from persistence.db import get_db
from persistence.models import UserModel
from routers.deps import can_access_booking, get_admin_user, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _get_owned_booking(db: Session, booking_id: int, user: UserModel):
    db_booking = crud.get_booking_by_id(db, booking_id)
    if not db_booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    if not can_access_booking(user, db_booking):
        raise HTTPException(status_code=403, detail="Not authorized")
    return db_booking


@router.get("", response_model=List[Booking])
def list_bookings(admin: UserModel = Depends(get_admin_user), db: Session = Depends(get_db)):
    return [crud.model_to_pydantic(b) for b in crud.list_bookings(db)]


@router.get("/user", response_model=List[Booking])
def list_user_bookings(user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return [crud.model_to_pydantic(b) for b in crud.list_user_bookings(db, user.id)]


@router.get("/{booking_id}", response_model=Booking)
def get_booking(booking_id: int, user: UserModel = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.model_to_pydantic(_get_owned_booking(db, booking_id, user))


@router.post("", response_model=Booking, status_code=201)
def create_booking(
    payload: BookingCreate,
    response: Response,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Create a pending booking. Replaying an idempotency key returns the
    booking created the first time, with status 200.
    """
    if payload.vacation_package is not None and not crud.get_vacation_package(db, payload.vacation_package):
        raise HTTPException(status_code=404, detail="Vacation package not found")
    if payload.destination is not None and not crud.get_destination(db, payload.destination):
        raise HTTPException(status_code=404, detail="Destination not found")

    db_booking, created = crud.create_booking(db, user.id, payload)
    if not created:
        if db_booking.user_id != user.id:
            raise HTTPException(status_code=409, detail="Idempotency key already used")
        logger.info(f"Replayed booking {db_booking.id} for idempotency key {payload.idempotency_key}")
        response.status_code = 200
    else:
        logger.info(f"User {user.id} created booking {db_booking.id} ({db_booking.total_price})")
    return crud.model_to_pydantic(db_booking)


@router.put("/{booking_id}/status", response_model=Booking)
def update_status(
    booking_id: int,
    body: StatusUpdate,
    admin: UserModel = Depends(get_admin_user),
    db: Session = Depends(get_db),
):
    if body.status not in BOOKING_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status")
    db_booking = crud.get_booking_by_id(db, booking_id)
    if not db_booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return crud.model_to_pydantic(crud.save_booking(db, db_booking, status=body.status))


@router.put("/{booking_id}/payment", response_model=Booking)
def update_payment(
    booking_id: int,
    body: PaymentUpdate,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if body.payment_status not in SETTABLE_PAYMENT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid payment status")
    db_booking = _get_owned_booking(db, booking_id, user)
    # customers record their own payment, so "paid" must match a real charge
    if body.payment_status == "paid" and user.role != "admin" \
            and not checkout.payment_intent_succeeded(body.payment_id, booking_id):
        raise HTTPException(status_code=400, detail="Payment could not be verified")

    changes = {"payment_status": body.payment_status}
    if body.payment_id:
        changes["payment_id"] = body.payment_id
    logger.info(f"Booking {booking_id} payment status -> {body.payment_status}")
    return crud.model_to_pydantic(crud.save_booking(db, db_booking, **changes))


@router.put("/{booking_id}/cancel", response_model=Booking)
def cancel_booking(
    booking_id: int,
    body: CancelRequest,
    user: UserModel = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not body.cancellation_reason:
        raise HTTPException(status_code=400, detail="Cancellation reason is required")
    db_booking = _get_owned_booking(db, booking_id, user)
    if db_booking.status == "completed":
        raise HTTPException(status_code=400, detail="Cannot cancel a completed booking")

    db_booking = crud.save_booking(
        db, db_booking, status="cancelled", cancellation_reason=body.cancellation_reason,
    )
    return crud.model_to_pydantic(db_booking)
