from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from persistence import crud
from persistence.db import get_db
from persistence.models import BookingModel, UserModel


def get_current_user(
    x_auth_token: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> UserModel:
    if not x_auth_token:
        raise HTTPException(status_code=401, detail="No token, authorization denied")
    user = crud.get_user_by_token(db, x_auth_token)
    if not user:
        raise HTTPException(status_code=401, detail="Token is not valid")
    return user


def get_admin_user(user: UserModel = Depends(get_current_user)) -> UserModel:
    if user.role != "admin":
        raise HTTPException(status_code=403, detail="Access denied, admin only")
    return user


def can_access_booking(user: UserModel, booking: BookingModel) -> bool:
    return booking.user_id == user.id or user.role == "admin"
