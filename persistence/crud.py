import secrets
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from booking_schemas import Booking, BookingCreate, Destination, TravelerInfo, VacationPackage
from .models import BookingModel, DestinationModel, UserModel, VacationPackageModel


# ── Users ──────────────────────────────────────────────────────────────────────

def create_user(db: Session, name: str, email: str, role: str = "user", auth_token: Optional[str] = None) -> UserModel:
    user = UserModel(name=name, email=email, role=role, auth_token=auth_token or secrets.token_urlsafe(24))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user_by_token(db: Session, token: str) -> Optional[UserModel]:
    if not token:
        return None
    return db.query(UserModel).filter(UserModel.auth_token == token).first()


# ── Catalog ────────────────────────────────────────────────────────────────────

def create_destination(db: Session, name: str, country: str = "", description: str = "") -> DestinationModel:
    dest = DestinationModel(name=name, country=country, description=description)
    db.add(dest)
    db.commit()
    db.refresh(dest)
    return dest


def get_destination(db: Session, destination_id: int) -> Optional[DestinationModel]:
    return db.get(DestinationModel, destination_id)


def list_destinations(db: Session) -> List[DestinationModel]:
    return db.query(DestinationModel).order_by(DestinationModel.name).all()


def create_vacation_package(
    db: Session,
    name: str,
    duration: int,
    price: float,
    description: str = "",
    activities: Optional[List[str]] = None,
    destination_id: Optional[int] = None,
) -> VacationPackageModel:
    pkg = VacationPackageModel(
        name=name,
        duration=duration,
        price=price,
        description=description,
        activities=activities or [],
        destination_id=destination_id,
    )
    db.add(pkg)
    db.commit()
    db.refresh(pkg)
    return pkg


def get_vacation_package(db: Session, package_id: int) -> Optional[VacationPackageModel]:
    return db.get(VacationPackageModel, package_id)


def list_vacation_packages(
    db: Session,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    duration: Optional[int] = None,
) -> List[VacationPackageModel]:
    query = db.query(VacationPackageModel)
    if min_price is not None:
        query = query.filter(VacationPackageModel.price >= min_price)
    if max_price is not None:
        query = query.filter(VacationPackageModel.price <= max_price)
    if duration is not None:
        query = query.filter(VacationPackageModel.duration == duration)
    return query.order_by(VacationPackageModel.id).all()


def destination_to_pydantic(dest: DestinationModel) -> Destination:
    return Destination(id=dest.id, name=dest.name, country=dest.country or "", description=dest.description or "")


def package_to_pydantic(pkg: VacationPackageModel) -> VacationPackage:
    return VacationPackage(
        id=pkg.id,
        name=pkg.name,
        description=pkg.description or "",
        duration=pkg.duration,
        price=pkg.price,
        activities=list(pkg.activities or []),
        destination_id=pkg.destination_id,
    )


# ── Bookings ───────────────────────────────────────────────────────────────────

def get_booking_by_id(db: Session, booking_id: int) -> Optional[BookingModel]:
    return db.get(BookingModel, booking_id)


def get_booking_by_idempotency_key(db: Session, key: str) -> Optional[BookingModel]:
    return db.query(BookingModel).filter(BookingModel.idempotency_key == key).first()


def create_booking(db: Session, user_id: int, payload: BookingCreate) -> Tuple[BookingModel, bool]:
    """
    Store a new pending booking. Returns (booking, created).
    A payload whose idempotency key was already used returns the stored booking
    with created=False instead of inserting a duplicate.
    """
    if payload.idempotency_key:
        existing = get_booking_by_idempotency_key(db, payload.idempotency_key)
        if existing:
            return existing, False

    db_booking = BookingModel(
        user_id=user_id,
        vacation_package_id=payload.vacation_package,
        destination_id=payload.destination,
        start_date=payload.start_date,
        end_date=payload.end_date,
        adults=payload.adults,
        children=payload.children,
        special_requests=payload.special_requests,
        traveler_info=[t.model_dump() for t in payload.traveler_info],
        total_price=payload.total_price,
        status="pending",
        payment_status="pending",
        idempotency_key=payload.idempotency_key,
    )
    db.add(db_booking)
    try:
        db.commit()
    except IntegrityError:
        # same key inserted concurrently
        db.rollback()
        existing = get_booking_by_idempotency_key(db, payload.idempotency_key) if payload.idempotency_key else None
        if existing is None:
            raise
        return existing, False
    db.refresh(db_booking)
    return db_booking, True


def list_bookings(db: Session) -> List[BookingModel]:
    return db.query(BookingModel).order_by(BookingModel.id).all()


def list_user_bookings(db: Session, user_id: int) -> List[BookingModel]:
    return db.query(BookingModel).filter(BookingModel.user_id == user_id).order_by(BookingModel.id).all()


def payment_history(db: Session, user_id: int) -> List[BookingModel]:
    return (
        db.query(BookingModel)
        .filter(BookingModel.user_id == user_id, BookingModel.payment_status.in_(("paid", "refunded")))
        .order_by(BookingModel.created_at.desc(), BookingModel.id.desc())
        .all()
    )


def save_booking(db: Session, db_booking: BookingModel, **changes) -> BookingModel:
    for field, value in changes.items():
        setattr(db_booking, field, value)
    db.add(db_booking)
    db.commit()
    db.refresh(db_booking)
    return db_booking


def model_to_pydantic(db_booking: BookingModel) -> Booking:
    return Booking(
        id=db_booking.id,
        user_id=db_booking.user_id,
        vacation_package=db_booking.vacation_package_id,
        destination=db_booking.destination_id,
        start_date=db_booking.start_date,
        end_date=db_booking.end_date,
        adults=db_booking.adults,
        children=db_booking.children,
        special_requests=db_booking.special_requests or "",
        traveler_info=[TravelerInfo(**t) for t in (db_booking.traveler_info or [])],
        total_price=db_booking.total_price,
        status=db_booking.status,
        payment_status=db_booking.payment_status,
        payment_id=db_booking.payment_id,
        cancellation_reason=db_booking.cancellation_reason or "",
        idempotency_key=db_booking.idempotency_key,
        created_at=db_booking.created_at,
    )
