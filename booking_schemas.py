import uuid
from datetime import date, datetime
from enum import IntEnum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

BookingType = Literal["package", "destination"]
BookingStatus = Literal["pending", "confirmed", "cancelled", "completed"]
PaymentStatus = Literal["pending", "paid", "refunded", "refund_requested"]

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
# statuses a client or admin may set directly; refund_requested only comes from the refund route
SETTABLE_PAYMENT_STATUSES = ("pending", "paid", "refunded")


class CheckoutStep(IntEnum):
    DETAILS = 1
    TRAVELER_INFO = 2
    PAYMENT = 3
    CONFIRMATION = 4


class CamelModel(BaseModel):
    """Base for everything that crosses the REST boundary (camelCase JSON keys)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TravelerInfo(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""


class VacationPackage(CamelModel):
    id: int
    name: str
    description: str = ""
    duration: int                # days
    price: float                 # flat per-person price
    activities: List[str] = Field(default_factory=list)
    destination_id: Optional[int] = None


class Destination(CamelModel):
    id: int
    name: str
    country: str = ""
    description: str = ""


class BookingDraft(CamelModel):
    """
    Client-held booking under construction. Values are only checked by the
    checkout step guards, so an invalid draft (e.g. adults=0) is representable.
    """
    booking_type: BookingType
    target_id: int               # vacation package id or destination id
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    adults: int = 1
    children: int = 0
    special_requests: str = ""
    traveler_info: List[TravelerInfo] = Field(default_factory=lambda: [TravelerInfo()])
    idempotency_key: str = Field(default_factory=lambda: str(uuid.uuid4()))


class BookingCreate(CamelModel):
    vacation_package: Optional[int] = None
    destination: Optional[int] = None
    start_date: date
    end_date: date
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    special_requests: str = ""
    traveler_info: List[TravelerInfo] = Field(min_length=1)
    total_price: float = Field(ge=0)
    idempotency_key: Optional[str] = None

    @model_validator(mode="after")
    def _check_target_and_dates(self):
        if (self.vacation_package is None) == (self.destination is None):
            raise ValueError("Exactly one of vacationPackage or destination is required")
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class Booking(CamelModel):
    id: int
    user_id: int
    vacation_package: Optional[int] = None
    destination: Optional[int] = None
    start_date: date
    end_date: date
    adults: int = 1
    children: int = 0
    special_requests: str = ""
    traveler_info: List[TravelerInfo] = Field(default_factory=list)
    total_price: float
    status: BookingStatus = "pending"
    payment_status: PaymentStatus = "pending"
    payment_id: Optional[str] = None
    cancellation_reason: str = ""
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def booking_type(self) -> BookingType:
        return "package" if self.vacation_package is not None else "destination"


class StatusUpdate(CamelModel):
    status: str


class PaymentUpdate(CamelModel):
    payment_id: Optional[str] = None
    payment_status: str


class CancelRequest(CamelModel):
    cancellation_reason: str = ""


class PaymentIntentRequest(CamelModel):
    amount: float = 0.0
    currency: Optional[str] = None
    booking_data: dict = Field(default_factory=dict)


class PaymentIntentResult(CamelModel):
    id: str
    status: str


class CardPaymentResult(CamelModel):
    """Outcome of confirming a card payment: either an error message or the intent."""
    error: Optional[str] = None
    payment_intent: Optional[PaymentIntentResult] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.payment_intent is not None \
            and self.payment_intent.status == "succeeded"
