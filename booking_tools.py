import itertools
from datetime import datetime
from typing import Dict, List, Optional

from api_client import ApiError
from booking_schemas import (
    Booking,
    BookingCreate,
    CardPaymentResult,
    Destination,
    PaymentIntentResult,
    PaymentUpdate,
    VacationPackage,
)


class MockCardPaymentProvider:
    """
    Mock card payment provider: deterministic responses for demo / testing.
    `error` makes every confirmation fail; `status` sets the returned intent status.
    """

    def __init__(self, error: Optional[str] = None, status: str = "succeeded"):
        self.error = error
        self.status = status
        self.calls: List[dict] = []

    def confirm_card_payment(self, client_secret: str, payment_details: dict) -> CardPaymentResult:
        self.calls.append({"client_secret": client_secret, "payment_details": payment_details})
        if self.error:
            return CardPaymentResult(error=self.error)
        intent_id = client_secret.split("_secret_")[0]
        return CardPaymentResult(payment_intent=PaymentIntentResult(id=intent_id, status=self.status))


class InMemoryBookingGateway:
    """
    Booking gateway backed by dicts, for demos and tests of the booking flows.
    Names in `fail_on` (e.g. {"create_booking"}) raise ApiError when called.
    """

    def __init__(
        self,
        packages: Optional[Dict[int, VacationPackage]] = None,
        destinations: Optional[Dict[int, Destination]] = None,
        user_id: int = 1,
        fail_on: Optional[set] = None,
    ):
        self.packages = packages or {}
        self.destinations = destinations or {}
        self.user_id = user_id
        self.fail_on = set(fail_on or ())
        self.bookings: Dict[int, Booking] = {}
        self.calls: List[str] = []
        self._ids = itertools.count(1)
        self._intents = itertools.count(1)

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise ApiError("Server error", status_code=500)

    def get_vacation(self, package_id: int) -> VacationPackage:
        self._call("get_vacation")
        if package_id not in self.packages:
            raise ApiError("Vacation package not found", status_code=404)
        return self.packages[package_id]

    def get_destination(self, destination_id: int) -> Destination:
        self._call("get_destination")
        if destination_id not in self.destinations:
            raise ApiError("Destination not found", status_code=404)
        return self.destinations[destination_id]

    def create_booking(self, payload: BookingCreate) -> Booking:
        self._call("create_booking")
        for booking in self.bookings.values():
            if payload.idempotency_key and booking.idempotency_key == payload.idempotency_key:
                return booking
        booking = Booking(
            id=next(self._ids),
            user_id=self.user_id,
            created_at=datetime.now(),
            **payload.model_dump(exclude={"idempotency_key"}),
            idempotency_key=payload.idempotency_key,
        )
        self.bookings[booking.id] = booking
        return booking

    def update_booking_payment(self, booking_id: int, update: PaymentUpdate) -> None:
        self._call("update_booking_payment")
        booking = self.bookings[booking_id]
        self.bookings[booking_id] = booking.model_copy(
            update={"payment_status": update.payment_status, "payment_id": update.payment_id},
        )

    def get_booking(self, booking_id: int) -> Booking:
        self._call("get_booking")
        if booking_id not in self.bookings:
            raise ApiError("Booking not found", status_code=404)
        return self.bookings[booking_id]

    def create_payment_intent(self, amount: float, booking_data: dict, currency: Optional[str] = None) -> str:
        self._call("create_payment_intent")
        n = next(self._intents)
        return f"pi_mock{n}_secret_{int(round(amount * 100))}"
