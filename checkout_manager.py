import logging
import re
from typing import Optional

from auth_context import AuthSession
from booking_schemas import (
    Booking,
    BookingCreate,
    BookingDraft,
    BookingType,
    CardPaymentResult,
    CheckoutStep,
    Destination,
    PaymentIntentResult,
    PaymentUpdate,
    TravelerInfo,
    VacationPackage,
)
from pricing import PriceQuote, quote_checkout

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")

DETAIL_FIELDS = ("start_date", "end_date", "adults", "children", "special_requests")
TRAVELER_FIELDS = ("name", "email", "phone")

LOAD_FAILED = "Failed to load {} details"
CREATE_FAILED = "Failed to create booking. Please try again."
PAYMENT_FAILED = "Payment failed. Please try again or use a different payment method."
PAYMENT_RECORD_FAILED = (
    "Payment was successful, but we had trouble updating your booking. Please contact support."
)


def validate_details(draft: BookingDraft) -> Optional[str]:
    """Step 1 guard. Returns the message for the first failing rule, or None."""
    if not draft.start_date:
        return "Please select a start date"
    if not draft.end_date:
        return "Please select an end date"
    if draft.start_date >= draft.end_date:
        return "End date must be after start date"
    if draft.adults < 1:
        return "At least one adult is required"
    return None


def validate_travelers(draft: BookingDraft) -> Optional[str]:
    """Step 2 guard. Every traveler needs a name and a plausible email."""
    for number, traveler in enumerate(draft.traveler_info, start=1):
        if not traveler.name or not traveler.email:
            return "Please fill in name and email for all travelers"
        if not EMAIL_PATTERN.search(traveler.email):
            return f"Please enter a valid email for traveler {number}"
    return None


class CheckoutManager:
    """
    Linear checkout wizard: details -> traveler info -> payment -> confirmation.

    gateway must implement .get_vacation(id), .get_destination(id), .create_booking(payload),
    .update_booking_payment(booking_id, update), .get_booking(booking_id) and
    .create_payment_intent(amount, booking_data) (see api_client.BookingGateway).
    payment_provider must implement .confirm_card_payment(client_secret, payment_details)
    returning a CardPaymentResult.

    Step handlers return True when the wizard advanced. API and payment failures never
    propagate: they are logged and left in `error` for display.
    """

    def __init__(
        self,
        booking_type: BookingType,
        target_id: int,
        gateway,
        payment_provider,
        session: Optional[AuthSession] = None,
    ):
        self.booking_type = booking_type
        self.target_id = target_id
        self.gateway = gateway
        self.payment_provider = payment_provider
        self.session = session or AuthSession()

        self.draft: Optional[BookingDraft] = BookingDraft(booking_type=booking_type, target_id=target_id)
        self.step = CheckoutStep.DETAILS
        self.vacation_package: Optional[VacationPackage] = None
        self.destination: Optional[Destination] = None
        self.booking: Optional[Booking] = None

        self.error: Optional[str] = None
        self.validation_message: Optional[str] = None
        self.loading = False
        self.payment_processing = False
        self.payment_success = False
        self.payment_record_failed = False
        self.abandoned = False

    # ── Loading ──────────────────────────────────────────────────────────────

    def load(self) -> bool:
        """Fetch the package or destination being booked and pre-fill the lead traveler."""
        self.loading = True
        try:
            if self.booking_type == "destination":
                self.destination = self.gateway.get_destination(self.target_id)
            else:
                self.vacation_package = self.gateway.get_vacation(self.target_id)
        except Exception as e:
            logger.error(f"Error fetching {self.booking_type} {self.target_id}: {e}", exc_info=True)
            self.error = LOAD_FAILED.format(self.booking_type)
            return False
        finally:
            self.loading = False

        user = self.session.user
        if user and self.draft is not None:
            lead = TravelerInfo(name=user.name or "", email=user.email or "", phone="")
            self.draft.traveler_info = [lead] + self.draft.traveler_info[1:]
        return True

    # ── Price ────────────────────────────────────────────────────────────────

    @property
    def quote(self) -> Optional[PriceQuote]:
        """Recomputed on every read from the current draft."""
        if self.draft is None:
            return None
        if self.booking_type == "package":
            if self.vacation_package is None:
                return None
            return quote_checkout(
                "package", self.draft.adults, self.draft.children,
                package_price=self.vacation_package.price,
            )
        return quote_checkout(
            "destination", self.draft.adults, self.draft.children,
            start_date=self.draft.start_date, end_date=self.draft.end_date,
        )

    @property
    def total_price(self) -> Optional[float]:
        """None until the package or destination has loaded."""
        if self.draft is None and self.booking is not None:
            return self.booking.total_price
        quote = self.quote
        return quote.total_price if quote else None

    def _target_loaded(self) -> bool:
        target = self.vacation_package if self.booking_type == "package" else self.destination
        return target is not None

    # ── Draft editing ────────────────────────────────────────────────────────

    def _require_draft(self) -> BookingDraft:
        if self.draft is None:
            raise RuntimeError("Checkout draft is no longer editable")
        return self.draft

    def update_details(self, **fields) -> None:
        """Set trip details; values are coerced like form input (e.g. '2026-05-01', '2')."""
        draft = self._require_draft()
        unknown = set(fields) - set(DETAIL_FIELDS)
        if unknown:
            raise ValueError(f"Unknown booking detail(s): {', '.join(sorted(unknown))}")
        data = draft.model_dump()
        data.update(fields)
        self.draft = BookingDraft.model_validate(data)

    def update_traveler(self, index: int, field: str, value: str) -> None:
        draft = self._require_draft()
        if field not in TRAVELER_FIELDS:
            raise ValueError(f"Unknown traveler field: {field}")
        if not 0 <= index < len(draft.traveler_info):
            return
        draft.traveler_info[index] = draft.traveler_info[index].model_copy(update={field: value})

    def add_traveler(self) -> None:
        self._require_draft().traveler_info.append(TravelerInfo())

    def remove_traveler(self, index: int) -> None:
        travelers = self._require_draft().traveler_info
        if len(travelers) > 1 and 0 <= index < len(travelers):
            travelers.pop(index)

    # ── Navigation ───────────────────────────────────────────────────────────

    def next_step(self) -> bool:
        self.validation_message = None
        if self.draft is None:
            # abandoned or already confirmed
            return False
        if not self._target_loaded():
            self.error = LOAD_FAILED.format(self.booking_type)
            return False
        if self.step == CheckoutStep.DETAILS:
            message = validate_details(self.draft)
            if message:
                self.validation_message = message
                return False
            self.step = CheckoutStep.TRAVELER_INFO
            return True

        if self.step == CheckoutStep.TRAVELER_INFO:
            message = validate_travelers(self.draft)
            if message:
                self.validation_message = message
                return False
            return self._create_booking()

        # payment only advances through pay()
        return False

    def prev_step(self) -> bool:
        if self.draft is None:
            return False
        if self.step in (CheckoutStep.TRAVELER_INFO, CheckoutStep.PAYMENT):
            self.step = CheckoutStep(self.step - 1)
            return True
        if self.step == CheckoutStep.DETAILS:
            self.abandon()
        return False

    def abandon(self) -> None:
        """Leave the flow. A booking already created stays pending on the server."""
        if self.booking is not None:
            logger.info(f"Checkout abandoned with booking {self.booking.id} still {self.booking.payment_status}")
        self.abandoned = True
        self.draft = None

    # ── Booking creation ─────────────────────────────────────────────────────

    def build_payload(self) -> BookingCreate:
        draft = self._require_draft()
        target = {"destination": self.target_id} if self.booking_type == "destination" \
            else {"vacation_package": self.target_id}
        return BookingCreate(
            start_date=draft.start_date,
            end_date=draft.end_date,
            adults=draft.adults,
            children=draft.children,
            special_requests=draft.special_requests,
            traveler_info=draft.traveler_info,
            total_price=self.total_price,
            idempotency_key=draft.idempotency_key,
            **target,
        )

    def _create_booking(self) -> bool:
        if self.loading:
            return False
        if self.total_price is None:
            self.error = LOAD_FAILED.format(self.booking_type)
            return False
        if self.booking is not None:
            # created on an earlier pass through this step
            self.step = CheckoutStep.PAYMENT
            return True

        self.loading = True
        self.error = None
        try:
            self.booking = self.gateway.create_booking(self.build_payload())
        except Exception as e:
            logger.error(f"Error creating booking: {e}", exc_info=True)
            self.error = CREATE_FAILED
            return False
        finally:
            self.loading = False

        logger.info(f"Created {self.booking_type} booking {self.booking.id} for {self.booking.total_price}")
        self.step = CheckoutStep.PAYMENT
        return True

    # ── Payment ──────────────────────────────────────────────────────────────

    def _payer(self):
        user = self.session.user
        lead = self.draft.traveler_info[0] if self.draft else TravelerInfo()
        name = (user.name if user else "") or lead.name
        email = (user.email if user else "") or lead.email
        return name, email

    def _confirm_payment(self, card: dict) -> CardPaymentResult:
        name, email = self._payer()
        description = "Destination Booking" if self.booking_type == "destination" else "Vacation Package Booking"
        client_secret = self.gateway.create_payment_intent(self.booking.total_price, {
            "id": str(self.booking.id),
            "bookingType": self.booking_type,
            "name": name,
            "email": email,
            "description": description,
        })
        return self.payment_provider.confirm_card_payment(client_secret, {
            "payment_method": {
                "card": card,
                "billing_details": {"name": name, "email": email},
            },
            "receipt_email": email,
        })

    def pay(self, card: dict) -> bool:
        """
        Charge the card for the created booking, then record the payment.
        Blocked after a partial failure so the customer is not charged twice.
        """
        if self.step != CheckoutStep.PAYMENT or self.booking is None:
            return False
        if self.payment_processing or self.payment_record_failed:
            return False

        self.payment_processing = True
        self.error = None
        try:
            try:
                result = self._confirm_payment(card)
            except Exception as e:
                logger.error(f"Payment error for booking {self.booking.id}: {e}", exc_info=True)
                result = CardPaymentResult(error=str(e))

            if not result.succeeded:
                status = result.payment_intent.status if result.payment_intent else "missing"
                self.handle_payment_error(result.error or f"payment intent status {status}")
                return False
            return self.handle_payment_success(result.payment_intent)
        finally:
            self.payment_processing = False

    def handle_payment_error(self, reason: str) -> None:
        logger.error(f"Payment failed for booking {self.booking.id}: {reason}")
        self.error = PAYMENT_FAILED

    def handle_payment_success(self, payment_intent: PaymentIntentResult) -> bool:
        try:
            self.gateway.update_booking_payment(
                self.booking.id,
                PaymentUpdate(payment_id=payment_intent.id, payment_status="paid"),
            )
            self.booking = self.gateway.get_booking(self.booking.id)
        except Exception as e:
            logger.error(
                f"Payment {payment_intent.id} succeeded but booking {self.booking.id} was not updated: {e}",
                exc_info=True,
            )
            self.error = PAYMENT_RECORD_FAILED
            self.payment_record_failed = True
            return False

        self.payment_success = True
        self.step = CheckoutStep.CONFIRMATION
        self.draft = None
        return True
