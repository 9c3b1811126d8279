import logging
from datetime import date, timedelta
from typing import Dict, Optional

from auth_context import AuthSession
from booking_schemas import Booking, BookingCreate, BookingType, Destination, TravelerInfo, VacationPackage
from pricing import SimpleQuote, quote_simple_form

logger = logging.getLogger(__name__)

SUBMIT_FAILED = "Failed to create booking. Please try again."


class SimpleBookingForm:
    """
    One-page booking: a start date and a traveler count, priced with the flat
    per-traveler policy. No payment step; the booking is created as pending.
    """

    def __init__(
        self,
        booking_type: BookingType,
        target_id: int,
        gateway,
        session: Optional[AuthSession] = None,
        today: Optional[date] = None,
    ):
        self.booking_type = booking_type
        self.target_id = target_id
        self.gateway = gateway
        self.session = session or AuthSession()
        self.today = today or date.today()

        self.start_date: Optional[date] = self.today + timedelta(days=1)
        self.number_of_travelers = 1
        self.special_requests = ""
        self.agree_to_terms = False

        self.vacation_package: Optional[VacationPackage] = None
        self.destination: Optional[Destination] = None
        self.errors: Dict[str, str] = {}
        self.error: Optional[str] = None
        self.is_submitting = False
        self.booking: Optional[Booking] = None

    def load(self) -> bool:
        try:
            if self.booking_type == "package":
                self.vacation_package = self.gateway.get_vacation(self.target_id)
            else:
                self.destination = self.gateway.get_destination(self.target_id)
        except Exception as e:
            logger.error(f"Error fetching {self.booking_type} {self.target_id}: {e}", exc_info=True)
            self.error = f"Failed to fetch {self.booking_type} details"
            return False
        return True

    def quote(self) -> Optional[SimpleQuote]:
        if not self.start_date:
            return None
        if self.booking_type == "package":
            if self.vacation_package is None:
                return None
            return quote_simple_form(
                "package", self.number_of_travelers, self.start_date,
                package_price=self.vacation_package.price,
                package_duration=self.vacation_package.duration,
            )
        return quote_simple_form("destination", self.number_of_travelers, self.start_date)

    def validate(self) -> Dict[str, str]:
        errors = {}
        if not self.start_date:
            errors["start_date"] = "Start date is required"
        elif self.start_date <= self.today:
            errors["start_date"] = "Start date must be in the future"
        if self.number_of_travelers < 1:
            errors["number_of_travelers"] = "At least 1 traveler is required"
        if not self.agree_to_terms:
            errors["agree_to_terms"] = "You must agree to the terms and conditions"
        return errors

    def submit(self) -> bool:
        self.errors = self.validate()
        if self.errors:
            return False
        if self.is_submitting:
            return False

        quote = self.quote()
        if quote is None:
            self.error = f"Failed to fetch {self.booking_type} details"
            return False

        user = self.session.user
        lead = TravelerInfo(name=user.name, email=user.email) if user else TravelerInfo()
        target = {"destination": self.target_id} if self.booking_type == "destination" \
            else {"vacation_package": self.target_id}

        self.is_submitting = True
        self.error = None
        try:
            payload = BookingCreate(
                start_date=self.start_date,
                end_date=quote.end_date,
                adults=self.number_of_travelers,
                special_requests=self.special_requests,
                traveler_info=[lead],
                total_price=quote.total_price,
                **target,
            )
            self.booking = self.gateway.create_booking(payload)
        except Exception as e:
            logger.error(f"Error creating booking: {e}", exc_info=True)
            self.error = SUBMIT_FAILED
            return False
        finally:
            self.is_submitting = False
        return True
