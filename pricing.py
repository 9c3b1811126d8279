# Pricing for booking checkout.
# Two independent policies:
#   quote_checkout     - multi-step checkout (duration tiers for destinations)
#   quote_simple_form  - one-page booking form (flat per-traveler price)

from datetime import date, timedelta
from typing import Optional

from pydantic import BaseModel

from booking_schemas import BookingType

DESTINATION_BASE_PRICE = 500.0
PACKAGE_CHILD_RATE     = 0.7   # 30% off for children
DESTINATION_CHILD_RATE = 0.6   # 40% off for children

# (max trip days, factor); anything longer gets LONG_STAY_FACTOR
DURATION_TIERS   = ((3, 1.0), (7, 0.9), (14, 0.8))
LONG_STAY_FACTOR = 0.7

SIMPLE_DESTINATION_BASE_PRICE   = 100.0
SIMPLE_DESTINATION_DEFAULT_DAYS = 3


class PriceQuote(BaseModel):
    adult_price: float
    child_price: float
    duration_factor: float
    total_price: float


class SimpleQuote(BaseModel):
    total_price: float
    end_date: date


def trip_days(start_date: Optional[date], end_date: Optional[date]) -> Optional[int]:
    if not start_date or not end_date:
        return None
    return (end_date - start_date).days


def duration_factor(start_date: Optional[date], end_date: Optional[date]) -> float:
    """
    Discount multiplier for destination bookings based on trip length.
    Missing dates and reversed dates fall into the first tier (no discount).
    """
    days = trip_days(start_date, end_date)
    if days is None:
        return 1.0
    for max_days, factor in DURATION_TIERS:
        if days <= max_days:
            return factor
    return LONG_STAY_FACTOR


def quote_checkout(
    booking_type: BookingType,
    adults: int,
    children: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    package_price: Optional[float] = None,
) -> PriceQuote:
    """Price breakdown for the multi-step checkout."""
    if booking_type == "destination":
        factor      = duration_factor(start_date, end_date)
        adult_price = DESTINATION_BASE_PRICE * factor
        child_price = adult_price * DESTINATION_CHILD_RATE
    else:
        if package_price is None:
            raise ValueError("package_price is required for package bookings")
        factor      = 1.0
        adult_price = float(package_price)
        child_price = adult_price * PACKAGE_CHILD_RATE

    total = adults * adult_price + children * child_price
    return PriceQuote(
        adult_price=round(adult_price, 2),
        child_price=round(child_price, 2),
        duration_factor=factor,
        total_price=round(total, 2),
    )


def checkout_total(booking_type: BookingType, adults: int, children: int, **kwargs) -> float:
    return quote_checkout(booking_type, adults, children, **kwargs).total_price


def quote_simple_form(
    booking_type: BookingType,
    travelers: int,
    start_date: date,
    package_price: Optional[float] = None,
    package_duration: Optional[int] = None,
) -> SimpleQuote:
    """
    Price and end date for the one-page booking form.
    Packages run for their own duration; destinations get a fixed 3-day stay.
    """
    if booking_type == "package":
        if package_price is None or package_duration is None:
            raise ValueError("package_price and package_duration are required for package bookings")
        total = float(package_price) * travelers
        days  = package_duration
    else:
        total = SIMPLE_DESTINATION_BASE_PRICE * travelers
        days  = SIMPLE_DESTINATION_DEFAULT_DAYS

    return SimpleQuote(total_price=round(total, 2), end_date=start_date + timedelta(days=days))
