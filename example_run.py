"""
Run this script to see a full mocked checkout:
 - load a vacation package and pre-fill the lead traveler from the session
 - fill trip details (price recomputes as the draft changes)
 - add a second traveler and create the booking
 - pay with a mock card provider and land on the confirmation step
"""

from datetime import date, timedelta

from auth_context import AuthSession, CurrentUser
from booking_schemas import Destination, VacationPackage
from booking_tools import InMemoryBookingGateway, MockCardPaymentProvider
from checkout_manager import CheckoutManager
from config import setup_logging


def main():
    setup_logging()

    gateway = InMemoryBookingGateway(
        packages={7: VacationPackage(id=7, name="Hunza Valley Explorer", duration=6, price=800.0)},
        destinations={3: Destination(id=3, name="Skardu", country="Pakistan")},
    )
    session = AuthSession(CurrentUser(id=1, name="Ayesha Khan", email="ayesha@example.com"), token="demo-token")

    checkout = CheckoutManager("package", 7, gateway, MockCardPaymentProvider(), session=session)
    checkout.load()
    print(f"Booking: {checkout.vacation_package.name} ({checkout.vacation_package.price} per person)")

    start = date.today() + timedelta(days=30)
    checkout.update_details(start_date=start, end_date=start + timedelta(days=6), adults=1, children=2)
    print(f"Price for 1 adult + 2 children: {checkout.total_price}")

    print("\n=== Step 1: details ===")
    print("advanced:", checkout.next_step(), "-> step", checkout.step.name)

    print("\n=== Step 2: travelers ===")
    checkout.add_traveler()
    checkout.update_traveler(1, "name", "Bilal Khan")
    checkout.update_traveler(1, "email", "bilal@example.com")
    print("advanced:", checkout.next_step(), "-> step", checkout.step.name)
    print(f"booking {checkout.booking.id}: payment_status={checkout.booking.payment_status}")

    print("\n=== Step 3: payment ===")
    print("advanced:", checkout.pay({"number": "4242424242424242", "exp_month": 12, "exp_year": 2030, "cvc": "123"}))

    print("\n=== Confirmation ===")
    booking = checkout.booking
    print(f"step={checkout.step.name} booking={booking.id} status={booking.status} "
          f"payment_status={booking.payment_status} payment_id={booking.payment_id} total={booking.total_price}")


if __name__ == "__main__":
    main()
