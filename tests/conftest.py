import os

# must be set before config / persistence are imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STRIPE_WEBHOOK_SECRET"] = ""

import pytest
from fastapi.testclient import TestClient

from auth_context import AuthSession, CurrentUser
from booking_schemas import Destination, VacationPackage
from booking_tools import InMemoryBookingGateway, MockCardPaymentProvider
from persistence import crud
from persistence.db import Base, SessionLocal, engine
from server import app


def auth_headers(user):
    return {"x-auth-token": user.auth_token}


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def client(db):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def customer(db):
    return crud.create_user(db, "Ayesha Khan", "ayesha@example.com", auth_token="customer-token")


@pytest.fixture
def other_customer(db):
    return crud.create_user(db, "Omar Farooq", "omar@example.com", auth_token="other-token")


@pytest.fixture
def admin(db):
    return crud.create_user(db, "Admin", "admin@example.com", role="admin", auth_token="admin-token")


@pytest.fixture
def package(db):
    return crud.create_vacation_package(
        db, "Hunza Valley Explorer", duration=6, price=800.0, activities=["hiking", "boating"],
    )


@pytest.fixture
def destination(db):
    return crud.create_destination(db, "Skardu", "Pakistan", "Gateway to the Karakoram")


# ── In-memory collaborators for the client-side flows ─────────────────────────

@pytest.fixture
def session():
    return AuthSession(CurrentUser(id=1, name="Ayesha Khan", email="ayesha@example.com"), token="customer-token")


@pytest.fixture
def gateway():
    return InMemoryBookingGateway(
        packages={7: VacationPackage(id=7, name="Hunza Valley Explorer", duration=6, price=800.0)},
        destinations={3: Destination(id=3, name="Skardu", country="Pakistan")},
    )


@pytest.fixture
def card_provider():
    return MockCardPaymentProvider()
