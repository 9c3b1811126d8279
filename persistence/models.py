from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from .db import Base


class UserModel(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128))
    email = Column(String(255), index=True)
    role = Column(String(32), default="user")
    # issued by the auth service; looked up from the x-auth-token header
    auth_token = Column(String, unique=True, index=True, nullable=True)

    bookings = relationship("BookingModel", back_populates="user")


class DestinationModel(Base):
    __tablename__ = "destinations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128))
    country = Column(String(128), default="")
    description = Column(Text, default="")


class VacationPackageModel(Base):
    __tablename__ = "vacation_packages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(128))
    description = Column(Text, default="")
    duration = Column(Integer)
    price = Column(Float)
    activities = Column(JSON, default=list)
    destination_id = Column(Integer, ForeignKey("destinations.id"), nullable=True)


class BookingModel(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), index=True)
    vacation_package_id = Column(Integer, ForeignKey("vacation_packages.id"), nullable=True, index=True)
    destination_id = Column(Integer, ForeignKey("destinations.id"), nullable=True, index=True)
    start_date = Column(Date)
    end_date = Column(Date)
    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    special_requests = Column(Text, default="")
    traveler_info = Column(JSON, default=list)
    total_price = Column(Float)
    status = Column(String(32), default="pending")
    payment_status = Column(String(32), default="pending")
    payment_id = Column(String, nullable=True)
    cancellation_reason = Column(Text, default="")
    idempotency_key = Column(String, unique=True, index=True, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    user = relationship("UserModel", back_populates="bookings")
