# homeland/db/models.py

import uuid
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Date,
    Text,
    ForeignKey,
    Numeric,
    Boolean,
    Float,
    JSON,
)
from sqlalchemy.orm import relationship

from homeland.db.base import Base

# "user" | "host" | "admin"
ROLES = ("user", "host", "admin")

# "pending" | "approved" | "rejected"
APPROVAL_STATUSES = ("pending", "approved", "rejected")

# "pending" | "confirmed" | "cancelled" | "completed"
BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")

# bookings in these states hold their dates
ACTIVE_BOOKING_STATUSES = ("pending", "confirmed")


def _new_booking_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(32), nullable=True)

    # DB column name: password_hash
    # Python attribute: hashed_password
    hashed_password = Column("password_hash", String(255), nullable=False)

    role = Column(String(20), nullable=False, default="user")

    reset_token = Column(String(128), nullable=True, index=True)
    reset_token_expiry = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Host's own properties (via properties.host_id)
    properties = relationship(
        "Property",
        back_populates="host",
        foreign_keys="Property.host_id",
    )

    # Properties this user approved as admin (via properties.approved_by_admin_id)
    approved_properties = relationship(
        "Property",
        foreign_keys="Property.approved_by_admin_id",
        back_populates="approved_by_admin",
    )

    bookings = relationship("Booking", back_populates="user")

    refresh_tokens = relationship(
        "UserRefreshToken",
        back_populates="user",
        cascade="all,delete-orphan",
        passive_deletes=True,
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(16), nullable=True)

    properties = relationship("Property", back_populates="category")


class Property(Base):
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)

    host_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    category_id = Column(
        Integer,
        ForeignKey("categories.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    address = Column(String(255), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    price_per_night = Column(Numeric(10, 2), nullable=False)
    max_guests = Column(Integer, nullable=False)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Integer, nullable=False)

    # list[str] as JSON in DB
    amenities = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)

    # Revealed to the guest only once a booking exists
    host_contact = Column(String(255), nullable=True)
    pin_location = Column(String(512), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    # Approval fields
    approval_status = Column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
    )
    rejection_reason = Column(Text, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    approved_by_admin_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Relationships
    host = relationship(
        "User",
        back_populates="properties",
        foreign_keys=[host_id],
    )

    approved_by_admin = relationship(
        "User",
        back_populates="approved_properties",
        foreign_keys=[approved_by_admin_id],
    )

    category = relationship("Category", back_populates="properties")

    bookings = relationship("Booking", back_populates="property")

    reviews = relationship("Review", back_populates="property")


class Booking(Base):
    __tablename__ = "bookings"

    # Random id: an anonymous guest uses it to look the booking up again
    id = Column(String(36), primary_key=True, default=_new_booking_id)

    property_id = Column(
        Integer,
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False)

    guest_name = Column(String(255), nullable=False)
    guest_email = Column(String(255), nullable=False, index=True)
    guest_phone = Column(String(32), nullable=False)
    special_requests = Column(Text, nullable=True)

    total_price = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default="pending", index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    user = relationship("User", back_populates="bookings")
    property = relationship("Property", back_populates="bookings")
    reviews = relationship("Review", back_populates="booking")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)

    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, unique=True)

    overall_rating = Column(Float, nullable=False)
    cleanliness = Column(Integer, nullable=False)
    accuracy = Column(Integer, nullable=False)
    communication = Column(Integer, nullable=False)
    location = Column(Integer, nullable=False)
    check_in = Column(Integer, nullable=False)
    value = Column(Integer, nullable=False)

    comment = Column(Text, nullable=True)
    images = Column(JSON, nullable=False, default=list)

    is_visible = Column(Boolean, nullable=False, default=True)
    is_reported = Column(Boolean, nullable=False, default=False)
    report_reason = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    author = relationship("User", foreign_keys=[author_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
    property = relationship("Property", back_populates="reviews")
    booking = relationship("Booking", back_populates="reviews")
    host_response = relationship("HostResponse", back_populates="review", uselist=False)


class HostResponse(Base):
    __tablename__ = "host_responses"

    id = Column(Integer, primary_key=True, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"), nullable=False, unique=True)
    host_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    response = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    review = relationship("Review", back_populates="host_response")
    host = relationship("User")


class UserRefreshToken(Base):
    __tablename__ = "user_refresh_tokens"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="refresh_tokens")
