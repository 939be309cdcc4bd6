# homeland/services/booking_service.py
"""
Booking rules: creation (validation, availability, pricing, persistence)
and status changes. Routers translate the exceptions below into HTTP codes.
"""
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from pydantic import EmailStr, TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.db import crud_bookings, crud_properties
from homeland.db.models import ACTIVE_BOOKING_STATUSES, BOOKING_STATUSES, Booking, User
from homeland.services import notifications
from homeland.services.availability import is_available
from homeland.services.pricing import calculate_total

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "propertyId",
    "checkIn",
    "checkOut",
    "guestCount",
    "guestFirstName",
    "guestLastName",
    "guestEmail",
    "guestPhone",
)

# host-driven lifecycle; admins may override through admin_set_status
TRANSITIONS = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("cancelled", "completed"),
}

UNAVAILABLE = "Property is not available for the selected dates"

_email_adapter = TypeAdapter(EmailStr)
_int_adapter = TypeAdapter(int)


class BookingError(ValueError):
    def __init__(self, detail: Any):
        super().__init__(detail if isinstance(detail, str) else "Booking error")
        self.detail = detail


class MissingBookingFields(BookingError):
    def __init__(self, missing: List[str], received: List[str]):
        super().__init__(
            {
                "message": "Missing required fields",
                "required": list(REQUIRED_FIELDS),
                "missing": missing,
                "received": received,
            }
        )


class InvalidStatusTransition(BookingError):
    pass


class PropertyNotFound(LookupError):
    pass


class BookingNotFound(LookupError):
    pass


class NotPropertyHost(PermissionError):
    pass


def _as_date(value: Any, field: str) -> date:
    if isinstance(value, date):
        return value
    try:
        # accepts "2025-06-01" as well as full ISO timestamps
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise BookingError(f"Invalid date for {field}")


def _as_int(value: Any, field: str) -> int:
    # "4" and 4.0 pass, 4.9 does not
    try:
        return _int_adapter.validate_python(value)
    except ValidationError:
        raise BookingError(f"Invalid number for {field}")


def missing_fields(payload: Dict[str, Any]) -> List[str]:
    return [f for f in REQUIRED_FIELDS if payload.get(f) in (None, "")]


async def create_booking(
    db: AsyncSession,
    payload: Dict[str, Any],
    user: Optional[User] = None,
    notifier: Optional[notifications.NotificationService] = None,
) -> Tuple[Booking, int]:
    """
    Validate and persist a pending booking, then notify guest and host.

    Checks run in a fixed order: required fields, property, capacity,
    dates, availability. The property row stays locked from the lookup
    until the insert commits. Returns (booking, nights).
    """
    missing = missing_fields(payload)
    if missing:
        raise MissingBookingFields(missing, list(payload.keys()))

    property_id = _as_int(payload["propertyId"], "propertyId")
    guests = _as_int(payload["guestCount"], "guestCount")
    check_in = _as_date(payload["checkIn"], "checkIn")
    check_out = _as_date(payload["checkOut"], "checkOut")
    try:
        guest_email = _email_adapter.validate_python(str(payload["guestEmail"]).strip())
    except ValidationError:
        raise BookingError("Invalid guest email address")

    try:
        prop = await crud_properties.lock_property(db, property_id)
        if prop is None:
            raise PropertyNotFound("Property not found")
        if prop.approval_status != "approved" or not prop.is_active:
            raise BookingError("Property is not available for booking")

        if guests < 1 or guests > prop.max_guests:
            raise BookingError(
                f"This property accommodates between 1 and {prop.max_guests} guests"
            )

        if check_in < date.today():
            raise BookingError("Check-in date cannot be in the past")
        if check_out <= check_in:
            raise BookingError("Check-out date must be after check-in date")

        if not await is_available(db, prop.id, check_in, check_out):
            raise BookingError(UNAVAILABLE)

        nights, total = calculate_total(check_in, check_out, prop.price_per_night)

        guest_name = f"{str(payload['guestFirstName']).strip()} {str(payload['guestLastName']).strip()}"
        booking = crud_bookings.add_booking(
            db,
            property_id=prop.id,
            user_id=user.id if user else None,
            check_in=check_in,
            check_out=check_out,
            guests=guests,
            guest_name=guest_name,
            guest_email=guest_email.lower(),
            guest_phone=str(payload["guestPhone"]).strip(),
            special_requests=payload.get("specialRequests") or None,
            total_price=total,
        )
        await db.commit()
    except (BookingError, PropertyNotFound):
        await db.rollback()
        raise

    booking = await crud_bookings.get_booking(db, booking.id)
    logger.info(
        "Booking %s created for property %s (%s -> %s, %s nights, total %s)",
        booking.id, prop.id, check_in, check_out, nights, total,
    )

    try:
        await (notifier or notifications.notification_service).booking_created(booking, nights)
    except Exception:
        logger.exception("Booking %s notifications failed", booking.id)

    return booking, nights


async def get_booking_or_404(db: AsyncSession, booking_id: str) -> Booking:
    booking = await crud_bookings.get_booking(db, booking_id)
    if booking is None:
        raise BookingNotFound("Booking not found")
    return booking


async def change_status(
    db: AsyncSession,
    booking_id: str,
    new_status: str,
    actor: User,
) -> Booking:
    """
    Host (or admin) moves a booking along its lifecycle:
    pending -> confirmed | cancelled, confirmed -> cancelled | completed.
    """
    booking = await get_booking_or_404(db, booking_id)
    if actor.role != "admin" and booking.property.host_id != actor.id:
        raise NotPropertyHost("Not allowed to update this booking")

    if new_status not in TRANSITIONS.get(booking.status, ()):
        raise InvalidStatusTransition(
            f"Cannot change booking status from {booking.status} to {new_status}"
        )

    booking.status = new_status
    db.add(booking)
    await db.commit()
    logger.info("Booking %s -> %s by user %s", booking.id, new_status, actor.id)
    return await crud_bookings.get_booking(db, booking.id)


async def admin_set_status(db: AsyncSession, booking_id: str, new_status: str) -> Booking:
    """
    Admin override to any status. Moving a booking back into pending or
    confirmed re-checks its dates against the other active bookings.
    """
    if new_status not in BOOKING_STATUSES:
        raise InvalidStatusTransition(f"Invalid status: {new_status}")

    booking = await get_booking_or_404(db, booking_id)
    try:
        if new_status in ACTIVE_BOOKING_STATUSES:
            await crud_properties.lock_property(db, booking.property_id)
            available = await is_available(
                db,
                booking.property_id,
                booking.check_in,
                booking.check_out,
                exclude_booking_id=booking.id,
            )
            if not available:
                raise BookingError(UNAVAILABLE)
        booking.status = new_status
        db.add(booking)
        await db.commit()
    except BookingError:
        await db.rollback()
        raise

    logger.info("Booking %s -> %s by admin override", booking.id, new_status)
    return await crud_bookings.get_booking(db, booking.id)
