from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import get_current_user, get_optional_user, require_role
from homeland.db.session import get_db
from homeland.db.models import BOOKING_STATUSES
from homeland.db import crud_bookings, crud_properties
from homeland.schemas.booking import (
    AvailabilityOut,
    BookingDetail,
    BookingListItem,
    BookingOut,
    BookingStatusUpdate,
)
from homeland.services import booking_service
from homeland.services.availability import is_available
from homeland.services.pricing import nights_between

router = APIRouter()


def _confirmation_details(booking, nights: int) -> Dict[str, Any]:
    prop = booking.property
    return {
        "booking_reference": booking.id,
        "guest_name": booking.guest_name,
        "check_in": booking.check_in.isoformat(),
        "check_out": booking.check_out.isoformat(),
        "nights": nights,
        "guests": booking.guests,
        "total_amount": float(booking.total_price),
        "property": prop.title,
        "location": f"{prop.address}, {prop.city}, {prop.country}",
        "host_name": prop.host.full_name,
        "host_contact": prop.host_contact or prop.host.phone,
        "pin_location": prop.pin_location,
    }


@router.get("/availability", response_model=AvailabilityOut)
async def check_availability(
    property_id: int,
    check_in: date,
    check_out: date,
    db: AsyncSession = Depends(get_db),
):
    if check_out <= check_in:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Check-out date must be after check-in date",
        )
    prop = await crud_properties.get_property(db, property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    available = await is_available(db, property_id, check_in, check_out)
    return AvailabilityOut(
        property_id=property_id, check_in=check_in, check_out=check_out, available=available
    )


@router.post("/book", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_optional_user),
):
    """
    Anonymous booking. A logged-in caller gets the booking linked to them.
    """
    booking, nights = await booking_service.create_booking(db, payload, user=current_user)
    return {
        "message": "Booking created successfully",
        "booking": BookingDetail.model_validate(booking),
        "confirmation_details": _confirmation_details(booking, nights),
    }


@router.get("/property/{property_id}")
async def property_bookings(
    property_id: int,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    prop = await crud_properties.get_property(db, property_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    if prop.host_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Not allowed")

    bookings = await crud_bookings.list_bookings_for_property(db, property_id, status_filter)
    return {"bookings": [BookingOut.model_validate(b) for b in bookings]}


@router.get("")
async def list_bookings(
    status_filter: Optional[str] = Query(None, alias="status"),
    property_id: Optional[int] = None,
    host_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    bookings = await crud_bookings.list_bookings(
        db, status=status_filter, property_id=property_id, host_id=host_id
    )
    by_status = {s: 0 for s in BOOKING_STATUSES}
    revenue = Decimal("0")
    for b in bookings:
        by_status[b.status] = by_status.get(b.status, 0) + 1
        if b.status == "completed":
            revenue += b.total_price
    return {
        "bookings": [BookingListItem.model_validate(b) for b in bookings],
        "summary": {
            "total_bookings": len(bookings),
            "total_revenue": float(revenue),
            "by_status": by_status,
        },
    }


@router.get("/{booking_id}")
async def get_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    """
    The booking id doubles as the guest's access token.
    """
    booking = await booking_service.get_booking_or_404(db, booking_id)
    return {
        "booking": BookingDetail.model_validate(booking),
        "nights": nights_between(booking.check_in, booking.check_out),
    }


@router.put("/{booking_id}/status")
async def update_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if body.status not in ("confirmed", "cancelled", "completed"):
        raise HTTPException(status_code=400, detail="Invalid status")
    booking = await booking_service.change_status(db, booking_id, body.status, current_user)
    return {
        "message": f"Booking {body.status}",
        "booking": BookingOut.model_validate(booking),
    }
