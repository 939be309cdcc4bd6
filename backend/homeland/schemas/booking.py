# homeland/schemas/booking.py
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel

from homeland.schemas.property import HostContact


class BookingOut(BaseModel):
    id: str
    property_id: int
    user_id: Optional[int] = None
    check_in: date
    check_out: date
    guests: int
    guest_name: str
    guest_email: str
    guest_phone: str
    special_requests: Optional[str] = None
    total_price: float
    status: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookedProperty(BaseModel):
    """
    Property as revealed to a guest holding a booking: includes contact and pin.
    """
    id: int
    title: str
    address: str
    city: str
    country: str
    images: List[str] = []
    price_per_night: float
    host_contact: Optional[str] = None
    pin_location: Optional[str] = None
    host: Optional[HostContact] = None

    model_config = {"from_attributes": True}


class PropertyTitle(BaseModel):
    id: int
    title: str
    city: str

    model_config = {"from_attributes": True}


class BookingDetail(BookingOut):
    property: BookedProperty


class BookingListItem(BookingOut):
    property: Optional[PropertyTitle] = None


class BookingStatusUpdate(BaseModel):
    status: str


class AvailabilityOut(BaseModel):
    property_id: int
    check_in: date
    check_out: date
    available: bool
