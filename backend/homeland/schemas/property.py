# homeland/schemas/property.py
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from homeland.schemas.category import CategoryOut


class HostInfo(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


class HostContact(HostInfo):
    email: str
    phone: Optional[str] = None


class PropertyBase(BaseModel):
    """
    Listing as shown to anyone: no host contact, no pin location.
    """
    id: int
    host_id: int
    category_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    address: str
    city: str
    country: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_per_night: float
    max_guests: int
    bedrooms: int
    bathrooms: int
    amenities: List[str] = []
    images: List[str] = []
    is_active: bool
    approval_status: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PropertyPublic(PropertyBase):
    host: Optional[HostInfo] = None
    category: Optional[CategoryOut] = None


class PropertyPrivate(PropertyPublic):
    """
    Owner / admin view.
    """
    host: Optional[HostContact] = None
    host_contact: Optional[str] = None
    pin_location: Optional[str] = None
    rejection_reason: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by_admin_id: Optional[int] = None
    updated_at: Optional[datetime] = None


class PropertyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: str = Field(min_length=1)
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_per_night: float = Field(gt=0)
    max_guests: int = Field(ge=1)
    bedrooms: int = Field(ge=0)
    bathrooms: int = Field(ge=0)
    category_id: int
    amenities: List[str] = []
    images: List[str] = []
    host_contact: Optional[str] = None
    pin_location: Optional[str] = None


class PropertyUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price_per_night: Optional[float] = Field(default=None, gt=0)
    max_guests: Optional[int] = Field(default=None, ge=1)
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)
    category_id: Optional[int] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    host_contact: Optional[str] = None
    pin_location: Optional[str] = None


class PropertyToggle(BaseModel):
    is_active: bool


class PropertyReject(BaseModel):
    rejection_reason: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PropertiesPage(BaseModel):
    properties: List[PropertyPublic]
    pagination: Pagination
