# homeland/schemas/user.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    role: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str
    phone: Optional[str] = None


class UserRoleUpdate(BaseModel):
    """
    Admin role change:
      body: { "role": "user" | "host" | "admin" }
    """
    role: str


class UserOut(UserBase):
    """
    Public-facing user data (e.g. auth token payload).
    """
    pass


class HostSummary(UserBase):
    """
    Admin host list entry.
    """
    property_count: int = 0
    booking_count: int = 0
