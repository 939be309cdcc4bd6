# homeland/schemas/review.py
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

Rating = Annotated[int, Field(ge=1, le=5)]


class ReviewCreate(BaseModel):
    booking_id: str
    overall_rating: Optional[float] = Field(default=None, ge=1, le=5)
    cleanliness: Rating
    accuracy: Rating
    communication: Rating
    location: Rating
    check_in: Rating
    value: Rating
    comment: Optional[str] = None
    images: List[str] = []


class ReviewAuthor(BaseModel):
    id: int
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


class HostResponseCreate(BaseModel):
    response: str = Field(min_length=1)


class HostResponseOut(BaseModel):
    id: int
    review_id: int
    host_id: int
    response: str
    created_at: datetime
    host: Optional[ReviewAuthor] = None

    model_config = {"from_attributes": True}


class ReviewSummary(BaseModel):
    id: int
    author_id: int
    property_id: int
    overall_rating: float
    cleanliness: int
    accuracy: int
    communication: int
    location: int
    check_in: int
    value: int
    comment: Optional[str] = None
    images: List[str] = []
    created_at: datetime
    author: Optional[ReviewAuthor] = None

    model_config = {"from_attributes": True}


class ReviewOut(ReviewSummary):
    recipient_id: int
    booking_id: str
    is_visible: bool
    is_reported: bool
    host_response: Optional[HostResponseOut] = None


class ReviewReport(BaseModel):
    reason: str = Field(min_length=1)


class ReviewModerate(BaseModel):
    is_visible: bool
