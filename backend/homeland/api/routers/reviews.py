# homeland/api/routers/reviews.py
import logging
import math
from collections import OrderedDict
from datetime import date, datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import get_current_user, require_role
from homeland.core.config import get_settings
from homeland.db.session import get_db
from homeland.db.models import Review
from homeland.db import crud_reviews
from homeland.schemas.property import HostContact
from homeland.schemas.review import (
    HostResponseCreate,
    HostResponseOut,
    ReviewCreate,
    ReviewModerate,
    ReviewOut,
    ReviewReport,
)
from homeland.services.notifications import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()

CATEGORY_RATINGS = ("cleanliness", "accuracy", "communication", "location", "check_in", "value")
TREND_MONTHS = 6


def _review_url(property_id: int) -> str:
    return f"{get_settings().CLIENT_URL}/property/{property_id}#reviews"


def _month_starts(today: date, count: int) -> list:
    """
    First day of each of the last `count` months, oldest first, current month last.
    """
    starts = []
    year, month = today.year, today.month
    for _ in range(count):
        starts.append(date(year, month, 1))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(starts))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(
    body: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    Only the guest of a completed booking may review it, once.
    """
    booking = await crud_reviews.get_reviewable_booking(
        db, body.booking_id, current_user.id, current_user.email
    )
    if not booking:
        raise HTTPException(status_code=400, detail="Booking not found or not eligible for review")
    if await crud_reviews.get_review_for_booking(db, booking.id):
        raise HTTPException(status_code=400, detail="Review already exists for this booking")

    data = body.model_dump()
    if data["overall_rating"] is None:
        data["overall_rating"] = round(
            sum(data[f] for f in CATEGORY_RATINGS) / len(CATEGORY_RATINGS), 1
        )

    review = await crud_reviews.create_review(
        db,
        author_id=current_user.id,
        recipient_id=booking.property.host_id,
        property_id=booking.property_id,
        **data,
    )
    logger.info("Review %s created for booking %s", review.id, booking.id)
    await notification_service.send_new_review(review, _review_url(review.property_id))
    return {"message": "Review created successfully", "review": ReviewOut.model_validate(review)}


@router.get("/property/{property_id}")
async def property_reviews(
    property_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["newest", "oldest", "highest", "lowest"] = "newest",
    db: AsyncSession = Depends(get_db),
):
    reviews, total = await crud_reviews.list_property_reviews(
        db, property_id, page=page, limit=limit, sort_by=sort_by
    )
    total_pages = math.ceil(total / limit) if total else 0
    return {
        "reviews": [ReviewOut.model_validate(r) for r in reviews],
        "pagination": {
            "current_page": page,
            "total_pages": total_pages,
            "total_reviews": total,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
        "averages": await crud_reviews.average_ratings(db, Review.property_id == property_id),
        "rating_breakdown": await crud_reviews.rating_breakdown(db, property_id),
    }


@router.get("/user/{user_id}")
async def user_reviews(
    user_id: int,
    review_type: Literal["given", "received"] = Query("given", alias="type"),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    reviews = await crud_reviews.list_user_reviews(db, user_id, given=review_type == "given")
    return {"reviews": [ReviewOut.model_validate(r) for r in reviews]}


@router.post("/{review_id}/response", status_code=status.HTTP_201_CREATED)
async def respond_to_review(
    review_id: int,
    body: HostResponseCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    review = await crud_reviews.get_review(db, review_id)
    if not review or review.recipient_id != current_user.id:
        raise HTTPException(status_code=404, detail="Review not found or access denied")
    if review.host_response is not None:
        raise HTTPException(status_code=400, detail="Response already exists for this review")

    host_response = await crud_reviews.create_host_response(
        db, review.id, current_user.id, body.response.strip()
    )
    await notification_service.send_review_response(
        review, host_response, _review_url(review.property_id)
    )
    return {
        "message": "Response added successfully",
        "response": HostResponseOut.model_validate(host_response),
    }


@router.get("/analytics/{host_id}")
async def review_analytics(
    host_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    if current_user.id != host_id and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Access denied")

    months = _month_starts(date.today(), TREND_MONTHS)
    since = datetime.combine(months[0], datetime.min.time())
    buckets = OrderedDict((m.strftime("%Y-%m"), []) for m in months)
    for r in await crud_reviews.list_host_reviews(db, host_id, since=since):
        key = r.created_at.strftime("%Y-%m")
        if key in buckets:
            buckets[key].append(r.overall_rating)

    trends = [
        {
            "month": month,
            "avg_rating": round(sum(ratings) / len(ratings), 1) if ratings else 0,
            "review_count": len(ratings),
        }
        for month, ratings in buckets.items()
    ]
    recent = await crud_reviews.list_host_reviews(db, host_id, limit=5)
    return {
        "total_reviews": await crud_reviews.count_host_reviews(db, host_id),
        "average_ratings": await crud_reviews.average_ratings(db, Review.recipient_id == host_id),
        "monthly_trends": trends,
        "recent_reviews": [ReviewOut.model_validate(r) for r in recent],
    }


@router.post("/{review_id}/report")
async def report_review(
    review_id: int,
    body: ReviewReport,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    review = await crud_reviews.get_review(db, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    await crud_reviews.update_review(
        db, review, {"is_reported": True, "report_reason": body.reason.strip()}
    )
    logger.info("Review %s reported by user %s", review_id, current_user.id)
    return {"message": "Review reported successfully"}


@router.put("/{review_id}/moderate")
async def moderate_review(
    review_id: int,
    body: ReviewModerate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    review = await crud_reviews.get_review(db, review_id)
    if not review:
        raise HTTPException(status_code=404, detail="Review not found")
    review = await crud_reviews.update_review(
        db, review, {"is_visible": body.is_visible, "is_reported": False}
    )
    return {"message": "Review moderated", "review": ReviewOut.model_validate(review)}


@router.get("/eligibility/{booking_id}")
async def review_eligibility(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    booking = await crud_reviews.get_owned_booking(
        db, booking_id, current_user.id, current_user.email
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    has_review = bool(booking.reviews)
    prop = booking.property
    return {
        "is_eligible": booking.status == "completed" and not has_review,
        "has_existing_review": has_review,
        "booking_status": booking.status,
        "days_since_checkout": (date.today() - booking.check_out).days,
        "property": {
            "id": prop.id,
            "title": prop.title,
            "images": prop.images or [],
            "host": HostContact.model_validate(prop.host),
        },
    }
