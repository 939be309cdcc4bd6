# homeland/api/routers/properties.py
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import get_current_user
from homeland.db.session import get_db
from homeland.db import crud_categories, crud_properties, crud_users
from homeland.schemas.property import (
    Pagination,
    PropertiesPage,
    PropertyCreate,
    PropertyPrivate,
    PropertyPublic,
    PropertyUpdate,
)
from homeland.schemas.review import ReviewSummary
from homeland.services.notifications import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_owner(prop, user) -> None:
    if prop.host_id != user.id and user.role != "admin":
        raise HTTPException(status_code=403, detail="Not allowed")


@router.get("", response_model=PropertiesPage)
async def list_properties(
    db: AsyncSession = Depends(get_db),
    city: Optional[str] = None,
    country: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    guests: Optional[int] = Query(None, ge=1),
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
):
    """
    Public listings: ALWAYS approved & active only.
    """
    filters = {
        "city": city,
        "country": country,
        "min_price": min_price,
        "max_price": max_price,
        "guests": guests,
        "category": category,
    }
    items, total = await crud_properties.list_properties(
        db,
        filters=filters,
        page=page,
        per_page=limit,
    )
    return PropertiesPage(
        properties=[PropertyPublic.model_validate(p) for p in items],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.get("/user/my-properties")
async def my_properties(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    items = await crud_properties.list_properties_for_host(
        db, current_user.id, active_only=True
    )
    counts = await crud_properties.counts_by_property(db, current_user.id)
    properties = []
    for p in items:
        data = PropertyPrivate.model_validate(p).model_dump()
        c = counts.get(p.id, {"reviews": 0, "bookings": 0})
        data["review_count"] = c["reviews"]
        data["booking_count"] = c["bookings"]
        properties.append(data)
    return {"properties": properties}


@router.get("/{prop_id}")
async def get_property_detail(prop_id: int, db: AsyncSession = Depends(get_db)):
    """
    Host, category and reviews are eagerly loaded so that validation does
    not attempt lazy-loading (which raises MissingGreenlet).
    """
    prop = await crud_properties.get_public_property(db, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")

    reviews = sorted(
        (r for r in prop.reviews if r.is_visible),
        key=lambda r: r.created_at,
        reverse=True,
    )
    avg = sum(r.overall_rating for r in reviews) / len(reviews) if reviews else 0
    data = PropertyPublic.model_validate(prop).model_dump()
    data["reviews"] = [ReviewSummary.model_validate(r).model_dump() for r in reviews]
    data["avg_rating"] = round(avg, 1)
    data["total_reviews"] = len(reviews)
    return {"property": data}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_property(
    body: PropertyCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    New properties ALWAYS start as approval_status='pending'.
    A plain user listing their first property becomes a host.
    """
    if not await crud_categories.get_category(db, body.category_id):
        raise HTTPException(status_code=400, detail="Invalid category")

    prop = await crud_properties.create_property(
        db,
        host_id=current_user.id,
        approval_status="pending",
        **body.model_dump(),
    )

    if await crud_users.promote_to_host(db, current_user):
        logger.info("User %s promoted to host", current_user.id)
        await notification_service.send_welcome(current_user)

    return {
        "message": "Property created and pending admin approval.",
        "property": PropertyPrivate.model_validate(prop),
    }


@router.put("/{prop_id}")
async def update_property(
    prop_id: int,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    prop = await crud_properties.get_property(db, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    _ensure_owner(prop, current_user)

    data = body.model_dump(exclude_unset=True)
    if data.get("category_id") is not None and not await crud_categories.get_category(
        db, data["category_id"]
    ):
        raise HTTPException(status_code=400, detail="Invalid category")

    prop = await crud_properties.update_property(db, prop, data)
    return {"message": "Property updated", "property": PropertyPrivate.model_validate(prop)}


@router.delete("/{prop_id}")
async def delete_property(
    prop_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    prop = await crud_properties.get_property(db, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    _ensure_owner(prop, current_user)

    await crud_properties.deactivate_property(db, prop)
    return {"message": "Property deleted"}
