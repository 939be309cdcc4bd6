from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import get_current_user
from homeland.db.session import get_db
from homeland.db import crud_bookings, crud_categories, crud_properties
from homeland.schemas.booking import BookingListItem
from homeland.schemas.property import PropertyPrivate, PropertyToggle, PropertyUpdate

router = APIRouter()

NOT_OWNED = "Property not found or access denied"


async def _owned_property(db: AsyncSession, prop_id: int, user):
    prop = await crud_properties.get_property(db, prop_id)
    if not prop or prop.host_id != user.id:
        raise HTTPException(status_code=404, detail=NOT_OWNED)
    return prop


@router.get("/stats")
async def host_stats(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    Dashboard counters. Bookings count confirmed + completed; earnings only completed.
    """
    host_id = current_user.id
    return {
        "stats": {
            "total_properties": await crud_properties.count_properties(db, host_id=host_id),
            "approved_properties": await crud_properties.count_properties(
                db, host_id=host_id, approval_status="approved"
            ),
            "pending_properties": await crud_properties.count_properties(
                db, host_id=host_id, approval_status="pending"
            ),
            "total_bookings": await crud_bookings.count_bookings(
                db, statuses=("confirmed", "completed"), host_id=host_id
            ),
            "total_earnings": float(
                await crud_bookings.sum_completed_revenue(db, host_id=host_id)
            ),
        }
    }


@router.get("/properties")
async def host_properties(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    All properties of the current user, whatever their approval_status,
    each with its booking count and earnings.
    """
    items = await crud_properties.list_properties_for_host(db, host_id=current_user.id)
    stats = await crud_properties.booking_stats_by_property(db, current_user.id)
    properties = []
    for p in items:
        data = PropertyPrivate.model_validate(p).model_dump()
        s = stats.get(p.id, {"total_bookings": 0, "total_earnings": Decimal("0")})
        data["total_bookings"] = s["total_bookings"]
        data["total_earnings"] = float(s["total_earnings"])
        properties.append(data)
    return {"properties": properties}


@router.get("/bookings")
async def host_bookings(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    Most recent bookings for properties owned by the current user.
    """
    bookings = await crud_bookings.list_bookings_for_host(
        db,
        host_id=current_user.id,
        limit=limit,
    )
    return {"bookings": [BookingListItem.model_validate(b) for b in bookings]}


@router.put("/properties/{prop_id}")
async def update_property(
    prop_id: int,
    body: PropertyUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    prop = await _owned_property(db, prop_id, current_user)
    data = body.model_dump(exclude_unset=True)
    if data.get("category_id") is not None and not await crud_categories.get_category(
        db, data["category_id"]
    ):
        raise HTTPException(status_code=400, detail="Invalid category")
    prop = await crud_properties.update_property(db, prop, data)
    return {"message": "Property updated", "property": PropertyPrivate.model_validate(prop)}


@router.delete("/properties/{prop_id}")
async def delete_property(
    prop_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    """
    Soft delete, refused while the property still has pending or confirmed bookings.
    """
    prop = await _owned_property(db, prop_id, current_user)
    if await crud_bookings.count_active_bookings(db, prop.id):
        raise HTTPException(
            status_code=400,
            detail="Cannot delete property with active bookings",
        )
    await crud_properties.deactivate_property(db, prop)
    return {"message": "Property deleted"}


@router.put("/properties/{prop_id}/toggle")
async def toggle_property(
    prop_id: int,
    body: PropertyToggle,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_current_user),
):
    prop = await _owned_property(db, prop_id, current_user)
    prop = await crud_properties.update_property(db, prop, {"is_active": body.is_active})
    return {
        "message": f"Property {'activated' if prop.is_active else 'deactivated'}",
        "property": PropertyPrivate.model_validate(prop),
    }
