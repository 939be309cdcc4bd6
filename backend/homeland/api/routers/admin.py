import logging
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.api.dependencies import get_optional_user, require_role
from homeland.api.routers.auth import issue_tokens
from homeland.core.config import get_settings
from homeland.core.security import verify_password
from homeland.db.session import get_db
from homeland.db.models import ROLES
from homeland.db import crud_bookings, crud_properties, crud_users
from homeland.schemas.auth import AdminCreate
from homeland.schemas.booking import BookingListItem, BookingOut, BookingStatusUpdate
from homeland.schemas.property import PropertyPrivate, PropertyReject
from homeland.schemas.user import HostSummary, UserBase, UserRoleUpdate
from homeland.services import booking_service
from homeland.services.notifications import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


class NotificationTestRequest(BaseModel):
    email: EmailStr
    phone: Optional[str] = None


def _property_url(prop_id: int) -> str:
    return f"{get_settings().CLIENT_URL}/property/{prop_id}"


@router.post("/login")
async def admin_login(
    form_data: Dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    email = form_data.get("email")
    password = form_data.get("password")
    if not email or not password:
        raise HTTPException(status_code=400, detail="Missing email or password")

    user = await crud_users.get_user_by_email(db, str(email))
    if not user or not verify_password(str(password), user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")

    logger.info("Admin %s logged in", user.id)
    return await issue_tokens(db, user)


@router.post("/create-admin", status_code=status.HTTP_201_CREATED)
async def create_admin(
    body: AdminCreate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(get_optional_user),
):
    """
    Bootstrap: open while no admin exists, admin-only afterwards.
    """
    if await crud_users.count_users(db, role="admin"):
        if current_user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        if current_user.role != "admin":
            raise HTTPException(status_code=403, detail="Insufficient permissions")

    if len(body.password) < get_settings().MIN_PASSWORD_LENGTH:
        raise HTTPException(status_code=400, detail="Password is too short")

    existing = await crud_users.get_user_by_email(db, body.email)
    if existing and existing.role == "admin":
        raise HTTPException(status_code=400, detail="Admin with this email already exists")

    if existing:
        user = await crud_users.update_user_role(db, existing.id, "admin")
    else:
        user = await crud_users.create_user(
            db,
            first_name=body.first_name,
            last_name=body.last_name,
            email=body.email,
            password=body.password,
            phone=body.phone,
            role="admin",
        )
    logger.info("Admin account %s created", user.id)
    return {"message": "Admin created successfully", "admin": UserBase.model_validate(user)}


@router.get("/stats")
async def admin_stats(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    now = datetime.utcnow()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    month_start = today.replace(day=1)
    return {
        "stats": {
            "total_hosts": await crud_users.count_users(db, role="host"),
            "total_properties": await crud_properties.count_properties(db),
            "total_bookings": await crud_bookings.count_bookings(db),
            "total_revenue": float(await crud_bookings.sum_completed_revenue(db)),
            "pending_properties": await crud_properties.count_properties(
                db, approval_status="pending"
            ),
            "active_properties": await crud_properties.count_properties(
                db, approval_status="approved", active=True
            ),
            "rejected_properties": await crud_properties.count_properties(
                db, approval_status="rejected"
            ),
            "today_bookings": await crud_bookings.count_bookings(db, since=today),
            "this_month_revenue": float(
                await crud_bookings.sum_completed_revenue(db, since=month_start)
            ),
        }
    }


@router.get("/properties/pending")
async def admin_pending_properties(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    """
    Review queue, oldest first.
    """
    items = await crud_properties.list_pending_properties_with_uploader(db)
    return {"properties": [PropertyPrivate.model_validate(p) for p in items]}


@router.get("/properties")
async def admin_properties(
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    """
    Full property list for admin (any approval_status).
    """
    items = await crud_properties.list_all_properties_with_uploader(db, status_filter)
    return {"properties": [PropertyPrivate.model_validate(p) for p in items]}


@router.put("/properties/{prop_id}/approve")
async def admin_approve_property(
    prop_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    """
    Approve listing so it becomes visible on public pages.
    """
    prop = await crud_properties.approve_property(db, prop_id, current_user.id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    logger.info("Property %s approved by admin %s", prop.id, current_user.id)
    await notification_service.send_property_review_result(prop, _property_url(prop.id))
    return {"message": "Property approved", "property": PropertyPrivate.model_validate(prop)}


@router.put("/properties/{prop_id}/reject")
async def admin_reject_property(
    prop_id: int,
    body: PropertyReject,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    """
    Reject listing; it will not appear on public pages.
    """
    reason = (body.rejection_reason or "").strip()
    if not reason:
        raise HTTPException(status_code=400, detail="Rejection reason is required")

    prop = await crud_properties.reject_property(db, prop_id, reason, current_user.id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    logger.info("Property %s rejected by admin %s", prop.id, current_user.id)
    await notification_service.send_property_review_result(prop, _property_url(prop.id))
    return {"message": "Property rejected", "property": PropertyPrivate.model_validate(prop)}


@router.delete("/properties/{prop_id}")
async def admin_delete_property(
    prop_id: int,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    prop = await crud_properties.get_property(db, prop_id)
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    if await crud_bookings.count_active_bookings(db, prop.id):
        raise HTTPException(status_code=400, detail="Cannot delete property with active bookings")
    await crud_properties.deactivate_property(db, prop)
    logger.info("Property %s deleted by admin %s", prop.id, current_user.id)
    return {"message": "Property deleted"}


@router.get("/bookings")
async def admin_bookings(
    limit: int = Query(20, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    bookings = await crud_bookings.list_recent_bookings(db, limit)
    return {"bookings": [BookingListItem.model_validate(b) for b in bookings]}


@router.put("/bookings/{booking_id}/status")
async def admin_booking_status(
    booking_id: str,
    body: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    booking = await booking_service.admin_set_status(db, booking_id, body.status)
    return {"message": f"Booking {body.status}", "booking": BookingOut.model_validate(booking)}


@router.get("/hosts")
async def admin_hosts(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    hosts = await crud_users.list_users_by_role(db, "host")
    counts = await crud_users.host_counts(db, [h.id for h in hosts])
    return {
        "hosts": [
            HostSummary.model_validate(h).model_copy(
                update={
                    "property_count": counts[h.id]["properties"],
                    "booking_count": counts[h.id]["bookings"],
                }
            )
            for h in hosts
        ]
    }


@router.get("/users")
async def admin_users(
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    users = await crud_users.list_users(db)
    return {"users": [UserBase.model_validate(u) for u in users]}


@router.put("/users/{user_id}/role")
async def set_role(
    user_id: int,
    body: UserRoleUpdate,
    db: AsyncSession = Depends(get_db),
    current_user=Depends(require_role("admin")),
):
    if body.role not in ROLES:
        raise HTTPException(status_code=400, detail="Invalid role")
    try:
        user = await crud_users.update_user_role(db, user_id, body.role)
    except ValueError:
        raise HTTPException(status_code=404, detail="User not found")
    return UserBase.model_validate(user)


@router.post("/test-notifications")
async def test_notifications(
    body: NotificationTestRequest,
    current_user=Depends(require_role("admin")),
):
    results = await notification_service.test_notifications(body.email, body.phone)
    return {
        "message": "Test notifications sent",
        "results": {
            "email": "Success" if results["email"] else "Failed",
            "sms": ("Success" if results["sms"] else "Failed")
            if body.phone
            else "No phone provided",
        },
    }


@router.get("/notifications/status")
async def notifications_status(current_user=Depends(require_role("admin"))):
    return notification_service.services_status()
