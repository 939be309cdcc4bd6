# homeland/db/crud_properties.py
from datetime import datetime
from decimal import Decimal
from typing import Tuple, List, Dict, Any, Optional

from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from homeland.db.models import Booking, Category, Property, Review


def _public_clauses() -> list:
    return [
        Property.is_active.is_(True),
        Property.approval_status == "approved",
    ]


async def list_properties(
    db: AsyncSession,
    filters: dict = None,
    page: int = 1,
    per_page: int = 20,
) -> Tuple[List[Property], int]:
    """
    Public listing: ALWAYS only approved & active properties.
    """
    filters = filters or {}
    stmt = select(Property).options(
        selectinload(Property.host),
        selectinload(Property.category),
    )

    where_clauses = _public_clauses()

    if filters.get("city"):
        where_clauses.append(Property.city.ilike(f"%{filters['city']}%"))
    if filters.get("country"):
        where_clauses.append(Property.country.ilike(f"%{filters['country']}%"))
    if filters.get("min_price") is not None:
        where_clauses.append(Property.price_per_night >= float(filters["min_price"]))
    if filters.get("max_price") is not None:
        where_clauses.append(Property.price_per_night <= float(filters["max_price"]))
    if filters.get("guests") is not None:
        where_clauses.append(Property.max_guests >= int(filters["guests"]))
    if filters.get("category"):
        stmt = stmt.join(Category, Property.category_id == Category.id)
        where_clauses.append(Category.name.ilike(f"%{filters['category']}%"))

    stmt = stmt.where(and_(*where_clauses))

    # count total
    count_stmt = select(func.count()).select_from(stmt.subquery())
    total_res = await db.execute(count_stmt)
    total = total_res.scalar_one()

    # default: recent first
    stmt = stmt.order_by(Property.created_at.desc(), Property.id.desc())
    offset = (page - 1) * per_page
    stmt = stmt.offset(offset).limit(per_page)
    res = await db.execute(stmt)
    items = list(res.scalars().all())
    return items, int(total)


async def get_property(db: AsyncSession, prop_id: int) -> Property | None:
    res = await db.execute(
        select(Property)
        .options(selectinload(Property.host), selectinload(Property.category))
        .where(Property.id == prop_id)
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def get_public_property(db: AsyncSession, prop_id: int) -> Property | None:
    """
    Approved & active property with host, category and visible reviews loaded.
    """
    stmt = (
        select(Property)
        .options(
            selectinload(Property.host),
            selectinload(Property.category),
            selectinload(Property.reviews).selectinload(Review.author),
        )
        .where(Property.id == prop_id, *_public_clauses())
        .execution_options(populate_existing=True)
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def lock_property(db: AsyncSession, prop_id: int) -> Property | None:
    """
    Load a property with SELECT ... FOR UPDATE so concurrent bookings of the
    same property queue behind each other until the current transaction ends.
    SQLite drops the row lock; see db.session.use_immediate_transactions.
    """
    res = await db.execute(
        select(Property)
        .options(selectinload(Property.host))
        .where(Property.id == prop_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def list_properties_for_host(
    db: AsyncSession,
    host_id: int,
    active_only: bool = False,
) -> List[Property]:
    """
    Host dashboard: ALL their properties, regardless of approval_status.
    """
    stmt = (
        select(Property)
        .options(selectinload(Property.host), selectinload(Property.category))
        .where(Property.host_id == host_id)
    )
    if active_only:
        stmt = stmt.where(Property.is_active.is_(True))
    res = await db.execute(stmt.order_by(Property.created_at.desc(), Property.id.desc()))
    return list(res.scalars().all())


async def create_property(db: AsyncSession, **kwargs) -> Property:
    """
    Generic create. Enforce approval_status default if not supplied.
    """
    if not kwargs.get("approval_status"):
        kwargs["approval_status"] = "pending"
    prop = Property(**kwargs)
    db.add(prop)
    await db.commit()
    return await get_property(db, prop.id)


async def update_property(db: AsyncSession, prop: Property, data: dict) -> Property:
    for k, v in data.items():
        if v is not None:
            setattr(prop, k, v)
    db.add(prop)
    await db.commit()
    await db.refresh(prop)
    return await get_property(db, prop.id)


async def deactivate_property(db: AsyncSession, prop: Property) -> Property:
    """
    Soft delete: hide the listing but keep it (and its bookings) on record.
    """
    prop.is_active = False
    db.add(prop)
    await db.commit()
    return prop


# --- ADMIN: properties with uploader (host) ---

async def list_all_properties_with_uploader(
    db: AsyncSession,
    approval_status: Optional[str] = None,
) -> List[Property]:
    """
    Admin full list: ALL properties (optionally one status), with host loaded.
    """
    stmt = select(Property).options(
        selectinload(Property.host),   # load uploader/host
        selectinload(Property.category),
    )
    if approval_status:
        stmt = stmt.where(Property.approval_status == approval_status)
    res = await db.execute(stmt.order_by(Property.created_at.desc(), Property.id.desc()))
    return list(res.scalars().all())


async def list_pending_properties_with_uploader(db: AsyncSession) -> List[Property]:
    """
    Admin review queue: only PENDING properties, oldest first.
    """
    stmt = (
        select(Property)
        .options(selectinload(Property.host), selectinload(Property.category))
        .where(Property.approval_status == "pending")
        .order_by(Property.created_at.asc(), Property.id.asc())
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def approve_property(
    db: AsyncSession,
    property_id: int,
    admin_id: int | None = None,
) -> Property | None:
    """
    Set approval_status='approved' and stamp approver + timestamp.
    """
    prop = await get_property(db, property_id)
    if not prop:
        return None
    prop.approval_status = "approved"
    prop.rejection_reason = None
    prop.approved_at = datetime.utcnow()
    prop.approved_by_admin_id = admin_id
    db.add(prop)
    await db.commit()
    return await get_property(db, property_id)


async def reject_property(
    db: AsyncSession,
    property_id: int,
    reason: str,
    admin_id: int | None = None,
) -> Property | None:
    """
    Set approval_status='rejected'. approved_at cleared; approver stored for history.
    """
    prop = await get_property(db, property_id)
    if not prop:
        return None
    prop.approval_status = "rejected"
    prop.rejection_reason = reason
    prop.approved_at = None
    prop.approved_by_admin_id = admin_id
    db.add(prop)
    await db.commit()
    return await get_property(db, property_id)


# --- Counters ---

async def count_properties(
    db: AsyncSession,
    *,
    approval_status: Optional[str] = None,
    active: Optional[bool] = None,
    host_id: Optional[int] = None,
) -> int:
    stmt = select(func.count(Property.id))
    if approval_status:
        stmt = stmt.where(Property.approval_status == approval_status)
    if active is not None:
        stmt = stmt.where(Property.is_active.is_(active))
    if host_id is not None:
        stmt = stmt.where(Property.host_id == host_id)
    return int((await db.execute(stmt)).scalar_one())


async def booking_stats_by_property(
    db: AsyncSession,
    host_id: int,
) -> Dict[int, Dict[str, Any]]:
    """
    {property_id: {"total_bookings", "total_earnings"}} for a host.
    Bookings count confirmed + completed; earnings count completed only.
    """
    stmt = (
        select(Booking.property_id, Booking.status, func.count(Booking.id), func.sum(Booking.total_price))
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .where(Booking.status.in_(("confirmed", "completed")))
        .group_by(Booking.property_id, Booking.status)
    )
    stats: Dict[int, Dict[str, Any]] = {}
    for property_id, status, count, total in (await db.execute(stmt)).all():
        entry = stats.setdefault(
            property_id, {"total_bookings": 0, "total_earnings": Decimal("0")}
        )
        entry["total_bookings"] += int(count)
        if status == "completed":
            entry["total_earnings"] += Decimal(str(total or 0))
    return stats


async def counts_by_property(db: AsyncSession, host_id: int) -> Dict[int, Dict[str, int]]:
    """
    {property_id: {"reviews", "bookings"}} for a host's properties.
    """
    counts: Dict[int, Dict[str, int]] = {}
    review_stmt = (
        select(Review.property_id, func.count(Review.id))
        .join(Property, Review.property_id == Property.id)
        .where(Property.host_id == host_id)
        .group_by(Review.property_id)
    )
    for property_id, n in (await db.execute(review_stmt)).all():
        counts.setdefault(property_id, {"reviews": 0, "bookings": 0})["reviews"] = int(n)

    booking_stmt = (
        select(Booking.property_id, func.count(Booking.id))
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .group_by(Booking.property_id)
    )
    for property_id, n in (await db.execute(booking_stmt)).all():
        counts.setdefault(property_id, {"reviews": 0, "bookings": 0})["bookings"] = int(n)
    return counts
