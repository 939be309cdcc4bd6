# homeland/db/crud_bookings.py

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from homeland.db.models import ACTIVE_BOOKING_STATUSES, Booking, Property


def _with_property_and_host():
    return selectinload(Booking.property).selectinload(Property.host)


async def find_conflicting_bookings(
    db: AsyncSession,
    *,
    property_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """
    Pending/confirmed bookings of a property whose stay overlaps
    [check_in, check_out): existing.check_in < check_out and existing.check_out > check_in.
    """
    stmt = select(Booking).where(
        Booking.property_id == property_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    )
    if exclude_booking_id is not None:
        stmt = stmt.where(Booking.id != exclude_booking_id)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def count_active_bookings(db: AsyncSession, property_id: int) -> int:
    stmt = select(func.count(Booking.id)).where(
        Booking.property_id == property_id,
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
    )
    return int((await db.execute(stmt)).scalar_one())


def add_booking(
    db: AsyncSession,
    *,
    property_id: int,
    check_in: date,
    check_out: date,
    guests: int,
    guest_name: str,
    guest_email: str,
    guest_phone: str,
    total_price: Decimal,
    special_requests: Optional[str] = None,
    user_id: Optional[int] = None,
) -> Booking:
    """
    Stage a new pending booking on the session. The caller owns the commit,
    so the availability check and the insert share one transaction.
    """
    booking = Booking(
        property_id=property_id,
        user_id=user_id,
        check_in=check_in,
        check_out=check_out,
        guests=guests,
        guest_name=guest_name,
        guest_email=guest_email,
        guest_phone=guest_phone,
        special_requests=special_requests,
        total_price=total_price,
        status="pending",
    )
    db.add(booking)
    return booking


async def get_booking(db: AsyncSession, booking_id: str) -> Optional[Booking]:
    """
    Booking with its property and the property's host eagerly loaded.
    """
    stmt = (
        select(Booking)
        .options(_with_property_and_host())
        .where(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def list_bookings(
    db: AsyncSession,
    *,
    status: Optional[str] = None,
    property_id: Optional[int] = None,
    host_id: Optional[int] = None,
) -> List[Booking]:
    stmt = select(Booking).options(_with_property_and_host())
    if status:
        stmt = stmt.where(Booking.status == status)
    if property_id is not None:
        stmt = stmt.where(Booking.property_id == property_id)
    if host_id is not None:
        stmt = stmt.join(Property, Booking.property_id == Property.id).where(
            Property.host_id == host_id
        )
    stmt = stmt.order_by(Booking.created_at.desc())
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_bookings_for_property(
    db: AsyncSession,
    property_id: int,
    status: Optional[str] = None,
) -> List[Booking]:
    stmt = select(Booking).where(Booking.property_id == property_id)
    if status:
        stmt = stmt.where(Booking.status == status)
    stmt = stmt.order_by(Booking.check_in.asc())
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_bookings_for_host(
    db: AsyncSession,
    host_id: int,
    limit: Optional[int] = None,
) -> List[Booking]:
    """
    Most recent bookings for properties owned by host_id.
    """
    stmt = (
        select(Booking)
        .options(selectinload(Booking.property))
        .join(Property, Booking.property_id == Property.id)
        .where(Property.host_id == host_id)
        .order_by(Booking.created_at.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_recent_bookings(db: AsyncSession, limit: int = 20) -> List[Booking]:
    stmt = (
        select(Booking)
        .options(_with_property_and_host())
        .order_by(Booking.created_at.desc())
        .limit(limit)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_bookings_checking_in(db: AsyncSession, day: date) -> List[Booking]:
    """
    Confirmed bookings whose stay starts on `day` (check-in reminders).
    """
    stmt = (
        select(Booking)
        .options(_with_property_and_host())
        .where(Booking.check_in == day, Booking.status == "confirmed")
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def sum_completed_revenue(
    db: AsyncSession,
    *,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    host_id: Optional[int] = None,
) -> Decimal:
    stmt = select(func.coalesce(func.sum(Booking.total_price), 0)).where(
        Booking.status == "completed"
    )
    if since is not None:
        stmt = stmt.where(Booking.created_at >= since)
    if until is not None:
        stmt = stmt.where(Booking.created_at < until)
    if host_id is not None:
        stmt = stmt.join(Property, Booking.property_id == Property.id).where(
            Property.host_id == host_id
        )
    total = (await db.execute(stmt)).scalar_one()
    return Decimal(str(total))


async def count_bookings(
    db: AsyncSession,
    *,
    statuses: Optional[tuple] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    host_id: Optional[int] = None,
) -> int:
    stmt = select(func.count(Booking.id))
    if statuses:
        stmt = stmt.where(Booking.status.in_(statuses))
    if since is not None:
        stmt = stmt.where(Booking.created_at >= since)
    if until is not None:
        stmt = stmt.where(Booking.created_at < until)
    if host_id is not None:
        stmt = stmt.join(Property, Booking.property_id == Property.id).where(
            Property.host_id == host_id
        )
    return int((await db.execute(stmt)).scalar_one())
