# homeland/db/crud_reviews.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from homeland.db.models import Booking, HostResponse, Property, Review

RATING_FIELDS = (
    "overall_rating",
    "cleanliness",
    "accuracy",
    "communication",
    "location",
    "check_in",
    "value",
)

SORTS = {
    "newest": (Review.created_at.desc(), Review.id.desc()),
    "oldest": (Review.created_at.asc(), Review.id.asc()),
    "highest": (Review.overall_rating.desc(), Review.id.desc()),
    "lowest": (Review.overall_rating.asc(), Review.id.asc()),
}


def _review_options():
    return (
        selectinload(Review.author),
        selectinload(Review.recipient),
        selectinload(Review.property),
        selectinload(Review.host_response).selectinload(HostResponse.host),
    )


async def get_review(db: AsyncSession, review_id: int) -> Optional[Review]:
    res = await db.execute(
        select(Review)
        .options(*_review_options())
        .where(Review.id == review_id)
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def get_review_for_booking(db: AsyncSession, booking_id: str) -> Optional[Review]:
    res = await db.execute(select(Review).where(Review.booking_id == booking_id))
    return res.scalars().first()


async def get_reviewable_booking(
    db: AsyncSession,
    booking_id: str,
    user_id: int,
    email: str,
) -> Optional[Booking]:
    """
    A completed booking that belongs to the user, either through user_id or
    through the guest email an anonymous booking was made with.
    """
    stmt = (
        select(Booking)
        .options(selectinload(Booking.property).selectinload(Property.host))
        .where(
            Booking.id == booking_id,
            Booking.status == "completed",
            or_(Booking.user_id == user_id, Booking.guest_email == email),
        )
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def get_owned_booking(
    db: AsyncSession,
    booking_id: str,
    user_id: int,
    email: str,
) -> Optional[Booking]:
    stmt = (
        select(Booking)
        .options(
            selectinload(Booking.property).selectinload(Property.host),
            selectinload(Booking.reviews),
        )
        .where(
            Booking.id == booking_id,
            or_(Booking.user_id == user_id, Booking.guest_email == email),
        )
    )
    res = await db.execute(stmt)
    return res.scalars().first()


async def create_review(db: AsyncSession, **kwargs) -> Review:
    review = Review(**kwargs)
    db.add(review)
    await db.commit()
    return await get_review(db, review.id)


async def list_property_reviews(
    db: AsyncSession,
    property_id: int,
    *,
    page: int = 1,
    limit: int = 10,
    sort_by: str = "newest",
) -> Tuple[List[Review], int]:
    where = (Review.property_id == property_id, Review.is_visible.is_(True))
    total = int(
        (await db.execute(select(func.count(Review.id)).where(*where))).scalar_one()
    )
    stmt = (
        select(Review)
        .options(*_review_options())
        .where(*where)
        .order_by(*SORTS.get(sort_by, SORTS["newest"]))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    res = await db.execute(stmt)
    return list(res.scalars().all()), total


async def average_ratings(db: AsyncSession, *where) -> Dict[str, float]:
    """
    Average of each rating field over visible reviews matching `where`, 0 when none.
    """
    columns = [func.avg(getattr(Review, f)) for f in RATING_FIELDS]
    row = (await db.execute(select(*columns).where(Review.is_visible.is_(True), *where))).one()
    return {field: float(v or 0) for field, v in zip(RATING_FIELDS, row)}


async def rating_breakdown(db: AsyncSession, property_id: int) -> Dict[int, int]:
    """
    Count of visible reviews per whole-star bucket (floor of overall_rating), 1..5.
    """
    breakdown = {5: 0, 4: 0, 3: 0, 2: 0, 1: 0}
    res = await db.execute(
        select(Review.overall_rating).where(
            Review.property_id == property_id, Review.is_visible.is_(True)
        )
    )
    for (rating,) in res.all():
        bucket = min(5, max(1, int(rating)))
        breakdown[bucket] += 1
    return breakdown


async def list_user_reviews(db: AsyncSession, user_id: int, given: bool = True) -> List[Review]:
    column = Review.author_id if given else Review.recipient_id
    stmt = (
        select(Review)
        .options(*_review_options())
        .where(column == user_id, Review.is_visible.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def list_host_reviews(
    db: AsyncSession,
    host_id: int,
    *,
    since: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> List[Review]:
    stmt = (
        select(Review)
        .options(*_review_options())
        .where(Review.recipient_id == host_id, Review.is_visible.is_(True))
        .order_by(Review.created_at.desc(), Review.id.desc())
    )
    if since is not None:
        stmt = stmt.where(Review.created_at >= since)
    if limit:
        stmt = stmt.limit(limit)
    res = await db.execute(stmt)
    return list(res.scalars().all())


async def count_host_reviews(db: AsyncSession, host_id: int) -> int:
    stmt = select(func.count(Review.id)).where(
        Review.recipient_id == host_id, Review.is_visible.is_(True)
    )
    return int((await db.execute(stmt)).scalar_one())


async def create_host_response(
    db: AsyncSession, review_id: int, host_id: int, response: str
) -> HostResponse:
    host_response = HostResponse(review_id=review_id, host_id=host_id, response=response)
    db.add(host_response)
    await db.commit()
    res = await db.execute(
        select(HostResponse)
        .options(selectinload(HostResponse.host))
        .where(HostResponse.id == host_response.id)
        .execution_options(populate_existing=True)
    )
    return res.scalars().first()


async def update_review(db: AsyncSession, review: Review, data: Dict[str, Any]) -> Review:
    for k, v in data.items():
        setattr(review, k, v)
    db.add(review)
    await db.commit()
    return await get_review(db, review.id)
