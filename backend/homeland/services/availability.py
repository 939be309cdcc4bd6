# homeland/services/availability.py
from datetime import date
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from homeland.db import crud_bookings


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """
    Half-open interval test: [a_start, a_end) and [b_start, b_end) overlap
    iff a_start < b_end and b_start < a_end. A stay ending on day D and one
    starting on day D do not overlap.
    """
    return a_start < b_end and b_start < a_end


async def is_available(
    db: AsyncSession,
    property_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[str] = None,
) -> bool:
    """
    True when no pending/confirmed booking of the property overlaps
    [check_in, check_out).
    """
    conflicts = await crud_bookings.find_conflicting_bookings(
        db,
        property_id=property_id,
        check_in=check_in,
        check_out=check_out,
        exclude_booking_id=exclude_booking_id,
    )
    return not any(
        intervals_overlap(b.check_in, b.check_out, check_in, check_out) for b in conflicts
    )
