# homeland/services/pricing.py
import math
from datetime import date, datetime
from decimal import Decimal
from typing import Union

DateLike = Union[date, datetime]

SECONDS_PER_DAY = 24 * 60 * 60


def nights_between(check_in: DateLike, check_out: DateLike) -> int:
    """
    Number of nights in [check_in, check_out), rounded up to whole days.

    Both ends must be of the same kind: two dates or two datetimes.
    """
    if isinstance(check_in, datetime) != isinstance(check_out, datetime):
        raise TypeError("check_in and check_out must both be dates or both datetimes")
    delta = check_out - check_in
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def calculate_total(
    check_in: DateLike,
    check_out: DateLike,
    price_per_night: Union[Decimal, float, int],
) -> tuple[int, Decimal]:
    """
    Return (nights, total) for a stay.

    Raises ValueError for an empty or inverted range.
    """
    nights = nights_between(check_in, check_out)
    if nights < 1:
        raise ValueError("A stay must be at least one night")
    total = Decimal(str(price_per_night)) * nights
    return nights, total.quantize(Decimal("0.01"))
