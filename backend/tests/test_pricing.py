from datetime import date, datetime
from decimal import Decimal

import pytest

from homeland.services.pricing import calculate_total, nights_between


def test_three_nights_at_100_is_300():
    nights, total = calculate_total(date(2025, 6, 1), date(2025, 6, 4), Decimal("100"))
    assert nights == 3
    assert total == Decimal("300.00")


def test_partial_days_round_up_to_a_whole_night():
    check_in = datetime(2025, 6, 1, 14, 0)
    check_out = datetime(2025, 6, 3, 11, 0)
    assert nights_between(check_in, check_out) == 2

    check_out = datetime(2025, 6, 3, 15, 0)
    assert nights_between(check_in, check_out) == 3


def test_total_is_quantized_to_cents():
    _, total = calculate_total(date(2025, 6, 1), date(2025, 6, 3), 99.995)
    assert total == Decimal("199.99")


@pytest.mark.parametrize(
    "check_in, check_out",
    [
        (date(2025, 6, 4), date(2025, 6, 4)),
        (date(2025, 6, 4), date(2025, 6, 1)),
    ],
)
def test_empty_or_inverted_range_is_rejected(check_in, check_out):
    with pytest.raises(ValueError):
        calculate_total(check_in, check_out, 100)


def test_mixing_date_and_datetime_is_rejected():
    with pytest.raises(TypeError):
        nights_between(date(2025, 6, 1), datetime(2025, 6, 3))
