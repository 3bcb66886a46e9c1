from datetime import date

import pytest

from services.errors import ValidationError
from services.pricing import quote_stay


def test_two_night_stay_adds_tax_and_service_fee():
    q = quote_stay(1000, date(2024, 6, 1), date(2024, 6, 3))

    assert q.nights == 2
    assert q.base_price == 2000
    assert q.tax == 240
    assert q.service_fee == 500
    assert q.total == 2740


def test_tax_rounds_half_up():
    # 25 * 0.5 = 12.5 -> 13 (banker's rounding would give 12)
    q = quote_stay(25, date(2024, 6, 1), date(2024, 6, 2), tax_rate=0.5, service_fee=0)
    assert q.tax == 13
    assert q.total == 38


@pytest.mark.parametrize("check_out", [date(2024, 6, 1), date(2024, 5, 30)])
def test_empty_or_inverted_range_is_rejected(check_out):
    with pytest.raises(ValidationError):
        quote_stay(1000, date(2024, 6, 1), check_out)
