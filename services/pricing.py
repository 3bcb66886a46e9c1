from dataclasses import asdict, dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from services.errors import ValidationError


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    base_price: int
    tax: int
    service_fee: int
    total: int

    def to_dict(self) -> dict:
        return asdict(self)


def quote_stay(price_per_night: int, check_in: date, check_out: date, tax_rate=0.12, service_fee: int = 500) -> PriceQuote:
    """Price a stay on the server; tax is rounded half up to whole units."""
    nights = (check_out - check_in).days
    if nights <= 0:
        raise ValidationError("Invalid date range")

    base_price = nights * int(price_per_night)
    tax = int((Decimal(base_price) * Decimal(str(tax_rate))).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    fee = int(service_fee)

    return PriceQuote(
        nights=nights,
        base_price=base_price,
        tax=tax,
        service_fee=fee,
        total=base_price + tax + fee,
    )
