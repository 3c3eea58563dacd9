from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, getcontext
from typing import Iterable, Optional, Tuple

from laundry.utils.enums import DiscountType

getcontext().prec = 28

RUG_MAX_LENGTH_CM = 200
RUG_MAX_WIDTH_CM = 300

# (max area in m2, price); the last tier has no upper bound
RUG_PRICE_TIERS: Tuple[Tuple[Optional[Decimal], Decimal], ...] = (
    (Decimal("0.54"), Decimal("29.90")),
    (Decimal("1.2"), Decimal("39.90")),
    (Decimal("2.16"), Decimal("49.90")),
    (None, Decimal("59.90")),
)


def D(x) -> Decimal:
    return Decimal(str(x))


def round2(x: Decimal) -> Decimal:
    return x.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceLine:
    unit_price: Decimal
    quantity: int

    @property
    def total(self) -> Decimal:
        return round2(self.unit_price * self.quantity)


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal: Decimal
    discount: Decimal
    final_price: Decimal


def rug_area(length_cm, width_cm) -> Decimal:
    return D(length_cm) * D(width_cm) / D(10000)


def rug_price(length_cm, width_cm) -> Decimal:
    """Tier price for a rug; tier bounds are inclusive."""
    area = rug_area(length_cm, width_cm)
    for max_area, price in RUG_PRICE_TIERS:
        if max_area is None or area <= max_area:
            return price
    raise AssertionError("unreachable: last tier is unbounded")


def calculate_subtotal(lines: Iterable[PriceLine]) -> Decimal:
    return round2(sum((line.unit_price * line.quantity for line in lines), Decimal(0)))


def calculate_discount(subtotal: Decimal, discount_type, discount_value) -> Decimal:
    value = D(discount_value)
    if DiscountType(discount_type) == DiscountType.PERCENTAGE:
        return round2(subtotal * value / D(100))
    return min(round2(value), subtotal)


def compute_total(lines: Iterable[PriceLine], coupon=None) -> PriceBreakdown:
    """Subtotal, discount and final price; ``coupon`` needs discount_type and discount_value."""
    subtotal = calculate_subtotal(lines)
    discount = Decimal("0.00")
    if coupon is not None:
        discount = calculate_discount(subtotal, coupon.discount_type, coupon.discount_value)
    final_price = max(Decimal("0.00"), subtotal - discount)
    return PriceBreakdown(subtotal=subtotal, discount=discount, final_price=round2(final_price))
