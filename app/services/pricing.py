import math
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP

from app.models.coupon import Coupon, DiscountType
from app.models.extra import Extra, ExtraPriceType
from app.models.vehicle import Vehicle
from app.utils.exceptions import InvalidCouponException

CENTS = Decimal("0.01")
DAYS_PER_WEEK  = 7
DAYS_PER_MONTH = 30


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENTS, rounding=ROUND_HALF_UP)


def rental_days(pickup: datetime, dropoff: datetime) -> int:
    """Started 24h periods between pickup and dropoff, at least one."""
    return max(1, math.ceil((dropoff - pickup).total_seconds() / 86400))


def base_price(vehicle: Vehicle, days: int) -> Decimal:
    daily = _money(vehicle.base_price_daily)
    if days >= DAYS_PER_MONTH and vehicle.base_price_monthly:
        months, rest = divmod(days, DAYS_PER_MONTH)
        return _money(months * _money(vehicle.base_price_monthly) + rest * daily)
    if days >= DAYS_PER_WEEK and vehicle.base_price_weekly:
        weeks, rest = divmod(days, DAYS_PER_WEEK)
        return _money(weeks * _money(vehicle.base_price_weekly) + rest * daily)
    return _money(days * daily)


def extra_line_price(extra: Extra, quantity: int, days: int) -> Decimal:
    price = _money(extra.price) * quantity
    if extra.price_type == ExtraPriceType.PER_DAY:
        price *= days
    return _money(price)


def check_coupon(coupon: Coupon, on_date: date) -> None:
    if not coupon.is_active:
        raise InvalidCouponException("Coupon is no longer active")
    if coupon.valid_from and on_date < coupon.valid_from:
        raise InvalidCouponException("Coupon is not valid yet")
    if coupon.valid_until and on_date > coupon.valid_until:
        raise InvalidCouponException("Coupon has expired")
    if coupon.usage_limit is not None and coupon.usage_count >= coupon.usage_limit:
        raise InvalidCouponException("Coupon usage limit reached")


def coupon_discount(coupon: Coupon, subtotal: Decimal) -> Decimal:
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = subtotal * _money(coupon.discount_value) / 100
    else:
        discount = _money(coupon.discount_value)
    return _money(min(discount, subtotal))


@dataclass
class Quote:
    days:            int
    base_price:      Decimal
    extras_price:    Decimal = Decimal("0.00")
    discount_amount: Decimal = Decimal("0.00")
    lines:           list[tuple[Extra, int, Decimal]] = field(default_factory=list)

    @property
    def total_price(self) -> Decimal:
        return _money(self.base_price + self.extras_price - self.discount_amount)


def quote(vehicle: Vehicle, pickup: datetime, dropoff: datetime,
          extras: list[tuple[Extra, int]], coupon: Coupon | None = None) -> Quote:
    days = rental_days(pickup, dropoff)
    q = Quote(days=days, base_price=base_price(vehicle, days))
    for extra, quantity in extras:
        line = extra_line_price(extra, quantity, days)
        q.lines.append((extra, quantity, line))
        q.extras_price = _money(q.extras_price + line)
    if coupon is not None:
        check_coupon(coupon, pickup.date())
        q.discount_amount = coupon_discount(coupon, q.base_price + q.extras_price)
    return q
