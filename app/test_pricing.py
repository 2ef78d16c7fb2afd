import unittest
from datetime import date
from decimal import Decimal

import app.testing  # noqa: F401
from app.models.coupon import Coupon, DiscountType
from app.models.extra import Extra, ExtraPriceType
from app.models.vehicle import Vehicle
from app.services import pricing
from app.testing import utc
from app.utils.exceptions import InvalidCouponException


def _vehicle(daily="40.00", weekly=None, monthly=None) -> Vehicle:
    return Vehicle(
        make="Fiat", model="Panda", category="mini",
        base_price_daily=Decimal(daily),
        base_price_weekly=Decimal(weekly) if weekly else None,
        base_price_monthly=Decimal(monthly) if monthly else None,
    )


class TestRentalDays(unittest.TestCase):

    def test_started_days_round_up(self):
        self.assertEqual(pricing.rental_days(utc(2031, 5, 1, 10), utc(2031, 5, 3, 10)), 2)
        self.assertEqual(pricing.rental_days(utc(2031, 5, 1, 10), utc(2031, 5, 3, 11)), 3)

    def test_minimum_one_day(self):
        self.assertEqual(pricing.rental_days(utc(2031, 5, 1, 10), utc(2031, 5, 1, 12)), 1)


class TestBasePrice(unittest.TestCase):

    def test_daily_rate(self):
        self.assertEqual(pricing.base_price(_vehicle(), 3), Decimal("120.00"))

    def test_weekly_rate_with_remainder(self):
        v = _vehicle(weekly="250.00")
        self.assertEqual(pricing.base_price(v, 9), Decimal("330.00"))

    def test_monthly_rate_wins_from_thirty_days(self):
        v = _vehicle(weekly="250.00", monthly="900.00")
        self.assertEqual(pricing.base_price(v, 31), Decimal("940.00"))
        self.assertEqual(pricing.base_price(v, 29), Decimal("1040.00"))

    def test_weekly_rate_ignored_when_missing(self):
        self.assertEqual(pricing.base_price(_vehicle(), 7), Decimal("280.00"))


class TestExtrasAndCoupons(unittest.TestCase):

    def test_extra_line_price(self):
        per_day = Extra(name="GPS", price=Decimal("4.50"), price_type=ExtraPriceType.PER_DAY)
        per_booking = Extra(name="Cleaning", price=Decimal("15.00"), price_type=ExtraPriceType.PER_BOOKING)
        self.assertEqual(pricing.extra_line_price(per_day, 2, 3), Decimal("27.00"))
        self.assertEqual(pricing.extra_line_price(per_booking, 1, 3), Decimal("15.00"))

    def test_fixed_discount_capped_at_subtotal(self):
        coupon = Coupon(code="BIG", discount_type=DiscountType.FIXED, discount_value=Decimal("500"))
        self.assertEqual(pricing.coupon_discount(coupon, Decimal("120.00")), Decimal("120.00"))

    def test_percentage_discount_rounds_to_cents(self):
        coupon = Coupon(code="P15", discount_type=DiscountType.PERCENTAGE, discount_value=Decimal("15"))
        self.assertEqual(pricing.coupon_discount(coupon, Decimal("99.99")), Decimal("15.00"))

    def test_coupon_validity_window(self):
        coupon = Coupon(code="JUNE", discount_type=DiscountType.FIXED, discount_value=Decimal("10"),
                        valid_from=date(2031, 6, 1), valid_until=date(2031, 6, 30),
                        usage_limit=None, usage_count=0, is_active=True)
        pricing.check_coupon(coupon, date(2031, 6, 15))
        with self.assertRaises(InvalidCouponException):
            pricing.check_coupon(coupon, date(2031, 5, 31))
        with self.assertRaises(InvalidCouponException):
            pricing.check_coupon(coupon, date(2031, 7, 1))

    def test_inactive_coupon(self):
        coupon = Coupon(code="OFF", discount_type=DiscountType.FIXED, discount_value=Decimal("10"),
                        usage_limit=None, usage_count=0, is_active=False)
        with self.assertRaises(InvalidCouponException):
            pricing.check_coupon(coupon, date(2031, 6, 15))

    def test_quote_totals(self):
        gps = Extra(name="GPS", price=Decimal("5.00"), price_type=ExtraPriceType.PER_DAY)
        coupon = Coupon(code="FIX20", discount_type=DiscountType.FIXED, discount_value=Decimal("20"),
                        usage_limit=None, usage_count=0, is_active=True)

        q = pricing.quote(_vehicle(), utc(2031, 6, 1, 9), utc(2031, 6, 3, 9), [(gps, 1)], coupon)

        self.assertEqual(q.days, 2)
        self.assertEqual(q.base_price, Decimal("80.00"))
        self.assertEqual(q.extras_price, Decimal("10.00"))
        self.assertEqual(q.discount_amount, Decimal("20.00"))
        self.assertEqual(q.total_price, Decimal("70.00"))
        self.assertEqual(len(q.lines), 1)


if __name__ == '__main__':
    unittest.main()
