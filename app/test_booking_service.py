import unittest
from datetime import date
from itertools import combinations
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError

from app.testing import DatabaseTestCase, TestingSessionLocal, utc
from app.models.availability_note import NoteType
from app.models.booking import Booking, BookingStatus, ACTIVE_BOOKING_STATUSES
from app.models.customer import Customer
from app.models.audit_log import AuditLog
from app.models.extra import ExtraPriceType
from app.models.vehicle_subunit import SubunitStatus
from app.schemas.booking import BookingStatusUpdateRequest, BookingExtraItem
from app.services.availability_service import availability_service, overlaps
from app.services.booking_service import booking_service, can_transition, ALLOWED_TRANSITIONS
from app.utils.dates import to_utc
from app.utils.exceptions import (
    BookingConflictException, CustomerBlacklistedException, InvalidCouponException,
    InvalidStatusTransitionException, NotFoundException, ValidationException,
)


class TestTransitionTable(unittest.TestCase):

    def test_forward_moves(self):
        self.assertTrue(can_transition(BookingStatus.PENDING, BookingStatus.WAITING_PAYMENT))
        self.assertTrue(can_transition(BookingStatus.WAITING_PAYMENT, BookingStatus.CONFIRMED))
        self.assertTrue(can_transition(BookingStatus.CONFIRMED, BookingStatus.COMPLETED))

    def test_cancel_from_any_active_status(self):
        for status in ACTIVE_BOOKING_STATUSES:
            self.assertTrue(can_transition(status, BookingStatus.CANCELLED))

    def test_terminal_statuses(self):
        for status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
            self.assertEqual(ALLOWED_TRANSITIONS[status], set())
        self.assertFalse(can_transition(BookingStatus.COMPLETED, BookingStatus.PENDING))

    def test_no_transition_reenters_active_set(self):
        for current in (BookingStatus.CANCELLED, BookingStatus.COMPLETED):
            for requested in ACTIVE_BOOKING_STATUSES:
                self.assertFalse(can_transition(current, requested))


class TestCommitProtocol(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.location = self.make_location()
        self.vehicle = self.make_vehicle(subunits=2)
        self.s1, self.s2 = self.subunits(self.vehicle)

    def _active_bookings(self) -> list[Booking]:
        self.db.expire_all()
        return self.db.query(Booking).filter(Booking.status.in_(ACTIVE_BOOKING_STATUSES)).all()

    def test_commit_takes_the_free_subunit(self):
        self.make_booking(self.s1, utc(2031, 6, 10), utc(2031, 6, 15))

        data = booking_service.create_booking(
            self.db, self.booking_request(self.vehicle, utc(2031, 6, 12), utc(2031, 6, 13)))

        self.assertEqual(data["vehicle_subunit"]["id"], self.s2.id)
        self.assertEqual(data["status"], "pending")
        self.assertTrue(data["booking_number"].startswith("DB-"))

    def test_lowest_free_subunit_is_chosen(self):
        data = booking_service.create_booking(
            self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2)))
        self.assertEqual(data["vehicle_subunit"]["id"], self.s1.id)

    def test_k_commits_succeed_and_the_next_conflicts(self):
        window = (utc(2031, 6, 20), utc(2031, 6, 22))
        before = availability_service.compute(self.db, self.vehicle.id, *window)
        self.assertEqual(before.available_count, 2)

        first  = booking_service.create_booking(self.db, self.booking_request(self.vehicle, *window, email="a@example.com"))
        second = booking_service.create_booking(self.db, self.booking_request(self.vehicle, *window, email="b@example.com"))
        self.assertNotEqual(first["vehicle_subunit"]["id"], second["vehicle_subunit"]["id"])

        with self.assertRaises(BookingConflictException):
            booking_service.create_booking(self.db, self.booking_request(self.vehicle, *window, email="c@example.com"))
        self.assertEqual(len(self._active_bookings()), 2)

    def test_race_for_the_last_subunit(self):
        self.s1.status = SubunitStatus.MAINTENANCE
        self.db.commit()
        window = (utc(2031, 6, 20), utc(2031, 6, 22))

        winner = booking_service.create_booking(self.db, self.booking_request(self.vehicle, *window))
        self.assertEqual(winner["vehicle_subunit"]["id"], self.s2.id)

        with self.assertRaises(BookingConflictException) as ctx:
            booking_service.create_booking(self.db, self.booking_request(self.vehicle, *window, email="late@example.com"))
        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, "BOOKING_CONFLICT")

    def test_conflict_leaves_no_rows_behind(self):
        self.make_booking(self.s1, utc(2031, 6, 1), utc(2031, 6, 30))
        self.make_booking(self.s2, utc(2031, 6, 1), utc(2031, 6, 30))
        bookings_before = self.db.query(Booking).count()

        with self.assertRaises(BookingConflictException):
            booking_service.create_booking(
                self.db, self.booking_request(self.vehicle, utc(2031, 6, 5), utc(2031, 6, 6), email="new@example.com"))

        self.db.expire_all()
        self.assertEqual(self.db.query(Booking).count(), bookings_before)
        self.assertIsNone(self.db.query(Customer).filter(Customer.email == "new@example.com").first())

    def test_overlap_constraint_violation_is_a_conflict(self):
        violation = IntegrityError(
            "INSERT INTO bookings", {},
            Exception('conflicting key value violates exclusion constraint "ex_bookings_subunit_no_overlap"'),
        )
        request = self.booking_request(self.vehicle, utc(2031, 6, 5), utc(2031, 6, 6), email="new@example.com")

        with patch.object(self.db, "commit", side_effect=violation):
            with self.assertRaises(BookingConflictException) as ctx:
                booking_service.create_booking(self.db, request)

        self.assertEqual(ctx.exception.status_code, 409)
        self.assertEqual(ctx.exception.error_code, "BOOKING_CONFLICT")
        self.db.expire_all()
        self.assertEqual(self.db.query(Booking).count(), 0)
        self.assertIsNone(self.db.query(Customer).filter(Customer.email == "new@example.com").first())

    def test_other_integrity_errors_propagate(self):
        violation = IntegrityError(
            "INSERT INTO bookings", {},
            Exception('duplicate key value violates unique constraint "bookings_booking_number_key"'),
        )
        request = self.booking_request(self.vehicle, utc(2031, 6, 5), utc(2031, 6, 6))

        with patch.object(self.db, "commit", side_effect=violation):
            with self.assertRaises(IntegrityError):
                booking_service.create_booking(self.db, request)

        self.db.expire_all()
        self.assertEqual(self.db.query(Booking).count(), 0)

    def test_no_two_active_bookings_overlap_on_a_subunit(self):
        windows = [
            (utc(2031, 6, 1), utc(2031, 6, 5)),
            (utc(2031, 6, 3), utc(2031, 6, 8)),
            (utc(2031, 6, 5), utc(2031, 6, 6)),
            (utc(2031, 6, 8), utc(2031, 6, 10)),
            (utc(2031, 6, 2), utc(2031, 6, 9)),
        ]
        for i, window in enumerate(windows):
            try:
                booking_service.create_booking(
                    self.db, self.booking_request(self.vehicle, *window, email=f"c{i}@example.com"))
            except BookingConflictException:
                pass

        bookings = self._active_bookings()
        self.assertGreater(len(bookings), 0)
        for a, b in combinations(bookings, 2):
            if a.vehicle_subunit_id == b.vehicle_subunit_id:
                self.assertFalse(overlaps(to_utc(a.pickup_date), to_utc(a.dropoff_date),
                                          to_utc(b.pickup_date), to_utc(b.dropoff_date)))

    def test_vehicle_level_note_blocks_commit(self):
        self.make_note(date(2031, 6, 14), NoteType.BLOCKED, vehicle=self.vehicle)

        with self.assertRaises(BookingConflictException):
            booking_service.create_booking(
                self.db, self.booking_request(self.vehicle, utc(2031, 6, 10), utc(2031, 6, 20)))

    def test_blacklisted_customer_is_refused(self):
        self.make_customer(email="banned@example.com", is_blacklisted=True)

        with self.assertRaises(CustomerBlacklistedException):
            booking_service.create_booking(
                self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2),
                                              email="Banned@Example.com"))
        self.assertEqual(self.db.query(Booking).count(), 0)

    def test_returning_customer_is_reused(self):
        existing = self.make_customer(email="jane@example.com")

        data = booking_service.create_booking(
            self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2), email="JANE@example.com"))

        self.assertEqual(data["customer"]["id"], existing.id)
        self.assertEqual(self.db.query(Customer).count(), 1)

    def test_unknown_location_is_not_found(self):
        with self.assertRaises(NotFoundException):
            booking_service.create_booking(
                self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2),
                                              pickup_location_id=999))

    def test_prices_extras_and_coupon(self):
        seat = self.make_extra(price="5.00", price_type=ExtraPriceType.PER_DAY)
        fee  = self.make_extra(price="20.00", price_type=ExtraPriceType.PER_BOOKING, name="Airport fee")
        coupon = self.make_coupon(code="SUMMER10", value="10", usage_limit=5)

        data = booking_service.create_booking(self.db, self.booking_request(
            self.vehicle, utc(2031, 6, 1, 10), utc(2031, 6, 4, 10),
            extras=[BookingExtraItem(extra_id=seat.id, quantity=2), BookingExtraItem(extra_id=fee.id)],
            coupon_code="summer10",
        ))

        self.assertEqual(data["base_price"], 150.0)
        self.assertEqual(data["extras_price"], 50.0)
        self.assertEqual(data["discount_amount"], 20.0)
        self.assertEqual(data["total_price"], 180.0)
        self.assertEqual(data["coupon_code"], "SUMMER10")
        self.assertEqual(sorted(e["price"] for e in data["extras"]), [20.0, 30.0])
        self.db.refresh(coupon)
        self.assertEqual(coupon.usage_count, 1)

    def test_exhausted_coupon_is_rejected(self):
        self.make_coupon(code="ONCE", usage_limit=0)

        with self.assertRaises(InvalidCouponException):
            booking_service.create_booking(self.db, self.booking_request(
                self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2), coupon_code="ONCE"))
        self.assertEqual(self.db.query(Booking).count(), 0)

    def test_unknown_coupon_is_rejected(self):
        with self.assertRaises(InvalidCouponException):
            booking_service.create_booking(self.db, self.booking_request(
                self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2), coupon_code="NOPE"))

    def test_notification_failure_keeps_the_booking(self):
        with patch("app.services.booking_service.send_booking_confirmation_email",
                   side_effect=RuntimeError("smtp down")) as send:
            data = booking_service.create_booking(
                self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2)))

        send.assert_called_once()
        self.db.expire_all()
        self.assertIsNotNone(self.db.query(Booking).filter(Booking.id == data["id"]).first())

    def test_commit_is_audited(self):
        data = booking_service.create_booking(
            self.db, self.booking_request(self.vehicle, utc(2031, 6, 1), utc(2031, 6, 2)))

        entry = self.db.query(AuditLog).filter(AuditLog.entity_type == "Booking").first()
        self.assertEqual(entry.entity_id, data["id"])
        self.assertIsNone(entry.admin_user_id)


class TestBookingLifecycle(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.location = self.make_location()
        self.admin = self.make_admin()
        self.vehicle = self.make_vehicle(subunits=1)
        self.subunit = self.subunits(self.vehicle)[0]
        self.booking = self.make_booking(self.subunit, utc(2031, 6, 10), utc(2031, 6, 15))

    def _move(self, status: str, **kwargs) -> dict:
        return booking_service.update_status(
            self.db, self.booking.id, BookingStatusUpdateRequest(status=status, **kwargs), self.admin.id)

    def test_happy_path(self):
        self._move("waiting_payment", payment_link="https://pay.example.com/abc")
        self._move("confirmed")
        data = self._move("completed", notes="Returned full tank")

        self.assertEqual(data["status"], "completed")
        self.assertEqual(data["notes"], "Returned full tank")
        self.assertEqual(data["payment_link"], "https://pay.example.com/abc")

    def test_waiting_payment_requires_link(self):
        with self.assertRaises(ValidationException) as ctx:
            self._move("waiting_payment")
        self.assertEqual(ctx.exception.detail["error"]["field"], "payment_link")

    def test_disallowed_transition(self):
        self._move("cancelled")
        with self.assertRaises(InvalidStatusTransitionException):
            self._move("pending")

    def test_skip_ahead_is_rejected(self):
        with self.assertRaises(InvalidStatusTransitionException):
            self._move("completed")

    def test_cancelling_frees_the_window(self):
        window = (utc(2031, 6, 12), utc(2031, 6, 13))
        self.assertEqual(availability_service.compute(self.db, self.vehicle.id, *window).available_count, 0)

        self._move("cancelled")

        self.assertEqual(availability_service.compute(self.db, self.vehicle.id, *window).available_count, 1)

    def test_completing_frees_the_window(self):
        self._move("waiting_payment", payment_link="https://pay.example.com/abc")
        self._move("confirmed")
        self._move("completed")

        result = availability_service.compute(self.db, self.vehicle.id, utc(2031, 6, 12), utc(2031, 6, 13))
        self.assertEqual(result.available_subunit_ids, [self.subunit.id])

    def test_status_email_only_on_change(self):
        with patch("app.services.booking_service.send_booking_status_email") as send:
            self._move("pending", notes="Customer called")
            send.assert_not_called()
            self._move("cancelled")
            send.assert_called_once()

    def test_transition_is_checked_against_the_locked_status(self):
        lock_vehicle = booking_service._lock_vehicle
        calls = []

        def cancel_and_rebook_meanwhile(db, vehicle_id):
            calls.append(vehicle_id)
            if len(calls) == 1:
                other = TestingSessionLocal()
                try:
                    booking_service.update_status(
                        other, self.booking.id, BookingStatusUpdateRequest(status="cancelled"), self.admin.id)
                    booking_service.create_booking(
                        other, self.booking_request(self.vehicle, utc(2031, 6, 11), utc(2031, 6, 12),
                                                    email="other@example.com"))
                finally:
                    other.close()
            return lock_vehicle(db, vehicle_id)

        with patch.object(booking_service, "_lock_vehicle", side_effect=cancel_and_rebook_meanwhile):
            with self.assertRaises(InvalidStatusTransitionException):
                self._move("waiting_payment", payment_link="https://pay.example.com/abc")

        self.db.expire_all()
        self.assertEqual(self.db.get(Booking, self.booking.id).status, BookingStatus.CANCELLED)
        active = self.db.query(Booking).filter(
            Booking.vehicle_subunit_id == self.subunit.id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        ).all()
        self.assertEqual(len(active), 1)
        self.assertNotEqual(active[0].id, self.booking.id)

    def test_unknown_booking(self):
        with self.assertRaises(NotFoundException):
            booking_service.update_status(self.db, 999, BookingStatusUpdateRequest(status="cancelled"), self.admin.id)


class TestBookingQueries(DatabaseTestCase):

    def setUp(self):
        super().setUp()
        self.location = self.make_location()
        self.vehicle = self.make_vehicle(subunits=2)
        self.other = self.make_vehicle(subunits=1, model="Corolla")
        s1, s2 = self.subunits(self.vehicle)
        self.b1 = self.make_booking(s1, utc(2031, 6, 1), utc(2031, 6, 3))
        self.b2 = self.make_booking(s2, utc(2031, 7, 1), utc(2031, 7, 3), status=BookingStatus.CANCELLED)
        self.b3 = self.make_booking(self.subunits(self.other)[0], utc(2031, 8, 1), utc(2031, 8, 3))

    def _list(self, **filters):
        args = dict(status=None, vehicle_id=None, date_from=None, date_to=None,
                    booking_number=None, customer_name=None)
        args.update(filters)
        return booking_service.list_bookings(self.db, 1, 20, **args)

    def test_filters(self):
        _, total = self._list()
        self.assertEqual(total, 3)

        items, total = self._list(status="cancelled")
        self.assertEqual([b["id"] for b in items], [self.b2.id])

        items, _ = self._list(vehicle_id=self.other.id)
        self.assertEqual([b["id"] for b in items], [self.b3.id])

        items, _ = self._list(date_from="2031-06-15", date_to="2031-07-31")
        self.assertEqual([b["id"] for b in items], [self.b2.id])

        _, total = self._list(customer_name="jane doe")
        self.assertEqual(total, 3)

    def test_unknown_status_filter(self):
        with self.assertRaises(ValidationException):
            self._list(status="archived")

    def test_lookup_by_number_is_case_insensitive(self):
        data = booking_service.get_by_number(self.db, self.b1.booking_number.lower())
        self.assertEqual(data["id"], self.b1.id)
        with self.assertRaises(NotFoundException):
            booking_service.get_by_number(self.db, "DB-00000000-XXXXXX")


if __name__ == '__main__':
    unittest.main()
