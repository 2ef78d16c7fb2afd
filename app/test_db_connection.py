import os
import threading
import unittest
import uuid
from decimal import Decimal

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

import app.testing  # noqa: F401
from app.models.audit_log import AuditLog
from app.models.booking import Booking
from app.models.customer import Customer
from app.models.location import Location
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit
from app.schemas.booking import BookingCreateRequest
from app.services.booking_service import booking_service
from app.testing import utc
from app.utils.exceptions import BookingConflictException

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL")


def _constraint_installed(engine) -> bool:
    with engine.connect() as connection:
        return connection.execute(text(
            "SELECT 1 FROM pg_constraint WHERE conname = 'ex_bookings_subunit_no_overlap'"
        )).scalar() is not None


@unittest.skipUnless(TEST_DATABASE_URL, "TEST_DATABASE_URL not set")
class TestDatabaseConnection(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(TEST_DATABASE_URL)

    def tearDown(self):
        self.engine.dispose()

    def test_database_connection_success(self):
        """Test that the application can connect to the configured PostgreSQL server."""
        try:
            with self.engine.connect() as connection:
                result = connection.execute(text("SELECT 1"))
                self.assertEqual(result.scalar(), 1)
        except SQLAlchemyError as e:
            self.fail(f"Database connection failed: {str(e)}")

    def test_overlap_constraint_installed(self):
        """After `alembic upgrade head` the bookings table carries the overlap exclusion constraint."""
        if not _constraint_installed(self.engine):
            self.skipTest("schema not migrated")


@unittest.skipUnless(TEST_DATABASE_URL, "TEST_DATABASE_URL not set")
class TestConcurrentCommits(unittest.TestCase):
    """Parallel bookers against a migrated PostgreSQL schema."""

    SUBUNITS = 3

    def setUp(self):
        self.engine = create_engine(TEST_DATABASE_URL, pool_size=self.SUBUNITS + 2)
        if not _constraint_installed(self.engine):
            self.engine.dispose()
            self.skipTest("schema not migrated")
        self.Session = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self.tag = uuid.uuid4().hex[:8]

        db = self.Session()
        try:
            self.location = Location(name=f"Race {self.tag}", city="Larnaca", is_active=True)
            self.vehicle = Vehicle(make="Race", model=self.tag, year=2024, category="economy",
                                   base_price_daily=Decimal("50.00"), is_active=True)
            db.add_all([self.location, self.vehicle])
            db.flush()
            for i in range(self.SUBUNITS):
                db.add(VehicleSubunit(vehicle_id=self.vehicle.id, license_plate=f"R{self.tag}{i}"))
            db.commit()
        finally:
            db.close()

    def tearDown(self):
        db = self.Session()
        try:
            subunit_ids = [s.id for s in db.query(VehicleSubunit)
                           .filter(VehicleSubunit.vehicle_id == self.vehicle.id)]
            booking_ids = [b.id for b in db.query(Booking)
                           .filter(Booking.vehicle_subunit_id.in_(subunit_ids))]
            db.query(AuditLog).filter(AuditLog.entity_type == "Booking",
                                      AuditLog.entity_id.in_(booking_ids)).delete(synchronize_session=False)
            db.query(Booking).filter(Booking.id.in_(booking_ids)).delete(synchronize_session=False)
            db.query(Customer).filter(Customer.email.like(f"%@{self.tag}.example.com"))\
              .delete(synchronize_session=False)
            db.query(VehicleSubunit).filter(VehicleSubunit.id.in_(subunit_ids)).delete(synchronize_session=False)
            db.query(Vehicle).filter(Vehicle.id == self.vehicle.id).delete(synchronize_session=False)
            db.query(Location).filter(Location.id == self.location.id).delete(synchronize_session=False)
            db.commit()
        finally:
            db.close()
            self.engine.dispose()

    def _request(self, n: int) -> BookingCreateRequest:
        return BookingCreateRequest(
            vehicle_id=self.vehicle.id,
            pickup_date=utc(2031, 8, 1, 10),
            dropoff_date=utc(2031, 8, 4, 10),
            pickup_location_id=self.location.id,
            dropoff_location_id=self.location.id,
            customer={
                "first_name": "Racer",
                "last_name":  str(n),
                "email":      f"racer{n}@{self.tag}.example.com",
                "phone":      "+35799000000",
            },
        )

    def test_one_more_booker_than_subunits(self):
        bookers = self.SUBUNITS + 1
        barrier = threading.Barrier(bookers)
        claimed, conflicts, errors = [], [], []

        def book(n):
            db = self.Session()
            try:
                barrier.wait()
                data = booking_service.create_booking(db, self._request(n))
                claimed.append(data["vehicle_subunit"]["id"])
            except BookingConflictException as e:
                conflicts.append(e)
            except Exception as e:
                errors.append(e)
            finally:
                db.close()

        threads = [threading.Thread(target=book, args=(n,)) for n in range(bookers)]
        for t in threads: t.start()
        for t in threads: t.join(timeout=60)

        self.assertEqual(errors, [])
        self.assertEqual(len(conflicts), 1)
        self.assertEqual(len(claimed), self.SUBUNITS)
        self.assertEqual(len(set(claimed)), self.SUBUNITS)


if __name__ == '__main__':
    unittest.main()
