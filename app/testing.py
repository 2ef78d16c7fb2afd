"""
Shared fixtures for the unittest modules in app/.

Importing this module first points the settings at an in-memory SQLite
database, so nothing in the test run touches a real server.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "unit-test-secret-key-not-for-production-use")
os.environ.setdefault("APP_ENV", "test")

import itertools
import unittest
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base
from app.models.admin_user import AdminUser, AdminRole
from app.models.availability_note import AvailabilityNote, NoteType
from app.models.booking import Booking, BookingStatus
from app.models.coupon import Coupon, DiscountType
from app.models.customer import Customer
from app.models.extra import Extra, ExtraPriceType
from app.models.location import Location
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit, SubunitStatus
from app.schemas.booking import BookingCreateRequest
from app.utils.security import hash_password

# One connection shared by every session so the in-memory database survives
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False,
                                   expire_on_commit=False)

_plates = itertools.count(1)
_numbers = itertools.count(1)


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


class DatabaseTestCase(unittest.TestCase):
    """Creates the schema before each test and drops it afterwards."""

    def setUp(self):
        Base.metadata.create_all(bind=engine)
        self.db = TestingSessionLocal()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=engine)

    # ─── Seed helpers ─────────────────────────────────────────────────────────
    def make_location(self, name: str = "Airport", city: str = "Larnaca") -> Location:
        loc = Location(name=name, city=city, is_active=True)
        self.db.add(loc)
        self.db.commit()
        return loc

    def make_vehicle(self, subunits: int = 2, daily: str = "50.00",
                     weekly: str | None = None, monthly: str | None = None,
                     make: str = "Toyota", model: str = "Yaris",
                     category: str = "economy", is_active: bool = True) -> Vehicle:
        v = Vehicle(
            make=make, model=model, year=2024, category=category,
            base_price_daily=Decimal(daily),
            base_price_weekly=Decimal(weekly) if weekly else None,
            base_price_monthly=Decimal(monthly) if monthly else None,
            is_active=is_active,
        )
        self.db.add(v)
        self.db.flush()
        for _ in range(subunits):
            self.make_subunit(v, commit=False)
        self.db.commit()
        return v

    def make_subunit(self, vehicle: Vehicle, status: SubunitStatus = SubunitStatus.AVAILABLE,
                     commit: bool = True) -> VehicleSubunit:
        s = VehicleSubunit(vehicle_id=vehicle.id, license_plate=f"TST{next(_plates):04d}", status=status)
        self.db.add(s)
        if commit:
            self.db.commit()
        else:
            self.db.flush()
        return s

    def subunits(self, vehicle: Vehicle) -> list[VehicleSubunit]:
        return self.db.query(VehicleSubunit).filter(VehicleSubunit.vehicle_id == vehicle.id)\
                      .order_by(VehicleSubunit.id).all()

    def make_customer(self, email: str = "jane@example.com", is_blacklisted: bool = False) -> Customer:
        c = Customer(first_name="Jane", last_name="Doe", email=email, phone="+35799000000",
                     is_blacklisted=is_blacklisted)
        self.db.add(c)
        self.db.commit()
        return c

    def make_booking(self, subunit: VehicleSubunit, pickup: datetime, dropoff: datetime,
                     status: BookingStatus = BookingStatus.PENDING,
                     customer: Customer | None = None, location: Location | None = None) -> Booking:
        customer = customer or self.db.query(Customer).first() or self.make_customer()
        location = location or self.db.query(Location).first() or self.make_location()
        b = Booking(
            booking_number=f"SEED-{next(_numbers):05d}",
            customer_id=customer.id,
            vehicle_subunit_id=subunit.id,
            pickup_location_id=location.id,
            dropoff_location_id=location.id,
            pickup_date=pickup,
            dropoff_date=dropoff,
            status=status,
            base_price=Decimal("100.00"),
            extras_price=Decimal("0.00"),
            discount_amount=Decimal("0.00"),
            total_price=Decimal("100.00"),
        )
        self.db.add(b)
        self.db.commit()
        return b

    def make_note(self, day: date, note_type: NoteType = NoteType.BLOCKED,
                  vehicle: Vehicle | None = None, subunit: VehicleSubunit | None = None) -> AvailabilityNote:
        n = AvailabilityNote(
            vehicle_id=vehicle.id if vehicle else None,
            vehicle_subunit_id=subunit.id if subunit else None,
            note_date=day,
            note_type=note_type,
        )
        self.db.add(n)
        self.db.commit()
        return n

    def make_extra(self, price: str = "5.00", price_type: ExtraPriceType = ExtraPriceType.PER_DAY,
                   name: str = "Child seat") -> Extra:
        e = Extra(name=name, price=Decimal(price), price_type=price_type, is_active=True)
        self.db.add(e)
        self.db.commit()
        return e

    def make_coupon(self, code: str = "SUMMER10", discount_type: DiscountType = DiscountType.PERCENTAGE,
                    value: str = "10", usage_limit: int | None = None, is_active: bool = True) -> Coupon:
        c = Coupon(code=code, discount_type=discount_type, discount_value=Decimal(value),
                   usage_limit=usage_limit, usage_count=0, is_active=is_active)
        self.db.add(c)
        self.db.commit()
        return c

    def make_admin(self, email: str = "admin@example.com", password: str = "Secret123",
                   role: AdminRole = AdminRole.ADMIN, is_active: bool = True) -> AdminUser:
        a = AdminUser(email=email, password=hash_password(password), name="Admin",
                      role=role, is_active=is_active)
        self.db.add(a)
        self.db.commit()
        return a

    def booking_request(self, vehicle: Vehicle, pickup: datetime, dropoff: datetime,
                        location: Location | None = None, email: str = "jane@example.com",
                        **overrides) -> BookingCreateRequest:
        location = location or self.db.query(Location).first() or self.make_location()
        payload = {
            "vehicle_id":          vehicle.id,
            "pickup_date":         pickup,
            "dropoff_date":        dropoff,
            "pickup_location_id":  location.id,
            "dropoff_location_id": location.id,
            "customer": {
                "first_name": "Jane",
                "last_name":  "Doe",
                "email":      email,
                "phone":      "+35799000000",
            },
        }
        payload.update(overrides)
        return BookingCreateRequest(**payload)
