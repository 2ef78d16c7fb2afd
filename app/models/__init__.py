"""
Import all models here so that:
1. Alembic can auto-detect them when generating migrations
2. Relationships between models resolve correctly

Order matters — import parent tables before child tables.
"""

from app.models.admin_user import AdminUser, AdminRole
from app.models.location import Location
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit, SubunitStatus
from app.models.availability_note import AvailabilityNote, NoteType
from app.models.customer import Customer
from app.models.extra import Extra, ExtraPriceType
from app.models.coupon import Coupon, DiscountType
from app.models.booking import Booking, BookingStatus
from app.models.booking_extra import BookingExtra
from app.models.audit_log import AuditLog

__all__ = [
    "AdminUser",
    "AdminRole",
    "Location",
    "Vehicle",
    "VehicleSubunit",
    "SubunitStatus",
    "AvailabilityNote",
    "NoteType",
    "Customer",
    "Extra",
    "ExtraPriceType",
    "Coupon",
    "DiscountType",
    "Booking",
    "BookingStatus",
    "BookingExtra",
    "AuditLog",
]
