import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.models.booking import Booking, BookingStatus
from app.models.booking_extra import BookingExtra
from app.models.coupon import Coupon
from app.models.customer import Customer
from app.models.extra import Extra
from app.models.location import Location
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit
from app.schemas.booking import BookingCreateRequest, BookingExtraItem, BookingStatusUpdateRequest
from app.services import pricing
from app.services.availability_service import availability_service
from app.services.customer_service import customer_service
from app.utils.audit import log_action
from app.utils.dates import parse_window_bound
from app.utils.email import (
    dispatch_notification, send_booking_confirmation_email, send_booking_status_email,
)
from app.utils.exceptions import (
    NotFoundException, BookingConflictException, InvalidStatusTransitionException,
    InvalidCouponException, ValidationException,
)

logger = logging.getLogger(__name__)

# Name of the PostgreSQL exclusion constraint backing the commit protocol
OVERLAP_CONSTRAINT = "ex_bookings_subunit_no_overlap"

ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING:         {BookingStatus.WAITING_PAYMENT, BookingStatus.CANCELLED},
    BookingStatus.WAITING_PAYMENT: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED:       {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.CANCELLED:       set(),
    BookingStatus.COMPLETED:       set(),
}


def can_transition(current: BookingStatus, requested: BookingStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS[current]


def generate_booking_number() -> str:
    today = datetime.now(timezone.utc).strftime("%Y%m%d")
    return f"{settings.BOOKING_NUMBER_PREFIX}-{today}-{secrets.token_hex(3).upper()}"


def _location(loc: Location) -> dict:
    return {"id": loc.id, "name": loc.name, "city": loc.city}


def _serialize(b: Booking) -> dict:
    vehicle = b.subunit.vehicle
    return {
        "id":             b.id,
        "booking_number": b.booking_number,
        "status":         b.status.value,
        "pickup_date":    b.pickup_date.isoformat(),
        "dropoff_date":   b.dropoff_date.isoformat(),
        "customer": {
            "id":         b.customer.id,
            "first_name": b.customer.first_name,
            "last_name":  b.customer.last_name,
            "email":      b.customer.email,
            "phone":      b.customer.phone,
        },
        "vehicle": {
            "id":    vehicle.id,
            "make":  vehicle.make,
            "model": vehicle.model,
            "year":  vehicle.year,
        },
        "vehicle_subunit": {
            "id":            b.subunit.id,
            "license_plate": b.subunit.license_plate,
        },
        "pickup_location":  _location(b.pickup_location),
        "dropoff_location": _location(b.dropoff_location),
        "extras": [{
            "extra_id": be.extra_id,
            "name":     be.extra.name,
            "quantity": be.quantity,
            "price":    float(be.price),
        } for be in b.extras],
        "base_price":      float(b.base_price),
        "extras_price":    float(b.extras_price),
        "discount_amount": float(b.discount_amount),
        "total_price":     float(b.total_price),
        "coupon_code":     b.coupon_code,
        "notes":           b.notes,
        "payment_link":    b.payment_link,
        "created_at":      b.created_at.isoformat() if b.created_at else None,
        "updated_at":      b.updated_at.isoformat() if b.updated_at else None,
    }


def _is_overlap_violation(exc: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT in str(exc.orig)


class BookingService:

    # ─── Lookups used inside the commit transaction ──────────────────────────
    def _active_location(self, db: Session, location_id: int, label: str) -> Location:
        loc = db.query(Location).filter(Location.id == location_id, Location.is_active == True).first()
        if not loc:
            raise NotFoundException(label)
        return loc

    def _extras(self, db: Session, items: list[BookingExtraItem]) -> list[tuple[Extra, int]]:
        if not items:
            return []
        ids = [i.extra_id for i in items]
        found = {e.id: e for e in db.query(Extra).filter(Extra.id.in_(ids), Extra.is_active == True).all()}
        missing = [i for i in ids if i not in found]
        if missing:
            raise NotFoundException(f"Extra #{missing[0]}")
        return [(found[i.extra_id], i.quantity) for i in items]

    def _coupon(self, db: Session, code: str | None) -> Coupon | None:
        if not code:
            return None
        coupon = db.query(Coupon).filter(func.upper(Coupon.code) == code.upper())\
                   .with_for_update().first()
        if not coupon:
            raise InvalidCouponException("Coupon code not found")
        return coupon

    # ─── Commit protocol ─────────────────────────────────────────────────────
    def create_booking(self, db: Session, data: BookingCreateRequest) -> dict:
        """
        Re-check availability and claim a subunit in one transaction.

        The vehicle row is locked FOR UPDATE first, so concurrent commits for
        the same vehicle run one after the other and the loser sees the
        winner's booking on its re-check. On PostgreSQL an exclusion
        constraint on (subunit, [pickup, dropoff]) backs this up.
        """
        try:
            booking = self._commit(db, data)
        except IntegrityError as e:
            db.rollback()
            if _is_overlap_violation(e):
                logger.warning(f"Overlap constraint rejected booking for vehicle #{data.vehicle_id}")
                raise BookingConflictException()
            raise
        except Exception:
            db.rollback()
            raise

        dispatch_notification(
            send_booking_confirmation_email,
            booking.customer.email, booking.customer.full_name, booking.booking_number,
            f"{booking.subunit.vehicle.make} {booking.subunit.vehicle.model}",
            booking.pickup_date.isoformat(), booking.dropoff_date.isoformat(),
            str(booking.total_price),
        )
        return _serialize(booking)

    def _commit(self, db: Session, data: BookingCreateRequest) -> Booking:
        vehicle = availability_service.get_active_vehicle(db, data.vehicle_id, lock=True)
        self._active_location(db, data.pickup_location_id, "Pickup location")
        self._active_location(db, data.dropoff_location_id, "Dropoff location")
        extras = self._extras(db, data.extras)
        coupon = self._coupon(db, data.coupon_code)
        customer = customer_service.upsert_for_booking(db, data.customer)

        availability = availability_service.compute(
            db, vehicle.id, data.pickup_date, data.dropoff_date, lock=True,
        )
        if not availability.available:
            logger.info(
                f"Booking conflict: vehicle #{vehicle.id} has no free subunit for "
                f"{data.pickup_date.isoformat()} -> {data.dropoff_date.isoformat()}"
            )
            raise BookingConflictException()
        subunit_id = min(availability.available_subunit_ids)

        quote = pricing.quote(vehicle, data.pickup_date, data.dropoff_date, extras, coupon)
        booking = Booking(
            booking_number=generate_booking_number(),
            customer_id=customer.id,
            vehicle_subunit_id=subunit_id,
            pickup_location_id=data.pickup_location_id,
            dropoff_location_id=data.dropoff_location_id,
            pickup_date=data.pickup_date,
            dropoff_date=data.dropoff_date,
            status=BookingStatus.PENDING,
            base_price=quote.base_price,
            extras_price=quote.extras_price,
            discount_amount=quote.discount_amount,
            total_price=quote.total_price,
            coupon_code=coupon.code if coupon else None,
        )
        db.add(booking)
        db.flush()
        for extra, quantity, line_price in quote.lines:
            db.add(BookingExtra(booking_id=booking.id, extra_id=extra.id,
                                quantity=quantity, price=line_price))
        if coupon:
            coupon.usage_count += 1

        log_action(db, None, "CREATE", "Booking", booking.id,
                   f"Booking {booking.booking_number} for {customer.email} on subunit #{subunit_id}")
        db.commit()
        db.refresh(booking)
        logger.info(f"Booking {booking.booking_number} committed on subunit #{subunit_id} "
                    f"(vehicle #{vehicle.id})")
        return booking

    # ─── Lifecycle ───────────────────────────────────────────────────────────
    def _lock_vehicle(self, db: Session, vehicle_id: int) -> None:
        db.query(Vehicle).filter(Vehicle.id == vehicle_id).with_for_update().first()

    def update_status(self, db: Session, booking_id: int, data: BookingStatusUpdateRequest,
                      actor_id: int) -> dict:
        b = db.query(Booking).filter(Booking.id == booking_id).first()
        if not b:
            raise NotFoundException("Booking")

        try:
            # Occupancy changes serialize with commits on the same vehicle.
            # The status is read again under the locks so a concurrent change is seen.
            self._lock_vehicle(db, b.subunit.vehicle_id)
            db.refresh(b, with_for_update=True)

            current, requested = b.status, data.status
            if requested != current and not can_transition(current, requested):
                raise InvalidStatusTransitionException(current.value, requested.value)
            if requested == BookingStatus.WAITING_PAYMENT and not (data.payment_link or b.payment_link):
                raise ValidationException("payment_link is required to request payment", field="payment_link")

            b.status = requested
            if data.notes is not None:        b.notes        = data.notes
            if data.payment_link is not None: b.payment_link = data.payment_link
            log_action(db, actor_id, "STATUS_CHANGE", "Booking", b.id,
                       f"Booking {b.booking_number}: {current.value} -> {requested.value}")
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(b)
        logger.info(f"Booking {b.booking_number} status {current.value} -> {requested.value}")

        if requested != current:
            dispatch_notification(
                send_booking_status_email,
                b.customer.email, b.customer.full_name, b.booking_number,
                requested.value, b.notes, b.payment_link,
            )
        return _serialize(b)

    # ─── Queries ─────────────────────────────────────────────────────────────
    def list_bookings(
        self, db: Session, page: int, limit: int,
        status: str | None, vehicle_id: int | None,
        date_from: str | None, date_to: str | None,
        booking_number: str | None, customer_name: str | None,
    ) -> tuple[list[dict], int]:
        q = db.query(Booking)\
              .join(VehicleSubunit, Booking.vehicle_subunit_id == VehicleSubunit.id)\
              .join(Customer, Booking.customer_id == Customer.id)

        if status:
            try:
                q = q.filter(Booking.status == BookingStatus(status))
            except ValueError:
                raise ValidationException(f"Unknown booking status '{status}'", field="status")
        if vehicle_id:     q = q.filter(VehicleSubunit.vehicle_id == vehicle_id)
        if date_from:      q = q.filter(Booking.pickup_date  >= parse_window_bound(date_from, "date_from"))
        if date_to:        q = q.filter(Booking.dropoff_date <= parse_window_bound(date_to, "date_to", end_of_day=True))
        if booking_number: q = q.filter(Booking.booking_number.ilike(f"%{booking_number}%"))
        if customer_name:
            kw = f"%{customer_name}%"
            q = q.filter(or_(
                Customer.first_name.ilike(kw),
                Customer.last_name.ilike(kw),
                (Customer.first_name + " " + Customer.last_name).ilike(kw),
            ))

        total = q.count()
        items = q.order_by(Booking.created_at.desc(), Booking.id.desc())\
                 .offset((page - 1) * limit).limit(limit).all()
        return [_serialize(b) for b in items], total

    def get_booking(self, db: Session, booking_id: int) -> dict:
        b = db.query(Booking).filter(Booking.id == booking_id).first()
        if not b:
            raise NotFoundException("Booking")
        return _serialize(b)

    def get_by_number(self, db: Session, booking_number: str) -> dict:
        b = db.query(Booking).filter(Booking.booking_number == booking_number.strip().upper()).first()
        if not b:
            raise NotFoundException("Booking")
        return _serialize(b)


booking_service = BookingService()
