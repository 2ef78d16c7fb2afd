"""
Availability engine.

Availability of a vehicle model for a window is derived from three sources:
the subunit inventory, obstructing calendar notes and the active bookings in
the reservation ledger. Bounds are inclusive on both ends, so a booking that
ends on the window's first instant (or starts on its last) still conflicts.

The engine only reads. The booking commit protocol re-runs it under a vehicle
row lock before it inserts anything.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy.orm import Session

from app.models.availability_note import AvailabilityNote, OBSTRUCTING_NOTE_TYPES
from app.models.booking import Booking, ACTIVE_BOOKING_STATUSES
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit, SubunitStatus
from app.services.inventory_service import inventory_service
from app.services.obstruction_service import obstruction_service
from app.utils.dates import to_utc
from app.utils.exceptions import NotFoundException, InvalidDateRangeException


@dataclass
class AvailabilityResult:
    total_subunit_count:   int
    available_subunit_ids: list[int]  = field(default_factory=list)
    booked_dates:          list[dict] = field(default_factory=list)
    blocked_dates:         list[date] = field(default_factory=list)

    @property
    def available_count(self) -> int:
        return len(self.available_subunit_ids)

    @property
    def available(self) -> bool:
        return self.available_count > 0

    def to_dict(self) -> dict:
        return {
            "available":             self.available,
            "available_count":       self.available_count,
            "total_count":           self.total_subunit_count,
            "available_subunit_ids": list(self.available_subunit_ids),
            "booked_dates":          list(self.booked_dates),
            "blocked_dates":         [d.isoformat() for d in self.blocked_dates],
        }


# ─── Predicates ───────────────────────────────────────────────────────────────
def overlaps(pickup: datetime, dropoff: datetime, window_start: datetime, window_end: datetime) -> bool:
    """Inclusive interval intersection used for every booking conflict decision."""
    return pickup <= window_end and dropoff >= window_start


def is_permanently_excluded(subunit: VehicleSubunit) -> bool:
    """A subunit under maintenance is out of every window until its status changes."""
    return subunit.status == SubunitStatus.MAINTENANCE


def is_date_range_free(subunit: VehicleSubunit, occupied_ids: set[int], obstructed_ids: set[int]) -> bool:
    return subunit.id not in occupied_ids and subunit.id not in obstructed_ids


def is_available(subunit: VehicleSubunit, occupied_ids: set[int], obstructed_ids: set[int]) -> bool:
    return is_date_range_free(subunit, occupied_ids, obstructed_ids) and not is_permanently_excluded(subunit)


class AvailabilityService:

    def get_active_vehicle(self, db: Session, vehicle_id: int, lock: bool = False) -> Vehicle:
        q = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.is_active == True)
        if lock:
            q = q.with_for_update()
        vehicle = q.first()
        if not vehicle:
            raise NotFoundException("Vehicle")
        return vehicle

    def active_bookings_in_window(
        self, db: Session, vehicle_id: int, window_start: datetime, window_end: datetime,
        exclude_booking_id: int | None = None,
    ) -> list[Booking]:
        q = db.query(Booking).join(VehicleSubunit, Booking.vehicle_subunit_id == VehicleSubunit.id)\
              .filter(
                  VehicleSubunit.vehicle_id == vehicle_id,
                  Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                  Booking.pickup_date  <= window_end,
                  Booking.dropoff_date >= window_start,
              )
        if exclude_booking_id:
            q = q.filter(Booking.id != exclude_booking_id)
        return q.order_by(Booking.pickup_date, Booking.id).all()

    def compute(
        self, db: Session, vehicle_id: int, window_start: datetime, window_end: datetime,
        lock: bool = False, exclude_booking_id: int | None = None,
    ) -> AvailabilityResult:
        """
        Free subunits of `vehicle_id` for the inclusive window.

        Does not check the vehicle itself; `query_availability` does. With
        `lock=True` the subunit rows are read FOR UPDATE (commit protocol).
        """
        window_start, window_end = to_utc(window_start), to_utc(window_end)
        if window_end <= window_start:
            raise InvalidDateRangeException("Window end must be after window start")

        subunits = inventory_service.subunits_of(db, vehicle_id, lock=lock)
        if not subunits:
            return AvailabilityResult(total_subunit_count=0)

        notes = obstruction_service.obstructing_notes(db, vehicle_id, window_start, window_end)
        vehicle_blocks = sorted({n.note_date for n in notes if n.vehicle_id == vehicle_id})
        if vehicle_blocks:
            # One blocked day voids the whole requested window for the vehicle
            return AvailabilityResult(total_subunit_count=len(subunits), blocked_dates=vehicle_blocks)
        obstructed_ids = {n.vehicle_subunit_id for n in notes if n.vehicle_subunit_id is not None}

        bookings = self.active_bookings_in_window(db, vehicle_id, window_start, window_end,
                                                  exclude_booking_id=exclude_booking_id)
        occupied_ids = {b.vehicle_subunit_id for b in bookings}

        free = [s.id for s in subunits if is_available(s, occupied_ids, obstructed_ids)]
        return AvailabilityResult(
            total_subunit_count=len(subunits),
            available_subunit_ids=free,
            booked_dates=[{
                "from": b.pickup_date.isoformat(),
                "to":   b.dropoff_date.isoformat(),
            } for b in bookings],
        )

    def query_availability(self, db: Session, vehicle_id: int,
                           window_start: datetime, window_end: datetime) -> AvailabilityResult:
        self.get_active_vehicle(db, vehicle_id)
        return self.compute(db, vehicle_id, window_start, window_end)

    def filter_available(self, db: Session, vehicles: list[Vehicle],
                         window_start: datetime, window_end: datetime) -> list[tuple[Vehicle, AvailabilityResult]]:
        """Catalog filter: keep vehicles with at least one free subunit for the window."""
        results = []
        for v in vehicles:
            result = self.compute(db, v.id, window_start, window_end)
            if result.available:
                results.append((v, result))
        return results

    def calendar(self, db: Session, vehicle_id: int, month: int, year: int) -> dict:
        """
        Bookings and vehicle-level blocked days for the date picker, over twelve
        months from the first day of `month`/`year`. Cancelled and completed
        bookings are included for display and flagged as not occupying.
        """
        self.get_active_vehicle(db, vehicle_id)
        first_day = date(year, month, 1)
        last_day  = date(year + 1, month, 1) - timedelta(days=1)
        range_start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)
        range_end   = datetime.combine(last_day, time.max, tzinfo=timezone.utc)

        bookings = db.query(Booking).join(VehicleSubunit, Booking.vehicle_subunit_id == VehicleSubunit.id)\
                     .filter(
                         VehicleSubunit.vehicle_id == vehicle_id,
                         Booking.pickup_date  <= range_end,
                         Booking.dropoff_date >= range_start,
                     ).order_by(Booking.pickup_date).all()

        notes = db.query(AvailabilityNote).filter(
            AvailabilityNote.vehicle_id == vehicle_id,
            AvailabilityNote.note_type.in_(OBSTRUCTING_NOTE_TYPES),
            AvailabilityNote.note_date >= first_day,
            AvailabilityNote.note_date <= last_day,
        ).order_by(AvailabilityNote.note_date).all()

        return {
            "bookings": [{
                "id":                 b.id,
                "booking_number":     b.booking_number,
                "vehicle_subunit_id": b.vehicle_subunit_id,
                "pickup_date":        b.pickup_date.isoformat(),
                "dropoff_date":       b.dropoff_date.isoformat(),
                "booking_status":     b.status.value,
                "is_active":          b.is_active,
            } for b in bookings],
            "blocked_dates": [{
                "note_date": n.note_date.isoformat(),
                "note_type": n.note_type.value,
            } for n in notes],
        }


availability_service = AvailabilityService()
