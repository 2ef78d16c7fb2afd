from datetime import date, datetime

from sqlalchemy import or_, select, extract
from sqlalchemy.orm import Session

from app.models.availability_note import AvailabilityNote, OBSTRUCTING_NOTE_TYPES
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit
from app.schemas.availability_note import NoteCreateRequest
from app.utils.audit import log_action
from app.utils.exceptions import NotFoundException


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _target_clause(vehicle_id: int | None, subunit_id: int | None):
    if (vehicle_id is None) == (subunit_id is None):
        raise ValueError("Exactly one of vehicle_id or subunit_id must be given")
    if vehicle_id is not None:
        return AvailabilityNote.vehicle_id == vehicle_id
    return AvailabilityNote.vehicle_subunit_id == subunit_id


def _serialize(n: AvailabilityNote) -> dict:
    return {
        "id":                 n.id,
        "vehicle_id":         n.vehicle_id,
        "vehicle_subunit_id": n.vehicle_subunit_id,
        "note_date":          n.note_date.isoformat(),
        "note_type":          n.note_type.value,
        "note":               n.note,
        "is_obstructing":     n.is_obstructing,
        "created_at":         n.created_at.isoformat() if n.created_at else None,
    }


class ObstructionService:
    """
    Calendar obstruction index over availability notes.

    A target is either a whole vehicle model or one subunit. Notes of type
    `other` are calendar annotations and never obstruct.
    """

    def is_obstructed(self, db: Session, day: date | datetime,
                      vehicle_id: int | None = None, subunit_id: int | None = None) -> bool:
        hit = db.query(AvailabilityNote.id).filter(
            _target_clause(vehicle_id, subunit_id),
            AvailabilityNote.note_type.in_(OBSTRUCTING_NOTE_TYPES),
            AvailabilityNote.note_date == _as_date(day),
        ).first()
        return hit is not None

    def obstructed_dates_in_range(self, db: Session, start: date | datetime, end: date | datetime,
                                  vehicle_id: int | None = None,
                                  subunit_id: int | None = None) -> list[date]:
        rows = db.query(AvailabilityNote.note_date).filter(
            _target_clause(vehicle_id, subunit_id),
            AvailabilityNote.note_type.in_(OBSTRUCTING_NOTE_TYPES),
            AvailabilityNote.note_date >= _as_date(start),
            AvailabilityNote.note_date <= _as_date(end),
        ).distinct().order_by(AvailabilityNote.note_date).all()
        return [r[0] for r in rows]

    def obstructing_notes(self, db: Session, vehicle_id: int,
                          start: date | datetime, end: date | datetime) -> list[AvailabilityNote]:
        """Obstructing notes on the vehicle itself or on any of its subunits."""
        subunit_ids = select(VehicleSubunit.id).where(VehicleSubunit.vehicle_id == vehicle_id)
        return db.query(AvailabilityNote).filter(
            or_(
                AvailabilityNote.vehicle_id == vehicle_id,
                AvailabilityNote.vehicle_subunit_id.in_(subunit_ids),
            ),
            AvailabilityNote.note_type.in_(OBSTRUCTING_NOTE_TYPES),
            AvailabilityNote.note_date >= _as_date(start),
            AvailabilityNote.note_date <= _as_date(end),
        ).order_by(AvailabilityNote.note_date, AvailabilityNote.id).all()

    # ─── Admin note management ────────────────────────────────────────────────
    def list_notes(self, db: Session, vehicle_id: int,
                   month: int | None, year: int | None) -> list[dict]:
        if not db.query(Vehicle.id).filter(Vehicle.id == vehicle_id).first():
            raise NotFoundException("Vehicle")
        subunit_ids = select(VehicleSubunit.id).where(VehicleSubunit.vehicle_id == vehicle_id)
        q = db.query(AvailabilityNote).filter(or_(
            AvailabilityNote.vehicle_id == vehicle_id,
            AvailabilityNote.vehicle_subunit_id.in_(subunit_ids),
        ))
        if year:  q = q.filter(extract("year", AvailabilityNote.note_date) == year)
        if month: q = q.filter(extract("month", AvailabilityNote.note_date) == month)
        return [_serialize(n) for n in q.order_by(AvailabilityNote.note_date, AvailabilityNote.id).all()]

    def create_note(self, db: Session, data: NoteCreateRequest, actor_id: int | None) -> dict:
        if data.vehicle_id is not None:
            if not db.query(Vehicle.id).filter(Vehicle.id == data.vehicle_id).first():
                raise NotFoundException("Vehicle")
            target = f"vehicle #{data.vehicle_id}"
        else:
            if not db.query(VehicleSubunit.id).filter(VehicleSubunit.id == data.vehicle_subunit_id).first():
                raise NotFoundException("Vehicle subunit")
            target = f"subunit #{data.vehicle_subunit_id}"

        note = AvailabilityNote(
            vehicle_id=data.vehicle_id,
            vehicle_subunit_id=data.vehicle_subunit_id,
            note_date=data.note_date,
            note_type=data.note_type,
            note=data.note,
            created_by=actor_id,
        )
        db.add(note)
        db.flush()
        log_action(db, actor_id, "CREATE", "AvailabilityNote", note.id,
                   f"{data.note_type.value} note on {data.note_date.isoformat()} for {target}")
        db.commit()
        db.refresh(note)
        return _serialize(note)

    def delete_note(self, db: Session, note_id: int, actor_id: int | None) -> None:
        note = db.query(AvailabilityNote).filter(AvailabilityNote.id == note_id).first()
        if not note:
            raise NotFoundException("Availability note")
        log_action(db, actor_id, "DELETE", "AvailabilityNote", note_id,
                   f"Deleted {note.note_type.value} note on {note.note_date.isoformat()}")
        db.delete(note)
        db.commit()


obstruction_service = ObstructionService()
