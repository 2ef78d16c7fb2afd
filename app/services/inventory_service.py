from sqlalchemy.orm import Session

from app.models.location import Location
from app.models.vehicle import Vehicle
from app.models.vehicle_subunit import VehicleSubunit, SubunitStatus
from app.schemas.vehicle import SubunitCreateRequest
from app.utils.audit import log_action
from app.utils.exceptions import NotFoundException, DuplicateEntryException, ValidationException


def serialize_subunit(s: VehicleSubunit) -> dict:
    return {
        "id":                  s.id,
        "vehicle_id":          s.vehicle_id,
        "license_plate":       s.license_plate,
        "vin":                 s.vin,
        "status":              s.status.value,
        "current_location_id": s.current_location_id,
    }


class InventoryService:

    def subunits_of(self, db: Session, vehicle_id: int, lock: bool = False) -> list[VehicleSubunit]:
        """All subunits of a vehicle model, lowest id first. `lock` takes row locks."""
        q = db.query(VehicleSubunit).filter(VehicleSubunit.vehicle_id == vehicle_id)\
              .order_by(VehicleSubunit.id)
        if lock:
            q = q.with_for_update()
        return q.all()

    def set_status(self, db: Session, subunit_id: int, status: SubunitStatus | str,
                   actor_id: int | None, reason: str | None = None) -> dict:
        try:
            new_status = SubunitStatus(status)
        except ValueError:
            raise ValidationException(f"Invalid subunit status '{status}'", field="status")

        s = db.query(VehicleSubunit).filter(VehicleSubunit.id == subunit_id).first()
        if not s:
            raise NotFoundException("Vehicle subunit")

        old_status = s.status.value
        s.status = new_status
        log_action(db, actor_id, "STATUS_CHANGE", "VehicleSubunit", s.id,
                   f"Subunit {s.license_plate}: {old_status} -> {new_status.value}" +
                   (f" | Reason: {reason}" if reason else ""))
        db.commit()
        db.refresh(s)
        return serialize_subunit(s)

    def add_subunit(self, db: Session, vehicle_id: int, data: SubunitCreateRequest,
                    actor_id: int | None) -> dict:
        vehicle = db.query(Vehicle).filter(Vehicle.id == vehicle_id).first()
        if not vehicle:
            raise NotFoundException("Vehicle")
        if db.query(VehicleSubunit.id).filter(VehicleSubunit.license_plate == data.license_plate).first():
            raise DuplicateEntryException("License plate already registered", field="license_plate")
        if data.current_location_id is not None and \
                not db.query(Location.id).filter(Location.id == data.current_location_id).first():
            raise NotFoundException("Location")

        s = VehicleSubunit(
            vehicle_id=vehicle_id,
            license_plate=data.license_plate,
            vin=data.vin,
            status=data.status,
            current_location_id=data.current_location_id,
        )
        db.add(s)
        db.flush()
        log_action(db, actor_id, "CREATE", "VehicleSubunit", s.id,
                   f"Added {data.license_plate} to {vehicle.make} {vehicle.model}")
        db.commit()
        db.refresh(s)
        return serialize_subunit(s)


inventory_service = InventoryService()
