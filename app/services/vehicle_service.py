from decimal import Decimal

from sqlalchemy.orm import Session

from app.models.location import Location
from app.models.vehicle import Vehicle
from app.schemas.vehicle import VehicleCreateRequest
from app.services.availability_service import availability_service
from app.services.inventory_service import serialize_subunit
from app.utils.audit import log_action
from app.utils.dates import parse_window
from app.utils.exceptions import NotFoundException, ValidationException


def _price(value) -> float | None:
    return float(value) if value is not None else None


def _serialize(v: Vehicle, with_subunits: bool = False) -> dict:
    data = {
        "id":                 v.id,
        "make":               v.make,
        "model":              v.model,
        "year":               v.year,
        "category":           v.category,
        "description":        v.description,
        "base_price_daily":   _price(v.base_price_daily),
        "base_price_weekly":  _price(v.base_price_weekly),
        "base_price_monthly": _price(v.base_price_monthly),
        "is_active":          v.is_active,
        "total_subunits":     len(v.subunits),
    }
    if with_subunits:
        data["subunits"] = [serialize_subunit(s) for s in v.subunits]
    return data


class VehicleService:

    def list_vehicles(
        self, db: Session,
        category: str | None, min_price: Decimal | None, max_price: Decimal | None,
        available_from: str | None, available_to: str | None,
    ) -> list[dict]:
        if bool(available_from) != bool(available_to):
            raise ValidationException("available_from and available_to must be given together",
                                      field="available_from" if not available_from else "available_to")
        q = db.query(Vehicle).filter(Vehicle.is_active == True)
        if category:            q = q.filter(Vehicle.category == category)
        if min_price is not None: q = q.filter(Vehicle.base_price_daily >= min_price)
        if max_price is not None: q = q.filter(Vehicle.base_price_daily <= max_price)
        vehicles = q.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).all()

        if not available_from:
            return [_serialize(v) for v in vehicles]

        window_start, window_end = parse_window(available_from, available_to,
                                                "available_from", "available_to")
        results = []
        for v, availability in availability_service.filter_available(db, vehicles, window_start, window_end):
            data = _serialize(v)
            data["available_count"] = availability.available_count
            results.append(data)
        return results

    def get_vehicle(self, db: Session, vehicle_id: int) -> dict:
        v = db.query(Vehicle).filter(Vehicle.id == vehicle_id, Vehicle.is_active == True).first()
        if not v:
            raise NotFoundException("Vehicle")
        return _serialize(v, with_subunits=True)

    def create_vehicle(self, db: Session, data: VehicleCreateRequest, actor_id: int) -> dict:
        v = Vehicle(
            make=data.make,
            model=data.model,
            year=data.year,
            category=data.category,
            description=data.description,
            base_price_daily=data.base_price_daily,
            base_price_weekly=data.base_price_weekly,
            base_price_monthly=data.base_price_monthly,
            is_active=True,
        )
        db.add(v)
        db.flush()
        log_action(db, actor_id, "CREATE", "Vehicle", v.id, f"Created vehicle {data.make} {data.model}")
        db.commit()
        db.refresh(v)
        return _serialize(v, with_subunits=True)

    # ─── Locations ────────────────────────────────────────────────────────────
    def list_locations(self, db: Session) -> list[dict]:
        locations = db.query(Location).filter(Location.is_active == True).order_by(Location.name).all()
        return [{
            "id":      l.id,
            "name":    l.name,
            "address": l.address,
            "city":    l.city,
            "phone":   l.phone,
        } for l in locations]


vehicle_service = VehicleService()
