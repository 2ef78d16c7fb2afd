from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_admin_user, get_staff_user
from app.models.admin_user import AdminUser
from app.schemas.vehicle import VehicleCreateRequest, SubunitCreateRequest, SubunitStatusRequest
from app.schemas.common import ERROR_RESPONSES, success_response
from app.services.availability_service import availability_service
from app.services.inventory_service import inventory_service
from app.services.obstruction_service import obstruction_service
from app.services.vehicle_service import vehicle_service
from app.utils.dates import parse_window

router = APIRouter(prefix="/vehicles")


@router.get("", summary="List vehicles, optionally only those free for a window")
def list_vehicles(
    category:       Optional[str]     = Query(None),
    min_price:      Optional[Decimal] = Query(None, ge=0),
    max_price:      Optional[Decimal] = Query(None, ge=0),
    available_from: Optional[str]     = Query(None, description="ISO 8601 date or datetime"),
    available_to:   Optional[str]     = Query(None, description="ISO 8601 date or datetime"),
    db:             Session           = Depends(get_db),
):
    data = vehicle_service.list_vehicles(db, category, min_price, max_price, available_from, available_to)
    return success_response("Vehicles retrieved successfully", data)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create vehicle (Admin)")
def create_vehicle(
    body: VehicleCreateRequest,
    db:   Session = Depends(get_db),
    current_user: AdminUser = Depends(get_admin_user),
):
    data = vehicle_service.create_vehicle(db, body, current_user.id)
    return success_response("Vehicle created successfully", data)


# Registered before /{vehicle_id} routes so "subunits" is never read as an id
@router.patch("/subunits/{subunit_id}/status", summary="Change subunit status (Admin/Staff)")
def update_subunit_status(
    subunit_id: int,
    body:       SubunitStatusRequest,
    db:         Session = Depends(get_db),
    current_user: AdminUser = Depends(get_staff_user),
):
    data = inventory_service.set_status(db, subunit_id, body.status, current_user.id, body.reason)
    return success_response("Subunit status updated", data)


@router.get("/{vehicle_id}", summary="Get vehicle with its subunits")
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return success_response("Vehicle retrieved", vehicle_service.get_vehicle(db, vehicle_id))


@router.get("/{vehicle_id}/availability", summary="Check availability for a window",
            responses=ERROR_RESPONSES)
def check_availability(
    vehicle_id: int,
    from_:      Optional[str] = Query(None, alias="from", description="ISO 8601 date or datetime"),
    to:         Optional[str] = Query(None, description="ISO 8601 date or datetime"),
    db:         Session       = Depends(get_db),
):
    """
    Bounds are inclusive. A bare date covers the whole day. The answer is a
    snapshot; POST /bookings re-checks it before reserving.
    """
    window_start, window_end = parse_window(from_, to)
    result = availability_service.query_availability(db, vehicle_id, window_start, window_end)
    return success_response("Availability retrieved", result.to_dict())


@router.get("/{vehicle_id}/blocked-dates", summary="Bookings and blocked days for the calendar")
def blocked_dates(
    vehicle_id: int,
    month:      Optional[int] = Query(None, ge=1, le=12, description="Defaults to the current month"),
    year:       Optional[int] = Query(None, ge=2000, le=2100, description="Defaults to the current year"),
    db:         Session       = Depends(get_db),
):
    today = datetime.now(timezone.utc)
    month = month or today.month
    year  = year or today.year
    data = availability_service.calendar(db, vehicle_id, month, year)
    return success_response("Blocked dates retrieved", data)


@router.post("/{vehicle_id}/subunits", status_code=status.HTTP_201_CREATED,
             summary="Add a physical unit to a vehicle (Admin)")
def add_subunit(
    vehicle_id: int,
    body:       SubunitCreateRequest,
    db:         Session = Depends(get_db),
    current_user: AdminUser = Depends(get_admin_user),
):
    data = inventory_service.add_subunit(db, vehicle_id, body, current_user.id)
    return success_response("Subunit added successfully", data)


@router.get("/{vehicle_id}/notes", summary="Availability notes of a vehicle (Admin/Staff)")
def list_notes(
    vehicle_id: int,
    month:      Optional[int] = Query(None, ge=1, le=12),
    year:       Optional[int] = Query(None, ge=2000, le=2100),
    db:         Session       = Depends(get_db),
    _:          AdminUser     = Depends(get_staff_user),
):
    data = obstruction_service.list_notes(db, vehicle_id, month, year)
    return success_response("Availability notes retrieved", data)
