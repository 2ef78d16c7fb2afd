from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.schemas.common import success_response
from app.services.vehicle_service import vehicle_service

router = APIRouter(prefix="/locations")


@router.get("", summary="List pickup / dropoff locations")
def list_locations(db: Session = Depends(get_db)):
    return success_response("Locations retrieved", vehicle_service.list_locations(db))
