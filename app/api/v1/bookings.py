from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_staff_user
from app.models.admin_user import AdminUser
from app.schemas.booking import BookingCreateRequest, BookingStatusUpdateRequest
from app.schemas.common import ERROR_RESPONSES, PaginatedResponse, success_response, paginated_response
from app.services.booking_service import booking_service

router = APIRouter(prefix="/bookings")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create booking", responses=ERROR_RESPONSES)
def create_booking(body: BookingCreateRequest, db: Session = Depends(get_db)):
    """
    Availability is re-checked inside the reservation transaction. If the last
    free unit was taken since the customer looked, the answer is 409
    BOOKING_CONFLICT and nothing is written.
    """
    data = booking_service.create_booking(db, body)
    return success_response("Booking created successfully", data)


@router.get("/number/{booking_number}", summary="Look up a booking by its number")
def get_by_number(booking_number: str, db: Session = Depends(get_db)):
    return success_response("Booking retrieved", booking_service.get_by_number(db, booking_number))


@router.get("", summary="List bookings (Admin/Staff)", response_model=PaginatedResponse[dict])
def list_bookings(
    page:           int           = Query(1, ge=1),
    limit:          int           = Query(20, ge=1, le=100),
    status:         Optional[str] = Query(None, description="pending | waiting_payment | confirmed | cancelled | completed"),
    vehicle_id:     Optional[int] = Query(None),
    date_from:      Optional[str] = Query(None),
    date_to:        Optional[str] = Query(None),
    booking_number: Optional[str] = Query(None),
    customer_name:  Optional[str] = Query(None),
    db:             Session       = Depends(get_db),
    _:              AdminUser     = Depends(get_staff_user),
):
    data, total = booking_service.list_bookings(
        db, page, limit,
        status, vehicle_id, date_from, date_to, booking_number, customer_name,
    )
    return paginated_response("Bookings retrieved successfully", data, total, page, limit)


@router.get("/{booking_id}", summary="Get booking detail (Admin/Staff)")
def get_booking(
    booking_id: int,
    db:         Session   = Depends(get_db),
    _:          AdminUser = Depends(get_staff_user),
):
    return success_response("Booking retrieved", booking_service.get_booking(db, booking_id))


@router.put("/{booking_id}/status", summary="Move a booking through its lifecycle (Admin/Staff)")
def update_status(
    booking_id: int,
    body:       BookingStatusUpdateRequest,
    db:         Session   = Depends(get_db),
    current_user: AdminUser = Depends(get_staff_user),
):
    """
    pending -> waiting_payment | cancelled;
    waiting_payment -> confirmed | cancelled;
    confirmed -> completed | cancelled.
    Moving to waiting_payment requires a payment_link.
    """
    data = booking_service.update_status(db, booking_id, body, current_user.id)
    return success_response("Booking status updated", data)
