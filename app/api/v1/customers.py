from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.dependencies import get_staff_user, get_admin_user
from app.models.admin_user import AdminUser
from app.schemas.customer import BlacklistRequest
from app.schemas.common import PaginatedResponse, success_response, paginated_response
from app.services.customer_service import customer_service

router = APIRouter(prefix="/customers")


@router.get("", summary="List customers (Admin/Staff)", response_model=PaginatedResponse[dict])
def list_customers(
    page:        int            = Query(1, ge=1),
    limit:       int            = Query(20, ge=1, le=100),
    search:      Optional[str]  = Query(None, description="Name, email or phone"),
    blacklisted: Optional[bool] = Query(None),
    db:          Session        = Depends(get_db),
    _:           AdminUser      = Depends(get_staff_user),
):
    data, total = customer_service.list_customers(db, page, limit, search, blacklisted)
    return paginated_response("Customers retrieved successfully", data, total, page, limit)


@router.get("/{customer_id}", summary="Get customer with booking history (Admin/Staff)")
def get_customer(
    customer_id: int,
    db:          Session   = Depends(get_db),
    _:           AdminUser = Depends(get_staff_user),
):
    return success_response("Customer retrieved", customer_service.get_customer(db, customer_id))


@router.patch("/{customer_id}/blacklist", summary="Blacklist or clear a customer (Admin)")
def set_blacklist(
    customer_id: int,
    body:        BlacklistRequest,
    db:          Session   = Depends(get_db),
    current_user: AdminUser = Depends(get_admin_user),
):
    data = customer_service.set_blacklist(db, customer_id, body, current_user.id)
    return success_response("Customer updated", data)
