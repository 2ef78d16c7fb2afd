from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_admin
from app.models.admin_user import AdminUser
from app.schemas.auth import LoginRequest, LoginResponse, AdminUserResponse
from app.schemas.common import SuccessResponse, success_response
from app.services.auth_service import auth_service, serialize_admin

router = APIRouter(prefix="/auth")


# ─── POST /auth/login ─────────────────────────────────────────────────────────
@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    summary="Login to the back office and receive an access token",
    response_model=SuccessResponse[LoginResponse],
)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    result = auth_service.login(db, data)
    return success_response("Login successful", result)


# ─── GET /auth/me ─────────────────────────────────────────────────────────────
@router.get(
    "/me",
    summary="Get the current back-office account",
    response_model=SuccessResponse[AdminUserResponse],
)
def me(current_user: AdminUser = Depends(get_current_admin)):
    return success_response("Account retrieved", serialize_admin(current_user))
