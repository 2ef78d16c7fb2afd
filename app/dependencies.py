from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.admin_user import AdminUser, AdminRole
from app.utils.security import verify_access_token
from app.utils.exceptions import (
    UnauthorizedException,
    ForbiddenException,
    AccountInactiveException,
)

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


# ─── Get Current Admin ────────────────────────────────────────────────────────
def get_current_admin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> AdminUser:
    """
    Validate JWT Bearer token and return the back-office account.
    Raises 401 if token is missing, invalid, or expired.
    Raises 403 if account is inactive.
    """
    if not credentials:
        raise UnauthorizedException("No authentication token provided")

    payload = verify_access_token(credentials.credentials)
    admin_id: str | None = payload.get("sub")

    if admin_id is None:
        raise UnauthorizedException("Invalid token payload")

    user = db.query(AdminUser).filter(AdminUser.id == int(admin_id)).first()
    if not user:
        raise UnauthorizedException("Account no longer exists")

    if not user.is_active:
        raise AccountInactiveException()

    return user


# ─── Role Guards ──────────────────────────────────────────────────────────────
def require_roles(*roles: AdminRole):
    """
    Factory that returns a FastAPI dependency requiring one of the given roles.

    Usage:
        @router.post("/vehicles")
        def create(current_user = Depends(require_roles(AdminRole.ADMIN))):
            ...
    """
    def dependency(current_user: AdminUser = Depends(get_current_admin)) -> AdminUser:
        if current_user.role not in roles:
            raise ForbiddenException(
                f"This action requires one of these roles: {[r.value for r in roles]}"
            )
        return current_user
    return dependency


# ─── Pre-built role dependencies ─────────────────────────────────────────────
def get_admin_user(current_user: AdminUser = Depends(require_roles(AdminRole.ADMIN))) -> AdminUser:
    return current_user

def get_staff_user(
    current_user: AdminUser = Depends(require_roles(AdminRole.ADMIN, AdminRole.STAFF))
) -> AdminUser:
    """Any back-office account: admins and staff."""
    return current_user
