import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.models.admin_user import AdminUser, AdminRole
from app.schemas.auth import LoginRequest
from app.utils.audit import log_action
from app.utils.exceptions import UnauthorizedException, AccountInactiveException
from app.utils.security import verify_password, hash_password, create_access_token

logger = logging.getLogger(__name__)


def serialize_admin(user: AdminUser) -> dict:
    return {
        "id":        user.id,
        "email":     user.email,
        "name":      user.name,
        "role":      user.role.value,
        "is_active": user.is_active,
    }


class AuthService:

    # ─── Login ────────────────────────────────────────────────────────────────
    def login(self, db: Session, data: LoginRequest) -> dict:
        user = db.query(AdminUser).filter(AdminUser.email == data.email).first()

        if not user or not verify_password(data.password, user.password):
            raise UnauthorizedException("Invalid email or password")

        if not user.is_active:
            raise AccountInactiveException()

        access_token = create_access_token(user.id, user.role.value)

        log_action(db, user.id, "LOGIN", "AdminUser", user.id, f"{user.name} logged in")
        db.commit()

        return {
            "access_token": access_token,
            "token_type":   "Bearer",
            "expires_in":   settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            "user":         serialize_admin(user),
        }

    # ─── Bootstrap ────────────────────────────────────────────────────────────
    def ensure_default_admin(self, db: Session) -> AdminUser | None:
        """
        Create the admin account from ADMIN_EMAIL / ADMIN_PASSWORD when no
        account with that email exists yet. Does nothing if either is unset.
        """
        if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
            return None

        email = settings.ADMIN_EMAIL.lower()
        user = db.query(AdminUser).filter(AdminUser.email == email).first()
        if user:
            return user

        user = AdminUser(
            email=email,
            password=hash_password(settings.ADMIN_PASSWORD),
            name=settings.ADMIN_NAME,
            role=AdminRole.ADMIN,
            is_active=True,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info(f"Created bootstrap admin account {email}")
        return user


auth_service = AuthService()
