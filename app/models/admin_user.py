import enum
from sqlalchemy import Column, Integer, String, Boolean, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    STAFF = "staff"


class AdminUser(Base):
    __tablename__ = "admin_users"

    id         = Column(Integer, primary_key=True, index=True)
    email      = Column(String(255), unique=True, nullable=False, index=True)
    password   = Column(String(255), nullable=False)
    name       = Column(String(150), nullable=False)
    role       = Column(Enum(AdminRole, name="admin_role",
                             values_callable=lambda e: [m.value for m in e]),
                        default=AdminRole.STAFF, nullable=False)
    is_active  = Column(Boolean, default=True, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    audit_logs = relationship("AuditLog", back_populates="admin_user")

    def __repr__(self):
        return f"<AdminUser id={self.id} email={self.email} role={self.role}>"
