from sqlalchemy import Column, Integer, String, Text, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id            = Column(Integer, primary_key=True, index=True)
    admin_user_id = Column(Integer, ForeignKey("admin_users.id"), nullable=True)  # NULL = customer/system
    action        = Column(String(100), nullable=False)       # e.g. CREATE, STATUS_CHANGE, BLACKLIST
    entity_type   = Column(String(100), nullable=False)       # e.g. Booking, Customer, AvailabilityNote
    entity_id     = Column(Integer, nullable=True)
    description   = Column(Text, nullable=True)
    created_at    = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    admin_user = relationship("AdminUser", back_populates="audit_logs")

    def __repr__(self):
        return f"<AuditLog id={self.id} action={self.action} entity={self.entity_type}:{self.entity_id}>"
