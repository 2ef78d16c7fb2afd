from sqlalchemy import Column, Integer, String, Text, Boolean, Date, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Customer(Base):
    __tablename__ = "customers"

    id               = Column(Integer, primary_key=True, index=True)
    first_name       = Column(String(100), nullable=False)
    last_name        = Column(String(100), nullable=False)
    email            = Column(String(255), unique=True, nullable=False, index=True)
    phone            = Column(String(30), nullable=False)
    date_of_birth    = Column(Date, nullable=True)
    license_number   = Column(String(50), nullable=True)
    license_country  = Column(String(100), nullable=True)
    license_expiry   = Column(Date, nullable=True)
    is_blacklisted   = Column(Boolean, default=False, nullable=False)
    blacklist_reason = Column(Text, nullable=True)
    created_at       = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at       = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                              onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    bookings = relationship("Booking", back_populates="customer")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Customer id={self.id} email={self.email}>"
