from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class Vehicle(Base):
    """A rentable vehicle model. The physical cars are its subunits."""
    __tablename__ = "vehicles"

    id                 = Column(Integer, primary_key=True, index=True)
    make               = Column(String(100), nullable=False)
    model              = Column(String(100), nullable=False)
    year               = Column(Integer, nullable=True)
    category           = Column(String(50), nullable=False, index=True)
    description        = Column(Text, nullable=True)
    base_price_daily   = Column(Numeric(10, 2), nullable=False)
    base_price_weekly  = Column(Numeric(10, 2), nullable=True)
    base_price_monthly = Column(Numeric(10, 2), nullable=True)
    is_active          = Column(Boolean, default=True, nullable=False)
    created_at         = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at         = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                                onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    subunits = relationship("VehicleSubunit", back_populates="vehicle",
                            cascade="all, delete-orphan", order_by="VehicleSubunit.id")
    notes    = relationship("AvailabilityNote", back_populates="vehicle",
                            cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Vehicle id={self.id} {self.make} {self.model}>"
