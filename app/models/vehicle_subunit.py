import enum
from sqlalchemy import Column, Integer, String, ForeignKey, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class SubunitStatus(str, enum.Enum):
    AVAILABLE   = "available"
    RESERVED    = "reserved"
    OUT_ON_RENT = "out_on_rent"
    RETURNED    = "returned"
    MAINTENANCE = "maintenance"


class VehicleSubunit(Base):
    """
    One physical car of a vehicle model.

    `status` is display state. Occupancy for a date window comes from the
    bookings table; only MAINTENANCE excludes the unit from availability.
    """
    __tablename__ = "vehicle_subunits"

    id                  = Column(Integer, primary_key=True, index=True)
    vehicle_id          = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"),
                                 nullable=False, index=True)
    license_plate       = Column(String(20), unique=True, nullable=False, index=True)
    vin                 = Column(String(32), nullable=True)
    status              = Column(Enum(SubunitStatus, name="subunit_status",
                                      values_callable=lambda e: [m.value for m in e]),
                                 default=SubunitStatus.AVAILABLE, nullable=False)
    current_location_id = Column(Integer, ForeignKey("locations.id"), nullable=True)
    created_at          = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at          = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                                 onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle          = relationship("Vehicle", back_populates="subunits")
    current_location = relationship("Location")
    bookings         = relationship("Booking", back_populates="subunit")
    notes            = relationship("AvailabilityNote", back_populates="subunit",
                                    cascade="all, delete-orphan")

    def __repr__(self):
        return f"<VehicleSubunit id={self.id} plate={self.license_plate} status={self.status}>"
