import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, ForeignKey, TIMESTAMP, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class BookingStatus(str, enum.Enum):
    PENDING         = "pending"
    WAITING_PAYMENT = "waiting_payment"
    CONFIRMED       = "confirmed"
    CANCELLED       = "cancelled"
    COMPLETED       = "completed"


# Statuses that occupy a subunit for their pickup/dropoff interval
ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING,
    BookingStatus.WAITING_PAYMENT,
    BookingStatus.CONFIRMED,
)


class Booking(Base):
    __tablename__ = "bookings"

    id                  = Column(Integer, primary_key=True, index=True)
    booking_number      = Column(String(40), unique=True, nullable=False, index=True)
    customer_id         = Column(Integer, ForeignKey("customers.id"), nullable=False, index=True)
    vehicle_subunit_id  = Column(Integer, ForeignKey("vehicle_subunits.id"), nullable=False, index=True)
    pickup_location_id  = Column(Integer, ForeignKey("locations.id"), nullable=False)
    dropoff_location_id = Column(Integer, ForeignKey("locations.id"), nullable=False)
    pickup_date         = Column(TIMESTAMP(timezone=True), nullable=False)
    dropoff_date        = Column(TIMESTAMP(timezone=True), nullable=False)
    status              = Column(Enum(BookingStatus, name="booking_status",
                                      values_callable=lambda e: [m.value for m in e]),
                                 default=BookingStatus.PENDING, nullable=False, index=True)
    base_price          = Column(Numeric(10, 2), nullable=False)
    extras_price        = Column(Numeric(10, 2), default=0, nullable=False)
    discount_amount     = Column(Numeric(10, 2), default=0, nullable=False)
    total_price         = Column(Numeric(10, 2), nullable=False)
    coupon_code         = Column(String(50), nullable=True)
    notes               = Column(Text, nullable=True)
    payment_link        = Column(String(500), nullable=True)
    created_at          = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at          = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                                 onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    customer         = relationship("Customer", back_populates="bookings")
    subunit          = relationship("VehicleSubunit", back_populates="bookings")
    pickup_location  = relationship("Location", foreign_keys=[pickup_location_id])
    dropoff_location = relationship("Location", foreign_keys=[dropoff_location_id])
    extras           = relationship("BookingExtra", back_populates="booking",
                                    cascade="all, delete-orphan")

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES

    def __repr__(self):
        return f"<Booking id={self.id} number={self.booking_number} status={self.status}>"
