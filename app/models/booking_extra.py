from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from app.database import Base


class BookingExtra(Base):
    __tablename__ = "booking_extras"

    id         = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    extra_id   = Column(Integer, ForeignKey("extras.id"), nullable=False)
    quantity   = Column(Integer, default=1, nullable=False)
    price      = Column(Numeric(10, 2), nullable=False)  # line total at booking time

    # ─── Relationships ─────────────────────────────────────────────────────────
    booking = relationship("Booking", back_populates="extras")
    extra   = relationship("Extra")

    def __repr__(self):
        return f"<BookingExtra booking={self.booking_id} extra={self.extra_id} qty={self.quantity}>"
