import enum
from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, Enum
from app.database import Base


class ExtraPriceType(str, enum.Enum):
    PER_DAY     = "per_day"
    PER_BOOKING = "per_booking"


class Extra(Base):
    """Bookable add-on (child seat, GPS, extra driver...)."""
    __tablename__ = "extras"

    id          = Column(Integer, primary_key=True, index=True)
    name        = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    price       = Column(Numeric(10, 2), nullable=False)
    price_type  = Column(Enum(ExtraPriceType, name="extra_price_type",
                              values_callable=lambda e: [m.value for m in e]),
                         default=ExtraPriceType.PER_DAY, nullable=False)
    is_active   = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Extra id={self.id} name={self.name}>"
