import enum
from sqlalchemy import Column, Integer, String, Boolean, Numeric, Date, Enum
from app.database import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED      = "fixed"


class Coupon(Base):
    __tablename__ = "coupons"

    id             = Column(Integer, primary_key=True, index=True)
    code           = Column(String(50), unique=True, nullable=False, index=True)
    discount_type  = Column(Enum(DiscountType, name="discount_type",
                                 values_callable=lambda e: [m.value for m in e]),
                            nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    valid_from     = Column(Date, nullable=True)
    valid_until    = Column(Date, nullable=True)
    usage_limit    = Column(Integer, nullable=True)  # NULL = unlimited
    usage_count    = Column(Integer, default=0, nullable=False)
    is_active      = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Coupon code={self.code} type={self.discount_type}>"
