from sqlalchemy import Column, Integer, String, Boolean
from app.database import Base


class Location(Base):
    __tablename__ = "locations"

    id        = Column(Integer, primary_key=True, index=True)
    name      = Column(String(150), nullable=False)
    address   = Column(String(255), nullable=True)
    city      = Column(String(100), nullable=False)
    phone     = Column(String(30), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Location id={self.id} name={self.name}>"
