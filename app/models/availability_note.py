import enum
from sqlalchemy import (
    Column, Integer, Text, Date, ForeignKey, TIMESTAMP, Enum, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base


class NoteType(str, enum.Enum):
    MAINTENANCE = "maintenance"
    BLOCKED     = "blocked"
    OTHER       = "other"


# Only these note types take a vehicle or subunit out of availability
OBSTRUCTING_NOTE_TYPES = (NoteType.MAINTENANCE, NoteType.BLOCKED)


class AvailabilityNote(Base):
    __tablename__ = "availability_notes"
    __table_args__ = (
        CheckConstraint(
            "(vehicle_id IS NULL) <> (vehicle_subunit_id IS NULL)",
            name="ck_availability_notes_single_target",
        ),
    )

    id                 = Column(Integer, primary_key=True, index=True)
    vehicle_id         = Column(Integer, ForeignKey("vehicles.id", ondelete="CASCADE"),
                                nullable=True, index=True)
    vehicle_subunit_id = Column(Integer, ForeignKey("vehicle_subunits.id", ondelete="CASCADE"),
                                nullable=True, index=True)
    note_date          = Column(Date, nullable=False, index=True)
    note_type          = Column(Enum(NoteType, name="note_type",
                                     values_callable=lambda e: [m.value for m in e]),
                                nullable=False)
    note               = Column(Text, nullable=True)
    created_by         = Column(Integer, ForeignKey("admin_users.id"), nullable=True)
    created_at         = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    vehicle = relationship("Vehicle", back_populates="notes")
    subunit = relationship("VehicleSubunit", back_populates="notes")

    @property
    def is_obstructing(self) -> bool:
        return self.note_type in OBSTRUCTING_NOTE_TYPES

    def __repr__(self):
        target = f"vehicle={self.vehicle_id}" if self.vehicle_id else f"subunit={self.vehicle_subunit_id}"
        return f"<AvailabilityNote id={self.id} {target} date={self.note_date} type={self.note_type}>"
