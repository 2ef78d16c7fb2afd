from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import date

from app.models.availability_note import NoteType


class NoteCreateRequest(BaseModel):
    vehicle_id:         Optional[int] = None
    vehicle_subunit_id: Optional[int] = None
    note_date:          date
    note_type:          NoteType
    note:               Optional[str] = None

    @field_validator("note")
    @classmethod
    def strip_note(cls, v):
        if v is None: return v
        return v.strip() or None

    @model_validator(mode="after")
    def check_single_target(self) -> "NoteCreateRequest":
        if (self.vehicle_id is None) == (self.vehicle_subunit_id is None):
            raise ValueError("Exactly one of vehicle_id or vehicle_subunit_id is required")
        return self
