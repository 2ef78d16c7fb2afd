from pydantic import BaseModel, field_validator
from typing import Optional
from decimal import Decimal

from app.models.vehicle_subunit import SubunitStatus


# ─── Requests ─────────────────────────────────────────────────────────────────
class VehicleCreateRequest(BaseModel):
    make:               str
    model:              str
    year:               Optional[int]     = None
    category:           str
    description:        Optional[str]     = None
    base_price_daily:   Decimal
    base_price_weekly:  Optional[Decimal] = None
    base_price_monthly: Optional[Decimal] = None

    @field_validator("make", "model", "category")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("year")
    @classmethod
    def check_year(cls, v):
        if v is not None and not (1900 <= v <= 2100): raise ValueError("Year must be between 1900 and 2100")
        return v

    @field_validator("base_price_daily", "base_price_weekly", "base_price_monthly")
    @classmethod
    def check_price(cls, v):
        if v is not None and v <= 0: raise ValueError("Price must be greater than 0")
        return v


class SubunitCreateRequest(BaseModel):
    license_plate:       str
    vin:                 Optional[str]  = None
    status:              SubunitStatus  = SubunitStatus.AVAILABLE
    current_location_id: Optional[int]  = None

    @field_validator("license_plate")
    @classmethod
    def check_plate(cls, v):
        if not v.strip(): raise ValueError("License plate cannot be empty")
        return v.strip().upper()


class SubunitStatusRequest(BaseModel):
    status: SubunitStatus
    reason: Optional[str] = None
