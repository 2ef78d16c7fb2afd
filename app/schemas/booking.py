from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional
from datetime import date, datetime, timezone

from app.models.booking import BookingStatus
from app.utils.dates import to_utc


class CustomerInfo(BaseModel):
    first_name:      str
    last_name:       str
    email:           EmailStr
    phone:           str
    date_of_birth:   Optional[date] = None
    license_number:  Optional[str]  = None
    license_country: Optional[str]  = None
    license_expiry:  Optional[date] = None

    @field_validator("first_name", "last_name", "phone")
    @classmethod
    def not_empty(cls, v):
        if not v.strip(): raise ValueError("Field cannot be empty")
        return v.strip()

    @field_validator("email")
    @classmethod
    def lower_email(cls, v):
        return str(v).lower()


class BookingExtraItem(BaseModel):
    extra_id: int
    quantity: int = 1

    @field_validator("quantity")
    @classmethod
    def check_quantity(cls, v):
        if v < 1: raise ValueError("Quantity must be at least 1")
        return v


class BookingCreateRequest(BaseModel):
    vehicle_id:          int
    pickup_date:         datetime
    dropoff_date:        datetime
    pickup_location_id:  int
    dropoff_location_id: int
    customer:            CustomerInfo
    extras:              list[BookingExtraItem] = []
    coupon_code:         Optional[str] = None

    @field_validator("pickup_date", "dropoff_date")
    @classmethod
    def normalize_tz(cls, v: datetime) -> datetime:
        return to_utc(v)

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon(cls, v):
        if v is None: return v
        return v.strip().upper() or None

    @model_validator(mode="after")
    def check_booking(self) -> "BookingCreateRequest":
        if self.pickup_date <= datetime.now(timezone.utc):
            raise ValueError("pickup_date must be in the future")
        if self.dropoff_date <= self.pickup_date:
            raise ValueError("dropoff_date must be after pickup_date")
        extra_ids = [e.extra_id for e in self.extras]
        if len(extra_ids) != len(set(extra_ids)):
            raise ValueError("Each extra may only be listed once")
        return self


class BookingStatusUpdateRequest(BaseModel):
    status:       BookingStatus
    notes:        Optional[str] = None
    payment_link: Optional[str] = None

    @field_validator("payment_link")
    @classmethod
    def check_link(cls, v):
        if v is None: return v
        v = v.strip()
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("payment_link must be an http(s) URL")
        return v or None
