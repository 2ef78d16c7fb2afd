from pydantic import BaseModel, EmailStr, field_validator


# ─── Request Schemas ──────────────────────────────────────────────────────────
class LoginRequest(BaseModel):
    email:    EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


# ─── Response Schemas ─────────────────────────────────────────────────────────
class AdminUserResponse(BaseModel):
    id:        int
    email:     str
    name:      str
    role:      str
    is_active: bool


class LoginResponse(BaseModel):
    access_token: str
    token_type:   str = "Bearer"
    expires_in:   int
    user:         AdminUserResponse
