from pydantic import BaseModel, model_validator
from typing import Optional


class BlacklistRequest(BaseModel):
    is_blacklisted: bool
    reason:         Optional[str] = None

    @model_validator(mode="after")
    def check_reason(self) -> "BlacklistRequest":
        if self.reason is not None:
            self.reason = self.reason.strip() or None
        if not self.is_blacklisted:
            self.reason = None
        return self
