from pydantic import BaseModel, Field, model_validator
from typing import Optional


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    phone: Optional[str] = None
    locale: Optional[str] = None
    country: Optional[str] = None

    @model_validator(mode="after")
    def validate_locale(self):
        if self.locale is not None and self.locale not in ("en", "ar"):
            raise ValueError("Locale must be 'en' or 'ar'")
        return self


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8)
    confirm_password: str

    @model_validator(mode="after")
    def validate_passwords(self):
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self
