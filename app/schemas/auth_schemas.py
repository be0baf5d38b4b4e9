from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import List, Optional


class UserRegister(BaseModel):
    full_name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    password: str = Field(min_length=8)
    confirm_password: str
    phone: Optional[str] = None
    locale: str = "en"
    country: Optional[str] = None

    @model_validator(mode="after")
    def validate_passwords(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if self.locale not in ("en", "ar"):
            raise ValueError("Locale must be 'en' or 'ar'")
        return self


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    roles: List[str] = []


class RegisterResponse(BaseModel):
    message: str
    user_id: int
    email: EmailStr
    status: str


class VerifyEmailRequest(BaseModel):
    token: str


class ResendVerificationRequest(BaseModel):
    email: EmailStr


class GoogleTokenRequest(BaseModel):
    token: str


class MeResponse(BaseModel):
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    locale: str
    country: Optional[str] = None
    status: str
    is_admin: bool
    is_super_admin: bool
    roles: List[str] = []
