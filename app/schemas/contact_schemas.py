from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.contact import ContactStatus


class ContactSubmit(BaseModel):
    full_name: str = Field(min_length=2, max_length=200)
    email: EmailStr
    phone: Optional[str] = None
    subject: str = Field(min_length=2, max_length=200)
    message: str = Field(min_length=5, max_length=5000)
    locale: str = "en"


class ContactUpdate(BaseModel):
    status: Optional[ContactStatus] = None
    admin_response: Optional[str] = None
