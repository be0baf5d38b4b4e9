from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class ContactStatus(str, Enum):
    new = "new"
    in_progress = "in_progress"
    resolved = "resolved"
    closed = "closed"


class ContactMessage(SQLModel, table=True):
    __tablename__ = "contact_message"
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    email: str = Field(index=True)
    phone: Optional[str] = None
    subject: str
    message: str
    locale: str = "en"

    status: ContactStatus = Field(default=ContactStatus.new)
    admin_response: Optional[str] = None
    responded_by: Optional[int] = Field(default=None, foreign_key="user.id")
    responded_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
