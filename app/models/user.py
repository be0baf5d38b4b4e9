from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class UserStatus(str, Enum):
    pending_email_verification = "pending_email_verification"
    active = "active"
    inactive = "inactive"
    suspended = "suspended"


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    full_name: str
    email: str = Field(index=True, unique=True)
    password: Optional[str] = None  # None for Google accounts
    phone: Optional[str] = None
    locale: str = Field(default="en")  # ar | en
    country: Optional[str] = None
    status: UserStatus = Field(default=UserStatus.pending_email_verification)

    is_admin: bool = Field(default=False)
    is_super_admin: bool = Field(default=False)
    last_login_at: Optional[datetime] = None
    admin_notes: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @property
    def can_login(self) -> bool:
        return self.status in (UserStatus.active, UserStatus.pending_email_verification)
