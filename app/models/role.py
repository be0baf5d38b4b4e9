from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class RoleNames:
    SUPER_ADMIN = "SuperAdmin"
    ADMIN = "Admin"
    OPERATION = "Operation"
    PUBLIC_USER = "PublicUser"

    ALL = [SUPER_ADMIN, ADMIN, OPERATION, PUBLIC_USER]


class Role(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class UserRole(SQLModel, table=True):
    __tablename__ = "user_role"
    user_id: int = Field(foreign_key="user.id", primary_key=True)
    role_id: int = Field(foreign_key="role.id", primary_key=True)
