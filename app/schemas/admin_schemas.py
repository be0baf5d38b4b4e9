from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field

from app.models.user import UserStatus


class UserStatusUpdate(BaseModel):
    status: UserStatus
    admin_notes: Optional[str] = None


class AdminRoleUpdate(BaseModel):
    is_admin: bool


class AdminUserCreate(BaseModel):
    full_name: str
    email: EmailStr
    password: str = Field(min_length=8)
    phone: Optional[str] = None
    locale: str = "en"
    roles: List[str] = []


class DeliverMaterialsRequest(BaseModel):
    attachment_ids: Optional[List[int]] = None
