from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class SecureLink(SQLModel, table=True):
    __tablename__ = "secure_link"
    id: Optional[int] = Field(default=None, primary_key=True)
    enrollment_id: int = Field(foreign_key="enrollment.id", index=True)
    attachment_id: int = Field(foreign_key="attachment.id", index=True)

    token: str = Field(index=True, unique=True)
    is_revoked: bool = False
    download_count: int = 0
    last_downloaded_at: Optional[datetime] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
