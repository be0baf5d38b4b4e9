from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class AttachmentType(str, Enum):
    pdf = "pdf"
    video = "video"
    document = "document"


class Attachment(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)

    file_name: str
    blob_path: str  # object storage key
    type: AttachmentType = Field(default=AttachmentType.pdf)
    is_revoked: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)
