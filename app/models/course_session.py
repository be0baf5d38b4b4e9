from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CourseSession(SQLModel, table=True):
    """A scheduled live run of a course (Teams meeting)."""
    __tablename__ = "course_session"
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)

    title_ar: str
    title_en: str
    description_ar: Optional[str] = None
    description_en: Optional[str] = None

    start_at: datetime
    end_at: datetime
    teams_link: Optional[str] = None
    capacity: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
