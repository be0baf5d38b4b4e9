from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class Instructor(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    instructor_name_en: str = Field(max_length=255, index=True)
    instructor_name_ar: str = Field(max_length=255)
    instructor_bio_en: Optional[str] = Field(default=None, max_length=2500)
    instructor_bio_ar: Optional[str] = Field(default=None, max_length=2500)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CourseInstructor(SQLModel, table=True):
    __tablename__ = "course_instructor"
    course_id: int = Field(foreign_key="course.id", primary_key=True)
    instructor_id: int = Field(foreign_key="instructor.id", primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
