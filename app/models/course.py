from enum import Enum
from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CourseType(str, Enum):
    live = "live"
    pdf = "pdf"


class CourseLevel(str, Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    slug: str = Field(index=True, unique=True)

    #Shop Details
    price: float
    currency: str = Field(default="SAR", max_length=3)
    type: CourseType = Field(default=CourseType.live)
    level: CourseLevel = Field(default=CourseLevel.beginner)
    category_id: Optional[int] = Field(default=None, foreign_key="course_category.id")

    #bilingual text
    title_ar: str
    title_en: str
    summary_ar: Optional[str] = None
    summary_en: Optional[str] = None
    description_ar: Optional[str] = None
    description_en: Optional[str] = None
    course_topics_ar: Optional[str] = None
    course_topics_en: Optional[str] = None

    #schedule
    duration_ar: Optional[str] = None
    duration_en: Optional[str] = None
    starts_on: Optional[datetime] = None
    ends_on: Optional[datetime] = None
    sessions_notes_ar: Optional[str] = None
    sessions_notes_en: Optional[str] = None

    #instructors
    instructor_name_ar: Optional[str] = None
    instructor_name_en: Optional[str] = None
    instructors_bio_ar: Optional[str] = None
    instructors_bio_en: Optional[str] = None

    video_url: Optional[str] = None
    photo_key: Optional[str] = None
    tags: Optional[str] = None  # comma separated string

    is_active: bool = True
    is_featured: bool = False

    #timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
