from datetime import datetime
from typing import List, Optional
from sqlmodel import Field, SQLModel

from app.models.course import CourseLevel, CourseType


class CourseCreate(SQLModel):
    slug: Optional[str] = None
    title_ar: str
    title_en: str
    price: float
    currency: str = "SAR"
    type: CourseType = CourseType.live
    level: CourseLevel = CourseLevel.beginner
    category_id: Optional[int] = None
    summary_ar: Optional[str] = None
    summary_en: Optional[str] = None
    description_ar: Optional[str] = None
    description_en: Optional[str] = None
    course_topics_ar: Optional[str] = None
    course_topics_en: Optional[str] = None
    duration_ar: Optional[str] = None
    duration_en: Optional[str] = None
    starts_on: Optional[datetime] = None
    ends_on: Optional[datetime] = None
    sessions_notes_ar: Optional[str] = None
    sessions_notes_en: Optional[str] = None
    instructor_name_ar: Optional[str] = None
    instructor_name_en: Optional[str] = None
    instructors_bio_ar: Optional[str] = None
    instructors_bio_en: Optional[str] = None
    video_url: Optional[str] = None
    tags: Optional[str] = None
    is_active: bool = True
    is_featured: bool = False
    instructor_ids: List[int] = []
    sub_category_ids: List[int] = []


class CourseUpdate(SQLModel):
    slug: Optional[str] = None
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    type: Optional[CourseType] = None
    level: Optional[CourseLevel] = None
    category_id: Optional[int] = None
    summary_ar: Optional[str] = None
    summary_en: Optional[str] = None
    description_ar: Optional[str] = None
    description_en: Optional[str] = None
    course_topics_ar: Optional[str] = None
    course_topics_en: Optional[str] = None
    duration_ar: Optional[str] = None
    duration_en: Optional[str] = None
    starts_on: Optional[datetime] = None
    ends_on: Optional[datetime] = None
    sessions_notes_ar: Optional[str] = None
    sessions_notes_en: Optional[str] = None
    instructor_name_ar: Optional[str] = None
    instructor_name_en: Optional[str] = None
    instructors_bio_ar: Optional[str] = None
    instructors_bio_en: Optional[str] = None
    video_url: Optional[str] = None
    tags: Optional[str] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    instructor_ids: Optional[List[int]] = None
    sub_category_ids: Optional[List[int]] = None


class SessionCreate(SQLModel):
    title_ar: str
    title_en: str
    description_ar: Optional[str] = None
    description_en: Optional[str] = None
    start_at: datetime
    end_at: datetime
    teams_link: Optional[str] = None
    capacity: Optional[int] = None


class SessionUpdate(SQLModel):
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    description_ar: Optional[str] = None
    description_en: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    teams_link: Optional[str] = None
    capacity: Optional[int] = None


class CategoryCreate(SQLModel):
    title_ar: str
    title_en: str
    subtitle_ar: Optional[str] = None
    subtitle_en: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class CategoryUpdate(SQLModel):
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    subtitle_ar: Optional[str] = None
    subtitle_en: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class SubCategoryCreate(SQLModel):
    title_ar: str
    title_en: str
    display_order: int = 0
    is_active: bool = True


class SubCategoryUpdate(SQLModel):
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class InstructorCreate(SQLModel):
    instructor_name_en: str = Field(max_length=255)
    instructor_name_ar: str = Field(max_length=255)
    instructor_bio_en: Optional[str] = Field(default=None, max_length=2500)
    instructor_bio_ar: Optional[str] = Field(default=None, max_length=2500)
    course_ids: List[int] = []


class InstructorUpdate(SQLModel):
    instructor_name_en: Optional[str] = Field(default=None, max_length=255)
    instructor_name_ar: Optional[str] = Field(default=None, max_length=255)
    instructor_bio_en: Optional[str] = Field(default=None, max_length=2500)
    instructor_bio_ar: Optional[str] = Field(default=None, max_length=2500)
    course_ids: Optional[List[int]] = None
