from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime


class CourseCategory(SQLModel, table=True):
    __tablename__ = "course_category"
    id: Optional[int] = Field(default=None, primary_key=True)
    title_ar: str
    title_en: str
    subtitle_ar: Optional[str] = None
    subtitle_en: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CourseSubCategory(SQLModel, table=True):
    __tablename__ = "course_sub_category"
    id: Optional[int] = Field(default=None, primary_key=True)
    title_ar: str = Field(max_length=255)
    title_en: str = Field(max_length=255)
    display_order: int = 0
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CourseSubCategoryMapping(SQLModel, table=True):
    """Many-to-many link between courses and sub-categories."""
    __tablename__ = "course_sub_category_mapping"
    course_id: int = Field(foreign_key="course.id", primary_key=True)
    sub_category_id: int = Field(foreign_key="course_sub_category.id", primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
