from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional
from datetime import datetime


class ContentPage(SQLModel, table=True):
    __tablename__ = "content_page"
    id: Optional[int] = Field(default=None, primary_key=True)
    page_key: str = Field(index=True, unique=True)  # home | about | faq ...
    title_ar: str
    title_en: str
    is_published: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ContentSection(SQLModel, table=True):
    __tablename__ = "content_section"
    id: Optional[int] = Field(default=None, primary_key=True)
    page_id: int = Field(foreign_key="content_page.id", index=True)
    section_key: str
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ContentBlock(SQLModel, table=True):
    __tablename__ = "content_block"
    id: Optional[int] = Field(default=None, primary_key=True)
    section_id: int = Field(foreign_key="content_section.id", index=True)
    block_key: str
    block_type: str = "text"  # text | html | image | link
    content_ar: Optional[str] = None
    content_en: Optional[str] = None
    image_key: Optional[str] = None
    link_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ContentVersion(SQLModel, table=True):
    __tablename__ = "content_version"
    id: Optional[int] = Field(default=None, primary_key=True)
    page_id: int = Field(foreign_key="content_page.id", index=True)
    version_number: int
    snapshot: dict = Field(sa_column=Column(JSON))
    change_note: Optional[str] = None
    is_published: bool = False
    created_by: Optional[int] = Field(default=None, foreign_key="user.id")
    created_at: datetime = Field(default_factory=datetime.utcnow)
