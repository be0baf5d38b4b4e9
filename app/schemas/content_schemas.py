from typing import Optional
from sqlmodel import SQLModel


class PageCreate(SQLModel):
    page_key: str
    title_ar: str
    title_en: str


class PageUpdate(SQLModel):
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    is_published: Optional[bool] = None


class SectionCreate(SQLModel):
    section_key: str
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class SectionUpdate(SQLModel):
    title_ar: Optional[str] = None
    title_en: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class BlockCreate(SQLModel):
    block_key: str
    block_type: str = "text"
    content_ar: Optional[str] = None
    content_en: Optional[str] = None
    image_key: Optional[str] = None
    link_url: Optional[str] = None
    display_order: int = 0
    is_active: bool = True


class BlockUpdate(SQLModel):
    block_type: Optional[str] = None
    content_ar: Optional[str] = None
    content_en: Optional[str] = None
    image_key: Optional[str] = None
    link_url: Optional[str] = None
    display_order: Optional[int] = None
    is_active: Optional[bool] = None


class VersionCreate(SQLModel):
    change_note: Optional[str] = None
