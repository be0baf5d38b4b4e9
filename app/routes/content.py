from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin
from app.models.content import ContentBlock, ContentPage, ContentSection, ContentVersion
from app.models.user import User
from app.schemas.content_schemas import (
    BlockCreate,
    BlockUpdate,
    PageCreate,
    PageUpdate,
    SectionCreate,
    SectionUpdate,
    VersionCreate,
)

router = APIRouter()


def _page_or_404(session: Session, page_key: str) -> ContentPage:
    page = session.exec(select(ContentPage).where(ContentPage.page_key == page_key)).first()
    if not page:
        raise HTTPException(404, "Page not found")
    return page


def page_tree(session: Session, page: ContentPage, include_inactive: bool = False) -> dict:
    section_query = select(ContentSection).where(ContentSection.page_id == page.id)
    if not include_inactive:
        section_query = section_query.where(ContentSection.is_active == True)  # noqa: E712
    sections = session.exec(section_query.order_by(ContentSection.display_order, ContentSection.id)).all()

    result = []
    for section in sections:
        block_query = select(ContentBlock).where(ContentBlock.section_id == section.id)
        if not include_inactive:
            block_query = block_query.where(ContentBlock.is_active == True)  # noqa: E712
        blocks = session.exec(block_query.order_by(ContentBlock.display_order, ContentBlock.id)).all()

        result.append({
            "id": section.id,
            "section_key": section.section_key,
            "title_ar": section.title_ar,
            "title_en": section.title_en,
            "display_order": section.display_order,
            "is_active": section.is_active,
            "blocks": [
                {
                    "id": b.id,
                    "block_key": b.block_key,
                    "block_type": b.block_type,
                    "content_ar": b.content_ar,
                    "content_en": b.content_en,
                    "image_key": b.image_key,
                    "link_url": b.link_url,
                    "display_order": b.display_order,
                    "is_active": b.is_active,
                }
                for b in blocks
            ],
        })

    return {
        "id": page.id,
        "page_key": page.page_key,
        "title_ar": page.title_ar,
        "title_en": page.title_en,
        "is_published": page.is_published,
        "updated_at": page.updated_at,
        "sections": result,
    }


def _touch_page(session: Session, page_id: int):
    page = session.get(ContentPage, page_id)
    if page:
        page.updated_at = datetime.utcnow()
        session.add(page)


# -------- PUBLIC --------

@router.get("/pages")
def list_published_pages(session: Session = Depends(get_session)):
    pages = session.exec(
        select(ContentPage).where(ContentPage.is_published == True)  # noqa: E712
    ).all()
    return [{"page_key": p.page_key, "title_ar": p.title_ar, "title_en": p.title_en} for p in pages]


@router.get("/pages/{page_key}")
def get_page_content(page_key: str, session: Session = Depends(get_session)):
    page = _page_or_404(session, page_key)
    if not page.is_published:
        raise HTTPException(404, "Page not found")
    return page_tree(session, page)


# -------- ADMIN --------

@router.get("/admin/pages/{page_key}")
def admin_get_page(
    page_key: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return page_tree(session, _page_or_404(session, page_key), include_inactive=True)


@router.post("/pages")
def create_page(
    payload: PageCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if session.exec(select(ContentPage).where(ContentPage.page_key == payload.page_key)).first():
        raise HTTPException(400, "Page key already exists")

    page = ContentPage(**payload.model_dump())
    session.add(page)
    session.commit()
    session.refresh(page)
    return page_tree(session, page, include_inactive=True)


@router.put("/pages/{page_key}")
def update_page(
    page_key: str,
    payload: PageUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    page = _page_or_404(session, page_key)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(page, field, value)
    page.updated_at = datetime.utcnow()
    session.add(page)
    session.commit()
    session.refresh(page)
    return page_tree(session, page, include_inactive=True)


@router.post("/pages/{page_key}/sections")
def create_section(
    page_key: str,
    payload: SectionCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    page = _page_or_404(session, page_key)
    section = ContentSection(page_id=page.id, **payload.model_dump())
    session.add(section)
    _touch_page(session, page.id)
    session.commit()
    session.refresh(section)
    return section


@router.put("/sections/{section_id}")
def update_section(
    section_id: int,
    payload: SectionUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    section = session.get(ContentSection, section_id)
    if not section:
        raise HTTPException(404, "Section not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(section, field, value)
    section.updated_at = datetime.utcnow()
    session.add(section)
    _touch_page(session, section.page_id)
    session.commit()
    session.refresh(section)
    return section


@router.delete("/sections/{section_id}")
def delete_section(
    section_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    section = session.get(ContentSection, section_id)
    if not section:
        raise HTTPException(404, "Section not found")

    for block in session.exec(select(ContentBlock).where(ContentBlock.section_id == section.id)).all():
        session.delete(block)
    session.delete(section)
    _touch_page(session, section.page_id)
    session.commit()
    return {"message": "Section deleted"}


@router.post("/sections/{section_id}/blocks")
def create_block(
    section_id: int,
    payload: BlockCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    section = session.get(ContentSection, section_id)
    if not section:
        raise HTTPException(404, "Section not found")

    block = ContentBlock(section_id=section.id, **payload.model_dump())
    session.add(block)
    _touch_page(session, section.page_id)
    session.commit()
    session.refresh(block)
    return block


@router.put("/blocks/{block_id}")
def update_block(
    block_id: int,
    payload: BlockUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    block = session.get(ContentBlock, block_id)
    if not block:
        raise HTTPException(404, "Block not found")

    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(block, field, value)
    block.updated_at = datetime.utcnow()
    session.add(block)
    section = session.get(ContentSection, block.section_id)
    if section:
        _touch_page(session, section.page_id)
    session.commit()
    session.refresh(block)
    return block


@router.delete("/blocks/{block_id}")
def delete_block(
    block_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    block = session.get(ContentBlock, block_id)
    if not block:
        raise HTTPException(404, "Block not found")
    session.delete(block)
    session.commit()
    return {"message": "Block deleted"}


@router.get("/pages/{page_key}/versions")
def list_versions(
    page_key: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    page = _page_or_404(session, page_key)
    return session.exec(
        select(ContentVersion)
        .where(ContentVersion.page_id == page.id)
        .order_by(ContentVersion.version_number.desc())
    ).all()


@router.post("/pages/{page_key}/versions")
def create_version(
    page_key: str,
    payload: VersionCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    page = _page_or_404(session, page_key)
    latest = session.exec(
        select(func.max(ContentVersion.version_number)).where(ContentVersion.page_id == page.id)
    ).one()

    snapshot = page_tree(session, page, include_inactive=True)
    snapshot["updated_at"] = page.updated_at.isoformat()

    version = ContentVersion(
        page_id=page.id,
        version_number=(latest or 0) + 1,
        snapshot=snapshot,
        change_note=payload.change_note,
        created_by=admin.id,
    )
    session.add(version)
    session.commit()
    session.refresh(version)
    return version


@router.post("/versions/{version_id}/publish")
def publish_version(
    version_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    version = session.get(ContentVersion, version_id)
    if not version:
        raise HTTPException(404, "Version not found")

    for other in session.exec(
        select(ContentVersion).where(ContentVersion.page_id == version.page_id)
    ).all():
        other.is_published = other.id == version.id
        session.add(other)

    page = session.get(ContentPage, version.page_id)
    page.is_published = True
    page.updated_at = datetime.utcnow()
    session.add(page)
    session.commit()
    return {"message": "Version published", "version_number": version.version_number}
