from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.category import CourseSubCategory

router = APIRouter()


@router.get("")
def list_sub_categories(active_only: bool = False, session: Session = Depends(get_session)):
    query = select(CourseSubCategory)
    if active_only:
        query = query.where(CourseSubCategory.is_active == True)  # noqa: E712
    return session.exec(query.order_by(CourseSubCategory.display_order, CourseSubCategory.title_en)).all()


@router.get("/{sub_category_id}")
def get_sub_category(sub_category_id: int, session: Session = Depends(get_session)):
    sub_category = session.get(CourseSubCategory, sub_category_id)
    if not sub_category:
        raise HTTPException(404, "Sub-category not found")
    return sub_category
