from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.category import CourseCategory

router = APIRouter()


@router.get("")
def list_categories(active_only: bool = True, session: Session = Depends(get_session)):
    query = select(CourseCategory)
    if active_only:
        query = query.where(CourseCategory.is_active == True)  # noqa: E712
    return session.exec(query.order_by(CourseCategory.display_order, CourseCategory.id)).all()


@router.get("/{category_id}")
def get_category(category_id: int, session: Session = Depends(get_session)):
    category = session.get(CourseCategory, category_id)
    if not category:
        raise HTTPException(404, "Category not found")
    return category
