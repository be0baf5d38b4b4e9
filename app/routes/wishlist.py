from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.course import Course
from app.models.user import User
from app.models.wishlist import Wishlist, WishlistItem
from app.routes.courses import course_summary
from app.schemas.cart_schemas import WishlistAddRequest
from app.utils.token import get_current_user

router = APIRouter()


def _get_or_create_wishlist(session: Session, user_id: int) -> Wishlist:
    wishlist = session.exec(select(Wishlist).where(Wishlist.user_id == user_id)).first()
    if not wishlist:
        wishlist = Wishlist(user_id=user_id)
        session.add(wishlist)
        session.commit()
        session.refresh(wishlist)
    return wishlist


def _find_item(session: Session, wishlist_id: int, course_id: int):
    return session.exec(
        select(WishlistItem)
        .where(WishlistItem.wishlist_id == wishlist_id, WishlistItem.course_id == course_id)
    ).first()


@router.get("/items")
def list_items(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    wishlist = _get_or_create_wishlist(session, current_user.id)
    rows = session.exec(
        select(WishlistItem, Course)
        .join(Course, WishlistItem.course_id == Course.id)
        .where(WishlistItem.wishlist_id == wishlist.id)
        .order_by(WishlistItem.created_at.desc())
    ).all()

    return [
        {"id": item.id, "added_at": item.created_at, "course": course_summary(course)}
        for item, course in rows
    ]


@router.post("/items")
def add_item(
    payload: WishlistAddRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    if not session.get(Course, payload.course_id):
        raise HTTPException(404, "Course not found")

    wishlist = _get_or_create_wishlist(session, current_user.id)
    if _find_item(session, wishlist.id, payload.course_id):
        return {"message": "Already in wishlist"}

    session.add(WishlistItem(wishlist_id=wishlist.id, course_id=payload.course_id))
    session.commit()
    return {"message": "Added to wishlist"}


@router.delete("/items/{course_id}")
def remove_item(
    course_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    wishlist = _get_or_create_wishlist(session, current_user.id)
    item = _find_item(session, wishlist.id, course_id)
    if not item:
        raise HTTPException(404, "Wishlist item not found")

    session.delete(item)
    session.commit()
    return {"message": "Removed from wishlist"}


@router.delete("/items")
def clear_items(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    wishlist = _get_or_create_wishlist(session, current_user.id)
    for item in session.exec(select(WishlistItem).where(WishlistItem.wishlist_id == wishlist.id)).all():
        session.delete(item)
    session.commit()
    return {"message": "Wishlist cleared"}


@router.get("/check/{course_id}")
def check_item(
    course_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    wishlist = _get_or_create_wishlist(session, current_user.id)
    return {"in_wishlist": _find_item(session, wishlist.id, course_id) is not None}
