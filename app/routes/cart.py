from datetime import datetime
from typing import Optional
from uuid import uuid4
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from app.database import get_session
from app.models.cart import Cart, CartItem
from app.models.course import Course
from app.models.course_session import CourseSession
from app.models.user import User
from app.schemas.cart_schemas import CartAddRequest, CartInitRequest, CartMergeRequest
from app.services.order_service import available_spots
from app.utils.token import get_current_user, get_optional_user

router = APIRouter()


def _user_cart(session: Session, user_id: int) -> Optional[Cart]:
    return session.exec(select(Cart).where(Cart.user_id == user_id)).first()


def _anonymous_cart(session: Session, anonymous_id: str) -> Optional[Cart]:
    return session.exec(
        select(Cart).where(Cart.anonymous_id == anonymous_id).where(Cart.user_id == None)  # noqa: E711
    ).first()


def _check_access(cart: Optional[Cart], user: Optional[User]) -> Cart:
    if not cart:
        raise HTTPException(404, "Cart not found")
    if cart.user_id is not None and (user is None or cart.user_id != user.id):
        raise HTTPException(403, "Not your cart")
    return cart


def cart_view(session: Session, cart: Cart) -> dict:
    items = session.exec(select(CartItem).where(CartItem.cart_id == cart.id)).all()

    result = []
    total = 0.0
    currency = "SAR"
    for item in items:
        course = session.get(Course, item.course_id)
        if not course:
            continue
        line_total = course.price * item.qty
        total += line_total
        currency = course.currency
        result.append({
            "id": item.id,
            "course_id": course.id,
            "session_id": item.session_id,
            "slug": course.slug,
            "title_ar": course.title_ar,
            "title_en": course.title_en,
            "price": course.price,
            "currency": course.currency,
            "qty": item.qty,
            "line_total": line_total,
        })

    return {
        "cart_id": cart.id,
        "anonymous_id": cart.anonymous_id,
        "items": result,
        "total": total,
        "currency": currency,
    }


@router.post("/init")
def init_cart(
    payload: CartInitRequest,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user:
        cart = _user_cart(session, current_user.id)
        if not cart:
            cart = Cart(user_id=current_user.id)
    else:
        cart = _anonymous_cart(session, payload.anonymous_id) if payload.anonymous_id else None
        if not cart:
            cart = Cart(anonymous_id=payload.anonymous_id or str(uuid4()))

    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart_view(session, cart)


@router.get("")
def get_cart(
    anonymous_id: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    if current_user:
        cart = _user_cart(session, current_user.id)
    elif anonymous_id:
        cart = _anonymous_cart(session, anonymous_id)
    else:
        raise HTTPException(400, "anonymous_id is required for guest carts")

    if not cart:
        raise HTTPException(404, "Cart not found")
    return cart_view(session, cart)


@router.post("/items")
def add_item(
    payload: CartAddRequest,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    cart = _check_access(session.get(Cart, payload.cart_id), current_user)

    if payload.qty < 1:
        raise HTTPException(400, "Quantity must be at least 1")

    course = session.get(Course, payload.course_id)
    if not course or not course.is_active:
        raise HTTPException(404, "Course not found")

    if payload.session_id is not None:
        course_session = session.get(CourseSession, payload.session_id)
        if not course_session or course_session.course_id != course.id:
            raise HTTPException(400, "Session does not belong to this course")
        spots = available_spots(session, course_session)
        if spots is not None and spots < payload.qty:
            raise HTTPException(400, "Session is full")

    existing = session.exec(
        select(CartItem)
        .where(CartItem.cart_id == cart.id)
        .where(CartItem.course_id == course.id)
        .where(CartItem.session_id == payload.session_id)
    ).first()
    if existing:
        raise HTTPException(400, "Course is already in the cart")

    session.add(CartItem(
        cart_id=cart.id,
        course_id=course.id,
        session_id=payload.session_id,
        qty=payload.qty,
    ))
    cart.updated_at = datetime.utcnow()
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart_view(session, cart)


@router.delete("/items/{item_id}")
def remove_item(
    item_id: int,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    item = session.get(CartItem, item_id)
    if not item:
        raise HTTPException(404, "Cart item not found")

    cart = _check_access(session.get(Cart, item.cart_id), current_user)
    session.delete(item)
    cart.updated_at = datetime.utcnow()
    session.add(cart)
    session.commit()
    session.refresh(cart)
    return cart_view(session, cart)


@router.post("/merge")
def merge_cart(
    payload: CartMergeRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    """Move a guest cart's items into the user's cart after login."""
    anonymous = _anonymous_cart(session, payload.anonymous_id)
    user_cart = _user_cart(session, current_user.id)

    if not anonymous:
        if not user_cart:
            user_cart = Cart(user_id=current_user.id)
            session.add(user_cart)
            session.commit()
            session.refresh(user_cart)
        return cart_view(session, user_cart)

    if not user_cart:
        # adopt the guest cart as-is
        anonymous.user_id = current_user.id
        anonymous.updated_at = datetime.utcnow()
        session.add(anonymous)
        session.commit()
        session.refresh(anonymous)
        return cart_view(session, anonymous)

    existing = {
        (i.course_id, i.session_id)
        for i in session.exec(select(CartItem).where(CartItem.cart_id == user_cart.id)).all()
    }
    for item in session.exec(select(CartItem).where(CartItem.cart_id == anonymous.id)).all():
        if (item.course_id, item.session_id) not in existing:
            session.add(CartItem(
                cart_id=user_cart.id,
                course_id=item.course_id,
                session_id=item.session_id,
                qty=item.qty,
            ))

    session.delete(anonymous)
    user_cart.updated_at = datetime.utcnow()
    session.add(user_cart)
    session.commit()
    session.refresh(user_cart)
    return cart_view(session, user_cart)
