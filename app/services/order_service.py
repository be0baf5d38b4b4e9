import logging
from datetime import datetime
from typing import Optional
from sqlalchemy import func
from sqlmodel import Session, select

from app.constants.order_status import can_transition
from app.models.bill import Bill, BillStatus
from app.models.cart import Cart, CartItem
from app.models.course import Course
from app.models.course_session import CourseSession
from app.models.enrollment import Enrollment, EnrollmentStatus
from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem
from app.services.order_event_service import log_order_event

logger = logging.getLogger(__name__)

SEAT_HOLDING_STATUSES = [
    EnrollmentStatus.paid,
    EnrollmentStatus.notified,
    EnrollmentStatus.completed,
]


def set_order_status(
    session: Session,
    order: Order,
    new_status: OrderStatus,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> bool:
    """
    Move an order through the transition table.
    Returns False (and leaves the order untouched) when the move is not allowed.
    """
    if order.status == new_status:
        return True

    if not can_transition(order.status, new_status):
        logger.warning(
            f"Order {order.id}: transition {order.status.value} -> {new_status.value} not allowed"
        )
        return False

    old_status = order.status
    order.status = new_status
    order.updated_at = datetime.utcnow()
    session.add(order)

    log_order_event(
        session,
        order.id,
        event_type=f"status_{new_status.value}",
        label=f"Status changed from {old_status.value} to {new_status.value}",
        created_by=created_by,
        meta=meta,
    )
    logger.info(f"Order {order.id}: {old_status.value} -> {new_status.value}")
    return True


def count_taken_seats(session: Session, session_id: int) -> int:
    return session.exec(
        select(func.count(Enrollment.id))
        .where(Enrollment.session_id == session_id)
        .where(Enrollment.status.in_(SEAT_HOLDING_STATUSES))
    ).one()


def available_spots(session: Session, course_session: CourseSession) -> Optional[int]:
    """None means unlimited."""
    if course_session.capacity is None:
        return None
    return max(course_session.capacity - count_taken_seats(session, course_session.id), 0)


def create_order_from_cart(session: Session, cart_id: int, user_id: int) -> Order:
    cart = session.get(Cart, cart_id)
    if not cart:
        raise ValueError("Cart not found")

    if cart.user_id is not None and cart.user_id != user_id:
        raise ValueError("Cart does not belong to this user")

    cart_items = session.exec(select(CartItem).where(CartItem.cart_id == cart.id)).all()
    if not cart_items:
        raise ValueError("Cart is empty")

    order_items = []
    for item in cart_items:
        course = session.get(Course, item.course_id)
        if not course or not course.is_active:
            raise ValueError(f"Course {item.course_id} is no longer available")

        if item.session_id:
            course_session = session.get(CourseSession, item.session_id)
            if not course_session or course_session.course_id != course.id:
                raise ValueError(f"Session {item.session_id} is not available")
            spots = available_spots(session, course_session)
            if spots is not None and spots < item.qty:
                raise ValueError(f"Session {item.session_id} is full")

        order_items.append(OrderItem(
            course_id=course.id,
            session_id=item.session_id,
            title_en=course.title_en,
            title_ar=course.title_ar,
            price=course.price,
            currency=course.currency,
            qty=item.qty,
        ))

    order = Order(
        user_id=user_id,
        amount=sum(i.price * i.qty for i in order_items),
        currency=order_items[0].currency,
        status=OrderStatus.new,
    )
    order.items = order_items
    session.add(order)
    session.flush()

    session.add(Bill(
        order_id=order.id,
        amount=order.amount,
        currency=order.currency,
        status=BillStatus.pending,
    ))

    log_order_event(
        session,
        order.id,
        event_type="order_placed",
        label="Order placed",
        created_by=f"user:{user_id}",
        meta={"items": len(order_items), "amount": order.amount, "currency": order.currency},
    )
    set_order_status(session, order, OrderStatus.pending_payment, created_by=f"user:{user_id}")

    session.delete(cart)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.id} created from cart {cart_id} for user {user_id}")
    return order


def get_user_order(session: Session, user_id: int, order_id: int) -> Optional[Order]:
    order = session.get(Order, order_id)
    if not order or order.user_id != user_id:
        return None
    return order
