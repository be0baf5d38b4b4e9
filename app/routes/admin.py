import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, or_
from sqlmodel import Session, select

from app.database import get_session
from app.dependencies.admin import require_admin, require_super_admin
from app.models.attachment import Attachment
from app.models.bill import BillStatus
from app.models.contact import ContactMessage, ContactStatus
from app.models.course import Course
from app.models.enrollment import Enrollment
from app.models.order import Order, OrderStatus
from app.models.payment import Payment
from app.models.role import RoleNames
from app.models.user import User, UserStatus
from app.routes.orders import order_detail, order_out
from app.schemas.admin_schemas import (
    AdminRoleUpdate,
    AdminUserCreate,
    DeliverMaterialsRequest,
    UserStatusUpdate,
)
from app.schemas.order_schemas import OrderStatusUpdate
from app.services import enrollment_service, role_service, user_service
from app.services.bill_service import mark_order_bill
from app.services.order_event_service import get_order_timeline
from app.services.order_service import set_order_status
from app.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()

BILL_MIRROR = {
    OrderStatus.paid: BillStatus.paid,
    OrderStatus.failed: BillStatus.failed,
    OrderStatus.expired: BillStatus.expired,
}


def user_out(user: User) -> dict:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "locale": user.locale,
        "status": user.status.value,
        "is_admin": user.is_admin,
        "is_super_admin": user.is_super_admin,
        "last_login_at": user.last_login_at,
        "created_at": user.created_at,
    }


# -------- DASHBOARD --------

@router.get("/dashboard-stats")
def dashboard_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    paid_statuses = [OrderStatus.paid, OrderStatus.under_process, OrderStatus.processed]

    revenue = session.exec(
        select(func.coalesce(func.sum(Order.amount), 0)).where(Order.status.in_(paid_statuses))
    ).one()

    recent_orders = session.exec(select(Order).order_by(Order.created_at.desc()).limit(5)).all()

    return {
        "total_users": session.exec(select(func.count(User.id))).one(),
        "total_courses": session.exec(select(func.count(Course.id))).one(),
        "active_courses": session.exec(
            select(func.count(Course.id)).where(Course.is_active == True)  # noqa: E712
        ).one(),
        "total_orders": session.exec(select(func.count(Order.id))).one(),
        "paid_orders": session.exec(
            select(func.count(Order.id)).where(Order.status.in_(paid_statuses))
        ).one(),
        "total_enrollments": session.exec(select(func.count(Enrollment.id))).one(),
        "new_contact_messages": session.exec(
            select(func.count(ContactMessage.id)).where(ContactMessage.status == ContactStatus.new)
        ).one(),
        "total_revenue": float(revenue or 0),
        "recent_orders": [order_out(o) for o in recent_orders],
    }


# -------- USERS --------

@router.get("/users")
def list_users(
    search: Optional[str] = None,
    status: Optional[UserStatus] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(User)
    if search:
        like = f"%{search.lower()}%"
        query = query.where(or_(func.lower(User.full_name).like(like), func.lower(User.email).like(like)))
    if status:
        query = query.where(User.status == status)
    query = query.order_by(User.created_at.desc())
    return paginate(session=session, query=query, page=page, page_size=page_size, serializer=user_out)


@router.put("/users/{user_id}/status")
def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(404, "User not found")
    if user.id == admin.id:
        raise HTTPException(400, "You cannot change your own status")

    user.status = payload.status
    if payload.admin_notes is not None:
        user.admin_notes = payload.admin_notes
    session.add(user)
    session.commit()
    session.refresh(user)
    return user_out(user)


@router.put("/users/{user_id}/admin-role")
def update_admin_role(
    user_id: int,
    payload: AdminRoleUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    if not session.get(User, user_id):
        raise HTTPException(404, "User not found")

    if payload.is_admin:
        role_service.assign_role(session, user_id, RoleNames.ADMIN)
    else:
        role_service.remove_role(session, user_id, RoleNames.ADMIN)

    user = session.get(User, user_id)
    session.refresh(user)
    return user_out(user)


@router.post("/users")
def create_user(
    payload: AdminUserCreate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_super_admin),
):
    try:
        user = user_service.create_user(
            session,
            full_name=payload.full_name,
            email=payload.email,
            password=payload.password,
            phone=payload.phone,
            locale=payload.locale,
            status=UserStatus.active,
        )
    except ValueError as e:
        raise HTTPException(400, str(e))

    for role_name in payload.roles:
        if not role_service.assign_role(session, user.id, role_name):
            raise HTTPException(400, f"Unknown role {role_name}")

    session.refresh(user)
    return user_out(user)


# -------- ORDERS --------

@router.get("/orders")
def list_orders(
    status: Optional[OrderStatus] = None,
    user_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    query = select(Order)
    if status:
        query = query.where(Order.status == status)
    if user_id:
        query = query.where(Order.user_id == user_id)
    query = query.order_by(Order.created_at.desc())
    return paginate(session=session, query=query, page=page, page_size=page_size, serializer=order_out)


@router.get("/orders/{order_id}")
def get_order(
    order_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    user = session.get(User, order.user_id)
    payments = session.exec(select(Payment).where(Payment.order_id == order.id)).all()
    enrollments = enrollment_service.get_order_enrollments(session, order.id)

    data = order_detail(session, order)
    data["user"] = user_out(user) if user else None
    data["payments"] = [
        {
            "id": p.id,
            "provider": p.provider,
            "provider_ref": p.provider_ref,
            "status": p.status.value,
            "captured_at": p.captured_at,
            "created_at": p.created_at,
        }
        for p in payments
    ]
    data["enrollments"] = [
        {"id": e.id, "course_id": e.course_id, "session_id": e.session_id, "status": e.status.value}
        for e in enrollments
    ]
    data["timeline"] = [
        {
            "event_type": ev.event_type,
            "label": ev.label,
            "meta": ev.meta,
            "created_by": ev.created_by,
            "created_at": ev.created_at,
        }
        for ev in get_order_timeline(session, order.id)
    ]
    return data


@router.put("/orders/{order_id}/status")
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    old_status = order.status
    meta = {"note": payload.note} if payload.note else None
    if not set_order_status(session, order, payload.status, created_by=f"admin:{admin.id}", meta=meta):
        raise HTTPException(
            400, f"Cannot change status from {old_status.value} to {payload.status.value}"
        )

    if payload.status in BILL_MIRROR and old_status != payload.status:
        mark_order_bill(session, order.id, BILL_MIRROR[payload.status], provider="Admin")

    enrollments = []
    if payload.status == OrderStatus.paid:
        enrollments = enrollment_service.create_enrollments_from_order(session, order)

    session.commit()
    session.refresh(order)

    if enrollments:
        enrollment_service.fulfill_enrollments(session, enrollments)

    logger.info(f"Admin {admin.id} moved order {order.id} to {order.status.value}")
    return order_out(order)


# -------- ENROLLMENTS --------

@router.post("/enrollments/{enrollment_id}/send-live-details")
def send_live_details(
    enrollment_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not session.get(Enrollment, enrollment_id):
        raise HTTPException(404, "Enrollment not found")
    if not enrollment_service.send_live_details(session, enrollment_id):
        raise HTTPException(400, "Live details could not be sent")
    return {"message": "Live details sent"}


@router.post("/enrollments/{enrollment_id}/deliver-materials")
def deliver_materials(
    enrollment_id: int,
    payload: DeliverMaterialsRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    enrollment = session.get(Enrollment, enrollment_id)
    if not enrollment:
        raise HTTPException(404, "Enrollment not found")

    attachment_ids = payload.attachment_ids or [
        a.id for a in session.exec(
            select(Attachment).where(Attachment.course_id == enrollment.course_id)
        ).all()
    ]
    ok = enrollment_service.deliver_materials(session, enrollment_id, attachment_ids)

    if not ok:
        raise HTTPException(400, "Materials could not be delivered")
    return {"message": "Materials delivered"}


@router.post("/secure-links/{secure_link_id}/revoke")
def revoke_secure_link(
    secure_link_id: int,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    if not enrollment_service.revoke_secure_link(session, secure_link_id):
        raise HTTPException(404, "Secure link not found")
    return {"message": "Secure link revoked"}
