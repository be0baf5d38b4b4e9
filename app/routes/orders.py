import logging
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlmodel import Session, select

from app.database import get_session
from app.models.bill import Bill
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.user import User
from app.schemas.order_schemas import OrderCreateRequest
from app.services import order_service
from app.services.invoice_service import generate_invoice_pdf
from app.utils.pagination import paginate
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def order_out(order: Order) -> dict:
    return {
        "id": order.id,
        "invoice_number": order.invoice_number,
        "amount": order.amount,
        "currency": order.currency,
        "status": order.status.value,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def item_out(item: OrderItem) -> dict:
    return {
        "id": item.id,
        "course_id": item.course_id,
        "session_id": item.session_id,
        "title_en": item.title_en,
        "title_ar": item.title_ar,
        "price": item.price,
        "currency": item.currency,
        "qty": item.qty,
    }


def order_detail(session: Session, order: Order) -> dict:
    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    bill = session.exec(select(Bill).where(Bill.order_id == order.id)).first()

    data = order_out(order)
    data["items"] = [item_out(i) for i in items]
    data["bill"] = {
        "id": bill.id,
        "status": bill.status.value,
        "payment_provider": bill.payment_provider,
        "provider_transaction_id": bill.provider_transaction_id,
    } if bill else None
    return data


@router.post("")
def create_order(
    payload: OrderCreateRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        order = order_service.create_order_from_cart(session, payload.cart_id, current_user.id)
    except ValueError as e:
        raise HTTPException(400, str(e))

    return order_detail(session, order)


@router.get("")
def list_my_orders(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc())
    )
    return paginate(session=session, query=query, page=page, page_size=page_size, serializer=order_out)


@router.get("/{order_id}")
def get_my_order(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_user_order(session, current_user.id, order_id)
    if not order:
        raise HTTPException(404, "Order not found")
    return order_detail(session, order)


@router.get("/{order_id}/invoice")
def download_invoice(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = order_service.get_user_order(session, current_user.id, order_id)
    if not order:
        raise HTTPException(404, "Order not found")

    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()
    pdf = generate_invoice_pdf(order, current_user, items)

    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{order.invoice_number}.pdf"'},
    )
