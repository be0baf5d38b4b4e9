import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlmodel import Session, select

from app.config import settings
from app.database import engine
from app.models.bill import BillStatus
from app.models.order import Order, OrderStatus
from app.services.bill_service import mark_order_bill
from app.services.order_service import set_order_status

logger = logging.getLogger(__name__)

INTERVAL_MINUTES = 30


def expire_unpaid_orders(session: Session, now: Optional[datetime] = None) -> int:
    cutoff = (now or datetime.utcnow()) - timedelta(hours=settings.payment_expiry_hours)

    orders = session.exec(
        select(Order)
        .where(Order.status == OrderStatus.pending_payment)
        .where(Order.created_at < cutoff)
    ).all()

    for order in orders:
        if set_order_status(session, order, OrderStatus.expired):
            mark_order_bill(session, order.id, BillStatus.expired)

    session.commit()

    if orders:
        logger.info(f"Expired {len(orders)} unpaid orders")
    return len(orders)


def run_order_expiry():
    with Session(engine) as session:
        expire_unpaid_orders(session)
