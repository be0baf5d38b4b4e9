import logging
from datetime import datetime
from typing import Optional
from sqlmodel import Session, select

from app.models.bill import Bill, BillStatus
from app.models.order import Order, OrderStatus
from app.services.order_service import set_order_status

logger = logging.getLogger(__name__)

BILL_TO_ORDER_STATUS = {
    BillStatus.paid: OrderStatus.paid,
    BillStatus.failed: OrderStatus.failed,
    BillStatus.expired: OrderStatus.expired,
}


def get_bill_by_order_id(session: Session, order_id: int) -> Optional[Bill]:
    return session.exec(select(Bill).where(Bill.order_id == order_id)).first()


def update_bill_status(
    session: Session,
    bill_id: int,
    status: BillStatus,
    provider: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> Optional[Bill]:
    """
    Update a bill and mirror the status onto its order.
    The order only moves if the transition table allows it.
    """
    bill = session.get(Bill, bill_id)
    if not bill:
        logger.warning(f"Bill {bill_id} not found")
        return None

    bill.status = status
    if provider:
        bill.payment_provider = provider
    if transaction_id:
        bill.provider_transaction_id = transaction_id
    bill.updated_at = datetime.utcnow()
    session.add(bill)

    order_status = BILL_TO_ORDER_STATUS.get(status)
    if order_status:
        order = session.get(Order, bill.order_id)
        if order:
            set_order_status(session, order, order_status, created_by=provider or "system")

    session.commit()
    session.refresh(bill)
    logger.info(f"Bill {bill.id} for order {bill.order_id} is now {status.value}")
    return bill


def mark_order_bill(
    session: Session,
    order_id: int,
    status: BillStatus,
    provider: Optional[str] = None,
    transaction_id: Optional[str] = None,
) -> Optional[Bill]:
    """Same as update_bill_status but without committing or touching the order."""
    bill = get_bill_by_order_id(session, order_id)
    if not bill:
        logger.warning(f"No bill found for order {order_id}")
        return None

    bill.status = status
    if provider:
        bill.payment_provider = provider
    if transaction_id:
        bill.provider_transaction_id = transaction_id
    bill.updated_at = datetime.utcnow()
    session.add(bill)
    return bill
