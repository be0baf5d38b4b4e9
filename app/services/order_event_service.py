import logging
from typing import List, Optional

from sqlmodel import Session, select

from app.models.order_event import OrderEvent

logger = logging.getLogger(__name__)


def log_order_event(
    session: Session,
    order_id: int,
    event_type: str,
    label: str,
    created_by: str = "system",
    meta: Optional[dict] = None,
) -> OrderEvent:
    # added to the caller's transaction, never committed here
    event = OrderEvent(order_id=order_id, event_type=event_type, label=label, meta=meta, created_by=created_by)
    session.add(event)
    logger.debug(f"Order {order_id}: {event_type} by {created_by}")
    return event


def get_order_timeline(session: Session, order_id: int) -> List[OrderEvent]:
    query = select(OrderEvent).where(OrderEvent.order_id == order_id)
    return session.exec(query.order_by(OrderEvent.created_at, OrderEvent.id)).all()
