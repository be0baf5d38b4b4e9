from app.models.order import OrderStatus

ALLOWED_TRANSITIONS = {
    OrderStatus.new: [OrderStatus.pending_payment, OrderStatus.cancelled],
    OrderStatus.pending_payment: [
        OrderStatus.paid,
        OrderStatus.failed,
        OrderStatus.cancelled,
        OrderStatus.expired,
    ],
    # a captured payment always wins, even after failure/expiry/cancel
    OrderStatus.failed: [OrderStatus.pending_payment, OrderStatus.paid],
    OrderStatus.expired: [OrderStatus.paid],
    OrderStatus.cancelled: [OrderStatus.paid],
    OrderStatus.paid: [OrderStatus.under_process, OrderStatus.refunded, OrderStatus.cancelled],
    OrderStatus.under_process: [OrderStatus.processed, OrderStatus.refunded, OrderStatus.cancelled],
    OrderStatus.processed: [OrderStatus.refunded],
    OrderStatus.refunded: [],
}


def can_transition(current: OrderStatus, new: OrderStatus) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])
