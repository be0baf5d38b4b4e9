import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlmodel import Session, select

from app.config import settings
from app.models.bill import BillStatus
from app.models.order import Order, OrderStatus
from app.models.order_item import OrderItem
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services import email_service, enrollment_service
from app.services.bill_service import mark_order_bill
from app.services.gateways import (
    ClickPayGateway,
    HyperPayGateway,
    PaymentGateway,
    PaymentGatewayError,
    TamaraGateway,
)
from app.services.order_event_service import log_order_event
from app.services.order_service import set_order_status

logger = logging.getLogger(__name__)

# payment_gateway_method setting -> gateway
GATEWAY_METHODS = {
    1: "HyperPay",
    2: "ClickPay",
    3: "Tamara",
}

TERMINAL_STATUSES = (
    PaymentStatus.completed,
    PaymentStatus.failed,
    PaymentStatus.cancelled,
    PaymentStatus.refunded,
)

SETTLED_STATUSES = (PaymentStatus.completed, PaymentStatus.refunded)

PAID_ORDER_STATUSES = (
    OrderStatus.paid,
    OrderStatus.under_process,
    OrderStatus.processed,
    OrderStatus.refunded,
)


def get_registered_gateways() -> Dict[str, PaymentGateway]:
    gateways = [HyperPayGateway(), ClickPayGateway(), TamaraGateway()]
    return {g.provider_name: g for g in gateways}


def get_default_gateway() -> str:
    return GATEWAY_METHODS.get(settings.payment_gateway_method, settings.default_gateway)


def get_available_gateways() -> List[str]:
    method = settings.payment_gateway_method
    if method == 0:
        return list(get_registered_gateways().keys())
    if method in GATEWAY_METHODS:
        return [GATEWAY_METHODS[method]]
    return [get_default_gateway()]


def get_gateway(provider: str) -> Optional[PaymentGateway]:
    return get_registered_gateways().get(provider)


def get_payment_by_order_id(session: Session, order_id: int, provider: Optional[str] = None) -> Optional[Payment]:
    query = select(Payment).where(Payment.order_id == order_id)
    if provider:
        query = query.where(Payment.provider == provider)
    return session.exec(query.order_by(Payment.created_at.desc(), Payment.id.desc())).first()


def create_checkout_url(
    session: Session,
    order: Order,
    return_url: str,
    provider: Optional[str] = None,
) -> str:
    provider = provider or get_default_gateway()
    if provider not in get_available_gateways():
        raise ValueError(f"Payment provider {provider} is not available")

    gateway = get_gateway(provider)
    if gateway is None:
        raise ValueError(f"Payment provider {provider} is not available")

    user = session.get(User, order.user_id)
    items = session.exec(select(OrderItem).where(OrderItem.order_id == order.id)).all()

    result = gateway.initiate_payment(order, user, items, return_url)
    if not result.success:
        logger.error(f"{provider} checkout failed for order {order.id}: {result.error}")
        raise PaymentGatewayError(result.error or "Payment initiation failed")

    payment = session.exec(
        select(Payment)
        .where(Payment.order_id == order.id)
        .where(Payment.provider == provider)
        .where(Payment.status == PaymentStatus.pending)
    ).first()
    if payment:
        payment.provider_ref = result.checkout_id
        payment.updated_at = datetime.utcnow()
    else:
        payment = Payment(
            order_id=order.id,
            provider=provider,
            provider_ref=result.checkout_id,
            status=PaymentStatus.pending,
        )
    session.add(payment)

    if order.status in (OrderStatus.new, OrderStatus.failed):
        set_order_status(session, order, OrderStatus.pending_payment, created_by=f"user:{order.user_id}")

    log_order_event(
        session,
        order.id,
        event_type="payment_initiated",
        label=f"Checkout opened with {provider}",
        created_by=f"user:{order.user_id}",
        meta={"provider": provider, "checkout_id": result.checkout_id},
    )
    session.commit()

    logger.info(f"{provider} checkout created for order {order.id}")
    return result.checkout_url


def _after_payment_completed(session: Session, order: Order, enrollments):
    """Runs after commit. Nothing here may fail the payment."""
    try:
        if not email_service.send_order_confirmation(session, order):
            logger.warning(f"Order confirmation email failed for order {order.id}")
    except Exception:
        logger.exception(f"Error sending order confirmation for order {order.id}")

    enrollment_service.fulfill_enrollments(session, enrollments)


def apply_payment_status(
    session: Session,
    order: Order,
    payment: Payment,
    status: PaymentStatus,
    provider_ref: Optional[str] = None,
    captured_at: Optional[datetime] = None,
    raw_payload: Optional[str] = None,
    source: str = "webhook",
) -> bool:
    """
    Reconcile a reported payment status with local state.
    Safe to call repeatedly with the same report.
    """
    provider = payment.provider

    # 1. duplicate delivery
    if (
        payment.status == status
        and status in TERMINAL_STATUSES
        and (provider_ref is None or provider_ref == payment.provider_ref)
    ):
        logger.info(f"Duplicate {provider} {status.value} for order {order.id}, ignoring")
        return True

    # 2. never regress a settled payment
    regresses = (
        (payment.status == PaymentStatus.refunded and status != PaymentStatus.refunded)
        or (payment.status == PaymentStatus.completed and status not in SETTLED_STATUSES)
    )
    if regresses:
        logger.warning(
            f"Ignoring late {provider} {status.value} for order {order.id}, payment already {payment.status.value}"
        )
        log_order_event(
            session,
            order.id,
            event_type="payment_event_ignored",
            label=f"Late {status.value} from {provider} ignored",
            created_by=provider,
            meta={"reported_status": status.value, "payment_status": payment.status.value, "provider_ref": provider_ref},
        )
        session.commit()
        return True

    # 3. record what the provider told us
    payment.status = status
    if provider_ref:
        payment.provider_ref = provider_ref
    if raw_payload is not None:
        payment.raw_payload = raw_payload
    if status == PaymentStatus.completed:
        payment.captured_at = captured_at or datetime.utcnow()
    payment.updated_at = datetime.utcnow()
    session.add(payment)

    if status == PaymentStatus.completed:
        was_paid = order.status in PAID_ORDER_STATUSES
        set_order_status(session, order, OrderStatus.paid, created_by=provider)
        mark_order_bill(session, order.id, BillStatus.paid, provider, payment.provider_ref)
        enrollments = enrollment_service.create_enrollments_from_order(session, order)

        log_order_event(
            session,
            order.id,
            event_type="payment_completed",
            label=f"Payment captured by {provider}",
            created_by=provider,
            meta={"provider_ref": payment.provider_ref, "source": source},
        )
        session.commit()
        session.refresh(order)
        logger.info(f"Order {order.id} paid via {provider} ({payment.provider_ref})")

        if not was_paid:
            _after_payment_completed(session, order, enrollments)
        return True

    if status == PaymentStatus.refunded:
        set_order_status(session, order, OrderStatus.refunded, created_by=provider)

    if status in (PaymentStatus.failed, PaymentStatus.cancelled):
        if order.status in PAID_ORDER_STATUSES:
            logger.warning(f"Order {order.id} already {order.status.value}, not marking {status.value}")
        else:
            target = (
                OrderStatus.cancelled
                if status == PaymentStatus.cancelled and provider == "Tamara"
                else OrderStatus.failed
            )
            if set_order_status(session, order, target, created_by=provider):
                mark_order_bill(session, order.id, BillStatus.failed, provider, payment.provider_ref)

        log_order_event(
            session,
            order.id,
            event_type=f"payment_{status.value}",
            label=f"Payment {status.value} at {provider}",
            created_by=provider,
            meta={"provider_ref": payment.provider_ref, "source": source},
        )

    session.commit()
    return True


def process_webhook(
    session: Session,
    payload: str,
    signature: Optional[str],
    provider: str,
) -> bool:
    gateway = get_gateway(provider)
    if gateway is None:
        logger.warning(f"Webhook for unknown provider {provider}")
        return False

    result = gateway.parse_webhook(payload, signature, session)
    if result is None:
        logger.warning(f"{provider} webhook rejected")
        return False

    order = session.get(Order, result.order_id)
    if not order:
        logger.warning(f"{provider} webhook for unknown order {result.order_id}")
        return False

    payment = get_payment_by_order_id(session, order.id, provider)
    if not payment:
        logger.warning(f"No {provider} payment found for order {order.id}")
        return False

    return apply_payment_status(
        session,
        order,
        payment,
        result.status,
        provider_ref=result.provider_ref,
        captured_at=result.captured_at,
        raw_payload=payload,
    )


def verify_payment(
    session: Session,
    user: User,
    order_id: int,
    force_complete: bool = False,
    tran_ref: Optional[str] = None,
    is_admin: bool = False,
) -> dict:
    """
    Manual fallback for when provider webhooks cannot reach us.
    Raises LookupError when the order or its payment is missing, and
    PermissionError when a customer forces completion while
    ``allow_manual_payment_completion`` is off.
    """
    order = session.get(Order, order_id)
    if not order or (order.user_id != user.id and not is_admin):
        raise LookupError("Order not found")

    if force_complete and not (is_admin or settings.allow_manual_payment_completion):
        logger.warning(f"User {user.id} tried to force-complete order {order_id}")
        raise PermissionError("Manual payment completion is restricted to admins")

    payment = get_payment_by_order_id(session, order.id)
    if not payment:
        raise LookupError("Payment not found")

    if payment.status == PaymentStatus.completed and order.status == OrderStatus.paid:
        return {"success": True, "message": "Payment already completed", "status": order.status.value}

    if force_complete and tran_ref:
        logger.warning(f"Manually completing payment for order {order.id} with tran_ref {tran_ref}")
        apply_payment_status(
            session,
            order,
            payment,
            PaymentStatus.completed,
            provider_ref=tran_ref,
            source=f"manual_verification:user:{user.id}",
        )
        session.refresh(order)
        return {"success": True, "message": "Payment marked as completed", "status": order.status.value}

    return {"success": False, "message": "Payment verification pending", "status": order.status.value}


def refund_payment(session: Session, payment_id: int, amount: Optional[float] = None) -> bool:
    payment = session.get(Payment, payment_id)
    if not payment:
        raise LookupError("Payment not found")
    if payment.status != PaymentStatus.completed:
        raise ValueError("Only completed payments can be refunded")

    order = session.get(Order, payment.order_id)
    gateway = get_gateway(payment.provider)
    if gateway is None or not gateway.refund(payment, order, amount):
        logger.error(f"Refund failed for payment {payment.id} (order {payment.order_id})")
        return False

    payment.status = PaymentStatus.refunded
    payment.updated_at = datetime.utcnow()
    session.add(payment)
    set_order_status(session, order, OrderStatus.refunded, created_by=payment.provider)
    log_order_event(
        session,
        order.id,
        event_type="payment_refunded",
        label=f"Refunded via {payment.provider}",
        created_by=payment.provider,
        meta={"amount": amount if amount is not None else order.amount},
    )
    session.commit()
    logger.info(f"Payment {payment.id} refunded")
    return True
