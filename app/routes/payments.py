import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, RedirectResponse
from sqlmodel import Session

from app.config import settings
from app.database import get_session
from app.dependencies.admin import is_admin_user, require_admin
from app.models.order import Order, OrderStatus
from app.models.user import User
from app.schemas.payment_schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentConfigResponse,
    RefundRequest,
    VerifyPaymentRequest,
)
from app.services import payment_service
from app.services.gateways import PaymentGatewayError
from app.utils.token import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()

CHECKOUT_ALLOWED_STATUSES = (OrderStatus.new, OrderStatus.pending_payment, OrderStatus.failed)


@router.get("/config", response_model=PaymentConfigResponse)
def payment_config():
    available = payment_service.get_available_gateways()
    default = payment_service.get_default_gateway()
    return PaymentConfigResponse(
        gateway_method=settings.payment_gateway_method if len(available) == 1 else 0,
        available_gateways=available,
        default_gateway=default,
        show_selector=len(available) > 1,
    )


@router.post("/checkout", response_model=CheckoutResponse)
def create_checkout(
    payload: CheckoutRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    order = session.get(Order, payload.order_id)
    if not order or order.user_id != current_user.id:
        raise HTTPException(404, "Order not found")

    if order.status not in CHECKOUT_ALLOWED_STATUSES:
        raise HTTPException(400, "Order is not awaiting payment")

    try:
        url = payment_service.create_checkout_url(
            session, order, payload.return_url, payload.payment_provider
        )
    except ValueError as e:
        raise HTTPException(400, str(e))
    except PaymentGatewayError as e:
        raise HTTPException(502, str(e))

    return CheckoutResponse(redirect_url=url)


def _process_webhook_body(session: Session, body: bytes, provider: str, signature: Optional[str]) -> bool:
    try:
        payload = body.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning(f"{provider} webhook body is not valid UTF-8")
        return False

    # providers only need a 2xx/4xx, never a stack trace
    try:
        return payment_service.process_webhook(session, payload, signature, provider)
    except Exception:
        logger.exception(f"Error processing {provider} webhook")
        session.rollback()
        return False


async def _handle_webhook(request: Request, session: Session, provider: str, signature: Optional[str]):
    body = await request.body()
    # reconciliation blocks on the database, SendGrid and PDF rendering
    accepted = await run_in_threadpool(_process_webhook_body, session, body, provider, signature)

    if not accepted:
        return JSONResponse(status_code=400, content={"error": "Webhook rejected"})
    return {"received": True}


@router.post("/clickpay/webhook")
async def clickpay_webhook(request: Request, session: Session = Depends(get_session)):
    signature = request.headers.get("signature") or request.headers.get("X-Signature")
    return await _handle_webhook(request, session, "ClickPay", signature)


@router.post("/hyperpay/webhook")
async def hyperpay_webhook(request: Request, session: Session = Depends(get_session)):
    return await _handle_webhook(request, session, "HyperPay", request.headers.get("X-Signature"))


@router.post("/tamara/webhook")
async def tamara_webhook(request: Request, session: Session = Depends(get_session)):
    token = request.headers.get("Authorization") or request.query_params.get("tamaraToken")
    return await _handle_webhook(request, session, "Tamara", token)


@router.post("/webhook")
async def legacy_webhook(request: Request, session: Session = Depends(get_session)):
    """Older HyperPay notification URL."""
    return await _handle_webhook(request, session, "HyperPay", request.headers.get("X-Signature"))


@router.get("/return")
def payment_return(
    orderId: Optional[int] = None,
    status: Optional[str] = None,
    session: Session = Depends(get_session),
):
    frontend = settings.frontend_base_url.rstrip("/")

    order = session.get(Order, orderId) if orderId else None
    if not order:
        logger.warning(f"Invalid payment return for order {orderId}")
        return RedirectResponse(f"{frontend}/en/checkout/failed", status_code=302)

    if (status or "").lower() == "success" or order.status == OrderStatus.paid:
        return RedirectResponse(f"{frontend}/en/checkout/success?orderId={order.id}", status_code=302)

    logger.warning(f"Payment not successful for order {order.id}, status {order.status.value}")
    return RedirectResponse(f"{frontend}/en/checkout/failed?orderId={order.id}", status_code=302)


@router.post("/verify-payment")
def verify_payment(
    payload: VerifyPaymentRequest,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user),
):
    try:
        return payment_service.verify_payment(
            session,
            current_user,
            payload.order_id,
            force_complete=payload.force_complete,
            tran_ref=payload.tran_ref,
            is_admin=is_admin_user(session, current_user),
        )
    except LookupError as e:
        raise HTTPException(404, str(e))
    except PermissionError as e:
        raise HTTPException(403, str(e))


@router.post("/{payment_id}/refund")
def refund_payment(
    payment_id: int,
    payload: Optional[RefundRequest] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    try:
        ok = payment_service.refund_payment(session, payment_id, payload.amount if payload else None)
    except LookupError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    if not ok:
        raise HTTPException(400, "Failed to process refund")
    return {"message": "Refund processed successfully"}
