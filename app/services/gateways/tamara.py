import json
import logging
from datetime import datetime
from typing import List, Optional

import requests
from jose import jwt, JWTError
from sqlmodel import Session, select

from app.config import settings
from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services.gateways.base import (
    PaymentGateway,
    PaymentInitiationResult,
    WebhookResult,
    append_query,
    format_amount,
)

logger = logging.getLogger(__name__)

WEBHOOK_LEEWAY_SECONDS = 300

STATUS_MAP = {
    "approved": PaymentStatus.completed,
    "paid": PaymentStatus.completed,
    "success": PaymentStatus.completed,
    "captured": PaymentStatus.completed,
    "cancelled": PaymentStatus.cancelled,
    "canceled": PaymentStatus.cancelled,
    "declined": PaymentStatus.failed,
    "failed": PaymentStatus.failed,
    "rejected": PaymentStatus.failed,
}


def derive_failure_url(success_url: str, status: str) -> str:
    if "/checkout/success" in success_url.lower():
        index = success_url.lower().index("/checkout/success")
        return success_url[:index] + "/checkout/failed" + success_url[index + len("/checkout/success"):]
    return append_query(success_url, "status", status)


def split_name(full_name: Optional[str]):
    parts = (full_name or "").split()
    if not parts:
        return "Customer", "Customer"
    return parts[0], " ".join(parts[1:]) or "Customer"


def _money(amount: float, currency: str) -> dict:
    return {"amount": format_amount(amount), "currency": currency}


def _lookup(data: dict, *keys) -> Optional[str]:
    """First non-empty value among keys, at the top level or under "order"."""
    nested = data.get("order") if isinstance(data.get("order"), dict) else {}
    for source in (data, nested):
        for key in keys:
            value = source.get(key)
            if value not in (None, ""):
                return str(value)
    return None


class TamaraGateway(PaymentGateway):
    provider_name = "Tamara"

    def __init__(self, config=settings):
        self.api_base_url = (config.tamara_api_base_url or "").rstrip("/")
        self.api_token = config.tamara_api_token
        self.notification_token = config.tamara_notification_token
        self.notification_url = f"{config.app_base_url.rstrip('/')}/api/payments/tamara/webhook"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_base_url and self.api_token)

    def _build_items(self, order: Order, items: List[OrderItem]) -> list:
        if not items:
            return [{
                "name": "Training Course",
                "reference_id": str(order.id),
                "type": "digital",
                "sku": str(order.id),
                "quantity": 1,
                "unit_price": _money(order.amount, order.currency),
                "total_amount": _money(order.amount, order.currency),
            }]

        return [
            {
                "name": item.title_en or "Training Course",
                "reference_id": str(item.course_id),
                "type": "digital",
                "sku": str(item.course_id),
                "quantity": item.qty,
                "unit_price": _money(item.price, order.currency),
                "total_amount": _money(item.price * item.qty, order.currency),
            }
            for item in items
        ]

    def initiate_payment(
        self,
        order: Order,
        user: User,
        items: List[OrderItem],
        return_url: str,
    ) -> PaymentInitiationResult:
        if not self.is_configured:
            return PaymentInitiationResult(success=False, error="Tamara is not configured")

        if "orderid=" not in return_url.lower():
            return_url = append_query(return_url, "orderId", order.id)

        currency = order.currency or "SAR"
        first_name, last_name = split_name(user.full_name)
        body = {
            "order_reference_id": str(order.id),
            "description": f"Training Course Order {order.id}",
            "country_code": "SA",
            "payment_type": "PAY_BY_INSTALMENTS",
            "total_amount": _money(order.amount, currency),
            "shipping_amount": _money(0, currency),
            "tax_amount": _money(0, currency),
            "discount_amount": _money(0, currency),
            "merchant_url": {
                "success": return_url,
                "cancel": derive_failure_url(return_url, "cancelled"),
                "failure": derive_failure_url(return_url, "failed"),
                "notification": self.notification_url,
            },
            "consumer": {
                "first_name": first_name,
                "last_name": last_name,
                "phone_number": user.phone or "",
                "email": user.email,
            },
            "items": self._build_items(order, items),
        }

        try:
            response = requests.post(
                f"{self.api_base_url}/checkout",
                json=body,
                headers={"Authorization": f"Bearer {self.api_token}"},
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"Tamara request failed for order {order.id}: {e}")
            return PaymentInitiationResult(success=False, error=str(e))

        if response.status_code >= 400:
            logger.error(
                f"Tamara checkout creation failed ({response.status_code}) for order {order.id}: {response.text}"
            )
            return PaymentInitiationResult(success=False, error="Failed to create Tamara checkout session")

        data = response.json()
        if not data.get("checkout_url"):
            logger.error(f"Tamara checkout response missing checkout_url: {data}")
            return PaymentInitiationResult(success=False, error="Invalid Tamara checkout response")

        return PaymentInitiationResult(
            success=True,
            checkout_url=data["checkout_url"],
            checkout_id=data.get("order_id") or data.get("checkout_id"),
        )

    def validate_token(self, token: Optional[str]) -> bool:
        if not self.notification_token or self.notification_token.lower().startswith("your-"):
            logger.warning("Tamara webhook validation skipped, no notification token configured")
            return True

        token = (token or "").strip()
        if token.lower().startswith("bearer "):
            token = token[len("bearer "):].strip()
        if not token:
            return False

        try:
            jwt.decode(
                token,
                self.notification_token,
                algorithms=["HS256"],
                options={"verify_aud": False, "verify_iss": False, "leeway": WEBHOOK_LEEWAY_SECONDS},
            )
        except JWTError as e:
            logger.warning(f"Tamara webhook token validation failed: {e}")
            return False
        return True

    def parse_webhook(
        self,
        payload: str,
        signature: Optional[str],
        session: Session,
    ) -> Optional[WebhookResult]:
        if not self.validate_token(signature):
            logger.warning("Invalid Tamara webhook token")
            return None

        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning("Malformed Tamara webhook payload")
            return None
        if not isinstance(data, dict):
            return None

        tamara_order_id = _lookup(data, "order_id", "orderId")
        order_id = None

        reference = _lookup(data, "order_reference_id", "orderReferenceId")
        if reference and reference.isdigit():
            order_id = int(reference)
        elif tamara_order_id:
            payment = session.exec(
                select(Payment)
                .where(Payment.provider == self.provider_name)
                .where(Payment.provider_ref == tamara_order_id)
            ).first()
            if payment:
                order_id = payment.order_id

        if order_id is None:
            logger.warning("Could not resolve local order id from Tamara webhook payload")
            return None

        raw_status = (_lookup(data, "status") or "").strip().lower()

        return WebhookResult(
            order_id=order_id,
            status=STATUS_MAP.get(raw_status, PaymentStatus.processing),
            provider_ref=tamara_order_id,
            captured_at=datetime.utcnow(),
            message=raw_status,
        )

    def refund(self, payment: Payment, order: Order, amount: Optional[float] = None) -> bool:
        logger.warning(f"Tamara refund is not supported, payment {payment.id}")
        return False
