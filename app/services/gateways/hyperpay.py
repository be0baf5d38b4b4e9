import json
import logging
from datetime import datetime
from typing import List, Optional

import requests
from sqlmodel import Session

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
    verify_hmac_signature,
)

logger = logging.getLogger(__name__)

STATUS_MAP = {
    "paid": PaymentStatus.completed,
    "success": PaymentStatus.completed,
    "failed": PaymentStatus.failed,
    "cancelled": PaymentStatus.cancelled,
}


class HyperPayGateway(PaymentGateway):
    provider_name = "HyperPay"

    def __init__(self, config=settings):
        self.api_url = config.hyperpay_api_url.rstrip("/")
        self.entity_id = config.hyperpay_entity_id
        self.access_token = config.hyperpay_access_token
        self.checkout_url = config.hyperpay_checkout_url.rstrip("/")
        self.webhook_secret = config.hyperpay_webhook_secret
        self.notification_url = f"{config.app_base_url.rstrip('/')}/api/payments/hyperpay/webhook"

    @property
    def headers(self):
        return {"Authorization": f"Bearer {self.access_token}"}

    def initiate_payment(
        self,
        order: Order,
        user: User,
        items: List[OrderItem],
        return_url: str,
    ) -> PaymentInitiationResult:
        if "orderid=" not in return_url.lower():
            return_url = append_query(return_url, "orderId", order.id)

        # oppwa expects form encoded fields
        data = {
            "entityId": self.entity_id,
            "amount": format_amount(order.amount),
            "currency": order.currency,
            "paymentType": "DB",
            "merchantTransactionId": str(order.id),
            "customer.email": user.email,
            "customer.givenName": user.full_name,
            "billing.country": "SA",
            "shopperResultUrl": return_url,
            "notificationUrl": self.notification_url,
        }

        try:
            response = requests.post(
                f"{self.api_url}/v1/checkouts",
                data=data,
                headers=self.headers,
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"HyperPay request failed for order {order.id}: {e}")
            return PaymentInitiationResult(success=False, error=str(e))

        if response.status_code >= 400:
            logger.error(
                f"HyperPay checkout failed ({response.status_code}) for order {order.id}: {response.text}"
            )
            return PaymentInitiationResult(success=False, error="Failed to create checkout")

        checkout_id = response.json().get("id")
        if not checkout_id:
            return PaymentInitiationResult(success=False, error="Invalid HyperPay response")

        return PaymentInitiationResult(
            success=True,
            checkout_url=f"{self.checkout_url}/{checkout_id}",
            checkout_id=checkout_id,
        )

    def parse_webhook(
        self,
        payload: str,
        signature: Optional[str],
        session: Session,
    ) -> Optional[WebhookResult]:
        if not verify_hmac_signature(payload, signature, self.webhook_secret):
            logger.warning("Invalid HyperPay webhook signature")
            return None

        try:
            data = json.loads(payload)
            order_id = int(data["OrderId"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Malformed HyperPay webhook payload")
            return None

        raw_status = str(data.get("Status") or "").strip().lower()
        status = STATUS_MAP.get(raw_status, PaymentStatus.processing)

        captured_at = None
        if data.get("ProcessedAt"):
            try:
                captured_at = datetime.fromisoformat(str(data["ProcessedAt"]).replace("Z", "+00:00")).replace(tzinfo=None)
            except ValueError:
                captured_at = datetime.utcnow()

        return WebhookResult(
            order_id=order_id,
            status=status,
            provider_ref=data.get("TransactionId"),
            captured_at=captured_at or datetime.utcnow(),
            message=raw_status,
        )

    def refund(self, payment: Payment, order: Order, amount: Optional[float] = None) -> bool:
        data = {
            "entityId": self.entity_id,
            "amount": format_amount(amount if amount is not None else order.amount),
            "currency": order.currency,
            "paymentType": "RF",
            "referencedPaymentId": payment.provider_ref,
        }

        try:
            response = requests.post(
                f"{self.api_url}/v1/payments",
                data=data,
                headers=self.headers,
                timeout=30,
            )
        except requests.RequestException as e:
            logger.error(f"HyperPay refund failed for payment {payment.id}: {e}")
            return False

        if not response.ok:
            logger.error(f"HyperPay refund rejected ({response.status_code}): {response.text}")
            return False
        return True
