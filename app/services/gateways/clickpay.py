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
    format_amount,
    verify_hmac_signature,
)

logger = logging.getLogger(__name__)

SUCCESS_CODES = ("00", "000")


class ClickPayGateway(PaymentGateway):
    provider_name = "ClickPay"

    def __init__(self, config=settings):
        self.api_url = config.clickpay_api_url.rstrip("/")
        self.profile_id = config.clickpay_profile_id
        self.server_key = config.clickpay_server_key
        self.currency = config.clickpay_currency
        self.country = config.clickpay_merchant_country_code
        self.webhook_secret = config.clickpay_webhook_secret
        self.callback_url = f"{config.app_base_url.rstrip('/')}/api/payments/clickpay/webhook"

    def _post(self, body: dict) -> requests.Response:
        return requests.post(
            f"{self.api_url}/payment/request",
            json=body,
            headers={
                "Authorization": self.server_key,
                "Content-Type": "application/json",
            },
            timeout=30,
        )

    def initiate_payment(
        self,
        order: Order,
        user: User,
        items: List[OrderItem],
        return_url: str,
    ) -> PaymentInitiationResult:
        body = {
            "profile_id": self.profile_id,
            "tran_type": "sale",
            "tran_class": "ecom",
            "cart_id": str(order.id),
            "cart_description": f"Training Course Order {order.id}",
            "cart_currency": order.currency or self.currency,
            "cart_amount": format_amount(order.amount),
            "callback": self.callback_url,
            "return": return_url,
            "customer_details": {
                "name": user.full_name,
                "email": user.email,
                "phone": user.phone or "",
                "street1": "N/A",
                "city": "Riyadh",
                "state": "SA",
                "country": self.country,
                "zip": "00000",
            },
        }

        try:
            response = self._post(body)
        except requests.RequestException as e:
            logger.error(f"ClickPay request failed for order {order.id}: {e}")
            return PaymentInitiationResult(success=False, error=str(e))

        if response.status_code >= 400:
            logger.error(
                f"ClickPay payment request failed ({response.status_code}) for order {order.id}: {response.text}"
            )
            return PaymentInitiationResult(success=False, error="Failed to create payment request")

        data = response.json()
        if not data.get("redirect_url"):
            logger.error(f"ClickPay response missing redirect_url for order {order.id}: {data}")
            return PaymentInitiationResult(success=False, error="Invalid ClickPay response")

        return PaymentInitiationResult(
            success=True,
            checkout_url=data["redirect_url"],
            checkout_id=data.get("tran_ref"),
        )

    def parse_webhook(
        self,
        payload: str,
        signature: Optional[str],
        session: Session,
    ) -> Optional[WebhookResult]:
        if not verify_hmac_signature(payload, signature, self.webhook_secret):
            logger.warning("Invalid ClickPay webhook signature")
            return None

        try:
            data = json.loads(payload)
            order_id = int(data["cart_id"])
        except (ValueError, KeyError, TypeError):
            logger.warning("Malformed ClickPay webhook payload")
            return None

        resp_code = str(data.get("respCode") or "")
        status = PaymentStatus.completed if resp_code in SUCCESS_CODES else PaymentStatus.failed

        return WebhookResult(
            order_id=order_id,
            status=status,
            provider_ref=data.get("tran_ref"),
            captured_at=datetime.utcnow(),
            message=data.get("respMessage"),
        )

    def refund(self, payment: Payment, order: Order, amount: Optional[float] = None) -> bool:
        body = {
            "profile_id": self.profile_id,
            "tran_type": "refund",
            "tran_class": "ecom",
            "cart_id": str(order.id),
            "cart_currency": order.currency or self.currency,
            "cart_amount": format_amount(amount if amount is not None else order.amount),
            "cart_description": f"Refund for order {order.id}",
            "tran_ref": payment.provider_ref,
        }

        try:
            response = self._post(body)
        except requests.RequestException as e:
            logger.error(f"ClickPay refund failed for payment {payment.id}: {e}")
            return False

        if response.status_code >= 400:
            logger.error(f"ClickPay refund rejected ({response.status_code}): {response.text}")
            return False

        resp_code = str(response.json().get("respCode") or "")
        return resp_code in SUCCESS_CODES
