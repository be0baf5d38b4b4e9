from abc import ABC, abstractmethod
import hashlib
import hmac
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel
from sqlmodel import Session

from app.models.order import Order
from app.models.order_item import OrderItem
from app.models.payment import Payment, PaymentStatus
from app.models.user import User


class PaymentGatewayError(Exception):
    """Raised when a gateway refuses to open a checkout."""


class PaymentInitiationResult(BaseModel):
    success: bool
    checkout_url: Optional[str] = None
    checkout_id: Optional[str] = None
    error: Optional[str] = None


class WebhookResult(BaseModel):
    order_id: int
    status: PaymentStatus
    provider_ref: Optional[str] = None
    captured_at: Optional[datetime] = None
    message: Optional[str] = None


class PaymentGateway(ABC):
    provider_name: str = ""

    @abstractmethod
    def initiate_payment(
        self,
        order: Order,
        user: User,
        items: List[OrderItem],
        return_url: str,
    ) -> PaymentInitiationResult:
        raise NotImplementedError

    @abstractmethod
    def parse_webhook(
        self,
        payload: str,
        signature: Optional[str],
        session: Session,
    ) -> Optional[WebhookResult]:
        raise NotImplementedError

    @abstractmethod
    def refund(self, payment: Payment, order: Order, amount: Optional[float] = None) -> bool:
        raise NotImplementedError


def compute_hmac_sha256(payload: str, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def verify_hmac_signature(payload: str, signature: Optional[str], secret: Optional[str]) -> bool:
    """Hex HMAC-SHA256 check. An unset secret disables validation."""
    if not secret:
        return True
    if not signature:
        return False
    expected = compute_hmac_sha256(payload, secret)
    return hmac.compare_digest(expected.lower(), signature.strip().lower())


def format_amount(amount: float) -> str:
    return f"{amount:.2f}"


def append_query(url: str, key: str, value) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{key}={value}"
