from typing import List, Optional
from pydantic import BaseModel


class PaymentConfigResponse(BaseModel):
    gateway_method: int
    available_gateways: List[str]
    default_gateway: str
    show_selector: bool


class CheckoutRequest(BaseModel):
    order_id: int
    return_url: str
    payment_provider: Optional[str] = None


class CheckoutResponse(BaseModel):
    redirect_url: str


class VerifyPaymentRequest(BaseModel):
    order_id: int
    force_complete: bool = False
    tran_ref: Optional[str] = None


class RefundRequest(BaseModel):
    amount: Optional[float] = None
