from app.services.gateways.base import (
    PaymentGateway,
    PaymentGatewayError,
    PaymentInitiationResult,
    WebhookResult,
)
from app.services.gateways.clickpay import ClickPayGateway
from app.services.gateways.hyperpay import HyperPayGateway
from app.services.gateways.tamara import TamaraGateway
