import json
from datetime import datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest
from jose import jwt

from app.config import settings
from app.models.payment import Payment, PaymentStatus
from app.services.gateways import ClickPayGateway, HyperPayGateway, PaymentGateway, TamaraGateway
from app.services.gateways.base import append_query, compute_hmac_sha256, verify_hmac_signature
from app.services.gateways.tamara import derive_failure_url, split_name


def _config(**overrides):
    return settings.model_copy(update=overrides)


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.json.return_value = body or {}
    response.text = json.dumps(body or {})
    return response


class TestGatewayInterface:
    def test_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            PaymentGateway()

    def test_adapters_implement_interface(self):
        for gateway in (ClickPayGateway(), HyperPayGateway(), TamaraGateway()):
            assert isinstance(gateway, PaymentGateway)
            assert gateway.provider_name in ("ClickPay", "HyperPay", "Tamara")


class TestSignatures:
    def test_no_secret_skips_validation(self):
        assert verify_hmac_signature("{}", None, None)

    def test_missing_signature_rejected(self):
        assert not verify_hmac_signature("{}", None, "secret")

    def test_matching_signature_is_case_insensitive(self):
        sig = compute_hmac_sha256('{"a":1}', "secret")
        assert verify_hmac_signature('{"a":1}', sig.upper(), "secret")

    def test_tampered_payload_rejected(self):
        sig = compute_hmac_sha256('{"a":1}', "secret")
        assert not verify_hmac_signature('{"a":2}', sig, "secret")


def test_append_query():
    assert append_query("https://x.sa/done", "orderId", 5) == "https://x.sa/done?orderId=5"
    assert append_query("https://x.sa/done?lang=ar", "orderId", 5) == "https://x.sa/done?lang=ar&orderId=5"


class TestClickPay:
    def test_success_code_maps_to_completed(self, session):
        payload = json.dumps({"cart_id": "12", "respCode": "000", "tran_ref": "TST2"})
        result = ClickPayGateway().parse_webhook(payload, None, session)

        assert result.order_id == 12
        assert result.status == PaymentStatus.completed
        assert result.provider_ref == "TST2"

    def test_other_code_maps_to_failed(self, session):
        payload = json.dumps({"cart_id": "12", "respCode": "51"})
        assert ClickPayGateway().parse_webhook(payload, None, session).status == PaymentStatus.failed

    def test_bad_signature_rejected(self, session):
        gateway = ClickPayGateway(_config(clickpay_webhook_secret="s3cret"))
        payload = json.dumps({"cart_id": "12", "respCode": "00"})

        assert gateway.parse_webhook(payload, "deadbeef", session) is None
        assert gateway.parse_webhook(payload, compute_hmac_sha256(payload, "s3cret"), session) is not None

    def test_non_numeric_cart_id_rejected(self, session):
        assert ClickPayGateway().parse_webhook('{"cart_id": "abc"}', None, session) is None

    def test_initiate_returns_redirect(self, user, live_course, make_order):
        order, _ = make_order(user, live_course)
        body = {"redirect_url": "https://secure.clickpay.com.sa/pay/abc", "tran_ref": "TST9"}

        with patch("app.services.gateways.clickpay.requests.post", return_value=_response(200, body)) as post:
            result = ClickPayGateway().initiate_payment(order, user, [], "https://ersa.sa/done")

        assert result.success
        assert result.checkout_id == "TST9"
        sent = post.call_args.kwargs["json"]
        assert sent["cart_id"] == str(order.id)
        assert sent["cart_amount"] == "500.00"

    def test_initiate_http_error(self, user, live_course, make_order):
        order, _ = make_order(user, live_course)
        with patch("app.services.gateways.clickpay.requests.post", return_value=_response(401, {"message": "auth"})):
            result = ClickPayGateway().initiate_payment(order, user, [], "https://ersa.sa/done")
        assert not result.success


class TestHyperPay:
    def test_status_mapping(self, session):
        gateway = HyperPayGateway()
        for raw, expected in (
            ("Paid", PaymentStatus.completed),
            ("success", PaymentStatus.completed),
            ("FAILED", PaymentStatus.failed),
            ("cancelled", PaymentStatus.cancelled),
            ("pending", PaymentStatus.processing),
        ):
            payload = json.dumps({"OrderId": 3, "Status": raw, "TransactionId": "HP1"})
            assert gateway.parse_webhook(payload, None, session).status == expected

    def test_processed_at_is_parsed(self, session):
        payload = json.dumps({"OrderId": 3, "Status": "paid", "ProcessedAt": "2025-01-05T10:00:00Z"})
        result = HyperPayGateway().parse_webhook(payload, None, session)
        assert result.captured_at == datetime(2025, 1, 5, 10, 0, 0)

    def test_return_url_gets_order_id(self, user, live_course, make_order):
        order, _ = make_order(user, live_course, provider="HyperPay")
        with patch("app.services.gateways.hyperpay.requests.post", return_value=_response(200, {"id": "chk-1"})) as post:
            result = HyperPayGateway().initiate_payment(order, user, [], "https://ersa.sa/done")

        assert result.checkout_url.endswith("/chk-1")
        assert post.call_args.kwargs["data"]["shopperResultUrl"] == f"https://ersa.sa/done?orderId={order.id}"


class TestTamara:
    def test_failure_url_derivation(self):
        assert derive_failure_url("https://ersa.sa/en/checkout/success?orderId=1", "failed") == \
            "https://ersa.sa/en/checkout/failed?orderId=1"
        assert derive_failure_url("https://ersa.sa/done", "cancelled") == "https://ersa.sa/done?status=cancelled"

    def test_split_name(self):
        assert split_name("Sara Ahmed Ali") == ("Sara", "Ahmed Ali")
        assert split_name("Sara") == ("Sara", "Customer")
        assert split_name(None) == ("Customer", "Customer")

    def test_token_validation(self, session):
        gateway = TamaraGateway(_config(tamara_notification_token="tamara-secret"))
        good = jwt.encode({"exp": datetime.utcnow() + timedelta(minutes=5)}, "tamara-secret", algorithm="HS256")
        bad = jwt.encode({"exp": datetime.utcnow() + timedelta(minutes=5)}, "other", algorithm="HS256")

        assert gateway.validate_token(f"Bearer {good}")
        assert not gateway.validate_token(bad)
        assert not gateway.validate_token(None)

    def test_placeholder_token_skips_validation(self):
        assert TamaraGateway(_config(tamara_notification_token="your-token-here")).validate_token(None)

    def test_reference_id_resolves_order(self, session):
        payload = json.dumps({"order_reference_id": "42", "order_id": "tam-1", "status": "approved"})
        result = TamaraGateway().parse_webhook(payload, None, session)

        assert result.order_id == 42
        assert result.provider_ref == "tam-1"
        assert result.status == PaymentStatus.completed

    def test_nested_order_and_payment_lookup(self, session, user, live_course, make_order):
        order, _ = make_order(user, live_course, provider=None)
        session.add(Payment(order_id=order.id, provider="Tamara", provider_ref="tam-77"))
        session.commit()

        payload = json.dumps({"order": {"order_id": "tam-77", "status": "declined"}})
        result = TamaraGateway().parse_webhook(payload, None, session)

        assert result.order_id == order.id
        assert result.status == PaymentStatus.failed

    def test_unresolvable_payload_rejected(self, session):
        assert TamaraGateway().parse_webhook('{"status": "approved"}', None, session) is None

    @pytest.mark.parametrize("raw", ["canceled", "cancelled"])
    def test_cancel_spellings(self, session, raw):
        payload = json.dumps({"order_reference_id": "1", "status": raw})
        assert TamaraGateway().parse_webhook(payload, None, session).status == PaymentStatus.cancelled
