"""Unit tests for PaystackPaymentGateway (httpx.MockTransport, no network)"""

import hashlib
import hmac
import json
import httpx
import pytest
from decimal import Decimal

from src.adapter.services.paystack_gateway import (
    PaystackPaymentGateway,
    from_minor_units,
    to_minor_units,
)
from src.app.services.payment_gateway import PaymentGatewayError

SECRET = "sk_test_secret"


def gateway_with(handler, **kwargs) -> PaystackPaymentGateway:
    return PaystackPaymentGateway(
        secret_key=SECRET,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestMinorUnits:

    @pytest.mark.parametrize(
        "amount, minor",
        [
            (Decimal("50.00"), 5000),
            (Decimal("0.01"), 1),
            (Decimal("10.005"), 1001),
            (Decimal("1234.56"), 123456),
        ],
    )
    def test_to_minor_units(self, amount, minor):
        assert to_minor_units(amount) == minor

    def test_from_minor_units(self):
        assert from_minor_units(5000) == Decimal("50.00")
        assert from_minor_units("199") == Decimal("1.99")


@pytest.mark.asyncio
class TestInitialize:

    async def test_posts_minor_units_and_returns_session(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "message": "Authorization URL created",
                    "data": {
                        "authorization_url": "https://checkout.paystack.com/abc",
                        "access_code": "abc",
                        "reference": "PSK-REF-1",
                    },
                },
            )

        gateway = gateway_with(handler, callback_url="https://app.example.com/wallet/callback")

        session = await gateway.initialize(
            "ama@example.com", Decimal("50.00"), "GHS", {"account_id": "acc_1"}
        )

        assert session.reference == "PSK-REF-1"
        assert session.authorization_url == "https://checkout.paystack.com/abc"
        assert captured["url"] == "https://api.paystack.co/transaction/initialize"
        assert captured["auth"] == f"Bearer {SECRET}"
        assert captured["body"] == {
            "email": "ama@example.com",
            "amount": 5000,
            "currency": "GHS",
            "metadata": {"account_id": "acc_1"},
            "callback_url": "https://app.example.com/wallet/callback",
        }

    async def test_rejection_raises_with_gateway_message(self):
        def handler(request):
            return httpx.Response(200, json={"status": False, "message": "Invalid email"})

        with pytest.raises(PaymentGatewayError, match="Invalid email"):
            await gateway_with(handler).initialize("bad", Decimal("10.00"), "GHS")

    async def test_missing_fields_raise(self):
        def handler(request):
            return httpx.Response(200, json={"status": True, "data": {"reference": "PSK-1"}})

        with pytest.raises(PaymentGatewayError):
            await gateway_with(handler).initialize("ama@example.com", Decimal("10.00"), "GHS")


@pytest.mark.asyncio
class TestVerify:

    async def test_converts_amount_to_major_units(self):
        def handler(request):
            assert request.url.path == "/transaction/verify/PSK-REF-1"
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "data": {
                        "reference": "PSK-REF-1",
                        "status": "success",
                        "amount": 5000,
                        "currency": "GHS",
                        "customer": {"email": "ama@example.com"},
                        "metadata": {"account_id": "acc_1"},
                    },
                },
            )

        verification = await gateway_with(handler).verify("PSK-REF-1")

        assert verification.is_successful
        assert verification.amount == Decimal("50.00")
        assert verification.currency == "GHS"
        assert verification.customer_email == "ama@example.com"
        assert verification.metadata == {"account_id": "acc_1"}

    async def test_non_dict_metadata_becomes_empty(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"status": True, "data": {"status": "abandoned", "amount": 100, "metadata": ""}},
            )

        verification = await gateway_with(handler).verify("PSK-REF-2")

        assert verification.reference == "PSK-REF-2"
        assert verification.is_final_failure
        assert verification.metadata == {}

    async def test_http_error_raises(self):
        def handler(request):
            return httpx.Response(500, text="upstream down")

        with pytest.raises(PaymentGatewayError, match="HTTP 500"):
            await gateway_with(handler).verify("PSK-REF-1")

    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(PaymentGatewayError, match="timed out"):
            await gateway_with(handler).verify("PSK-REF-1")

    async def test_non_json_body_raises(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(PaymentGatewayError, match="Malformed"):
            await gateway_with(handler).verify("PSK-REF-1")


class TestVerifySignature:

    def test_valid_signature(self):
        body = b'{"event":"charge.success","data":{"reference":"PSK-1"}}'
        signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

        assert PaystackPaymentGateway(secret_key=SECRET).verify_signature(body, signature)

    def test_tampered_body_is_rejected(self):
        body = b'{"event":"charge.success","data":{"reference":"PSK-1"}}'
        signature = hmac.new(SECRET.encode(), body, hashlib.sha512).hexdigest()

        assert not PaystackPaymentGateway(secret_key=SECRET).verify_signature(body + b" ", signature)

    @pytest.mark.parametrize("signature", [None, ""])
    def test_missing_signature_is_rejected(self, signature):
        assert not PaystackPaymentGateway(secret_key=SECRET).verify_signature(b"{}", signature)

    def test_missing_secret_rejects_everything(self):
        body = b"{}"
        signature = hmac.new(b"", body, hashlib.sha512).hexdigest()

        assert not PaystackPaymentGateway(secret_key="").verify_signature(body, signature)
