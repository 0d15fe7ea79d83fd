"""Integration tests for the gateway and provider webhook endpoints"""

import json
import pytest
from decimal import Decimal
from httpx import AsyncClient

from src.adapter.services.paystack_gateway import SIGNATURE_HEADER
from src.domain.settlement_event import SettlementEventType

FULFILLMENT_WEBHOOK = "/fulfillment-webhook?token=valid-token"


def charge_event(event: str, reference: str, **data) -> bytes:
    return json.dumps({"event": event, "data": {"reference": reference, **data}}).encode()


async def start_deposit(client: AsyncClient, amount: str = "50.00") -> str:
    response = await client.post("/wallet/add-funds", json={"accountId": "acc_1", "amount": amount})
    return response.json()["reference"]


async def balance_of(client: AsyncClient) -> Decimal:
    response = await client.get("/wallet/balance", params={"accountId": "acc_1"})
    return Decimal(response.json()["balance"])


class TestPaymentWebhook:

    @pytest.mark.asyncio
    async def test_charge_success_credits_wallet(self, client: AsyncClient, seed_account, gateway):
        await seed_account(balance="10.00")
        reference = await start_deposit(client)
        gateway.will_verify(reference, "50.00")

        response = await client.post(
            "/payment-webhook",
            content=charge_event("charge.success", reference),
            headers={SIGNATURE_HEADER: "valid-signature"},
        )

        assert response.status_code == 200
        assert response.json() == {
            "received": True,
            "event": "charge.success",
            "reference": reference,
            "message": "Deposit successful",
        }
        assert await balance_of(client) == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_webhook_after_verification_is_idempotent(self, client: AsyncClient, seed_account, gateway):
        await seed_account(balance="10.00")
        reference = await start_deposit(client)
        gateway.will_verify(reference, "50.00")
        await client.get("/wallet/verify-payment", params={"reference": reference})

        response = await client.post(
            "/payment-webhook",
            content=charge_event("charge.success", reference),
            headers={SIGNATURE_HEADER: "valid-signature"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Deposit already processed"
        assert await balance_of(client) == Decimal("60.00")

    @pytest.mark.asyncio
    async def test_invalid_signature_is_rejected(self, client: AsyncClient, seed_account, gateway, publisher):
        await seed_account(balance="10.00")
        reference = await start_deposit(client)
        gateway.will_verify(reference, "50.00")

        response = await client.post(
            "/payment-webhook",
            content=charge_event("charge.success", reference),
            headers={SIGNATURE_HEADER: "forged"},
        )

        assert response.status_code == 401
        assert response.json()["code"] == "SIGNATURE_INVALID"
        assert gateway.verify_calls == []
        assert await balance_of(client) == Decimal("10.00")
        assert SettlementEventType.SIGNATURE_INVALID in publisher.types()

    @pytest.mark.asyncio
    async def test_missing_signature_is_rejected(self, client: AsyncClient):
        response = await client.post("/payment-webhook", content=charge_event("charge.success", "PSK-1"))

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_charge_failed_marks_deposit_failed(self, client: AsyncClient, seed_account):
        await seed_account(balance="10.00")
        reference = await start_deposit(client)

        response = await client.post(
            "/payment-webhook",
            content=charge_event("charge.failed", reference, gateway_response="Declined"),
            headers={SIGNATURE_HEADER: "valid-signature"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Payment failure recorded"
        history = (await client.get("/wallet/transactions", params={"accountId": "acc_1"})).json()
        assert history["transactions"][0]["status"] == "failed"
        assert await balance_of(client) == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_other_events_are_acknowledged(self, client: AsyncClient):
        response = await client.post(
            "/payment-webhook",
            content=json.dumps({"event": "transfer.success", "data": {}}).encode(),
            headers={SIGNATURE_HEADER: "valid-signature"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Event received"

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient):
        response = await client.post(
            "/payment-webhook",
            content=b"not json",
            headers={SIGNATURE_HEADER: "valid-signature"},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_PAYLOAD"


class TestFulfillmentWebhook:

    @pytest.mark.asyncio
    async def test_failure_report_refunds_completed_order(self, client: AsyncClient, seed_account):
        await seed_account(balance="100.00")
        await client.post(
            "/orders",
            json={
                "accountId": "acc_1",
                "phoneNumber": "0241234567",
                "network": "mtn",
                "dataAmountMB": 1000,
                "price": "6.00",
                "reference": "ORD-1",
            },
        )

        first = await client.post(
            FULFILLMENT_WEBHOOK, json={"reference": "ORD-1", "status": "failed", "message": "Delivery failed"}
        )
        second = await client.post(FULFILLMENT_WEBHOOK, json={"reference": "ORD-1", "status": "failed"})

        assert first.status_code == 200
        assert first.json() == {"received": True, "status": "failed", "refunded": True}
        assert second.status_code == 200
        assert second.json()["refunded"] is False
        assert await balance_of(client) == Decimal("100.00")

        order = (await client.get("/orders/ORD-1")).json()
        assert order["status"] == "failed"
        assert order["failure_reason"] == "Delivery failed"

    @pytest.mark.asyncio
    async def test_unknown_reference_returns_404(self, client: AsyncClient):
        response = await client.post(FULFILLMENT_WEBHOOK, json={"reference": "ORD-missing", "status": "success"})

        assert response.status_code == 404
        assert response.json()["code"] == "ORDER_NOT_FOUND"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "url", ["/fulfillment-webhook", "/fulfillment-webhook?token=forged-token"]
    )
    async def test_callback_without_valid_token_is_rejected(self, client: AsyncClient, seed_account, url):
        await seed_account(balance="100.00")
        await client.post(
            "/orders",
            json={
                "accountId": "acc_1",
                "phoneNumber": "0241234567",
                "network": "mtn",
                "dataAmountMB": 1000,
                "price": "6.00",
                "reference": "ORD-1",
            },
        )

        response = await client.post(url, json={"reference": "ORD-1", "status": "failed"})

        assert response.status_code == 401
        assert response.json()["code"] == "SIGNATURE_INVALID"
        assert await balance_of(client) == Decimal("94.00")
        assert (await client.get("/orders/ORD-1")).json()["status"] == "completed"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
