"""Unit tests for HubnetFulfillmentProvider (httpx.MockTransport, no network)"""

import json
import httpx
import pytest

from src.adapter.services.hubnet_provider import HubnetFulfillmentProvider
from src.app.services.fulfillment_provider import FulfillmentProviderError, FulfillmentRequest
from src.domain.network import Network

BASE_URL = "https://hubnet.test/api/transaction"


def provider_with(handler, **kwargs) -> HubnetFulfillmentProvider:
    return HubnetFulfillmentProvider(
        api_token="hub-token",
        base_url=BASE_URL,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def bundle_request(network: Network = Network.MTN, data_amount_mb: int = 1000) -> FulfillmentRequest:
    return FulfillmentRequest(
        network=network,
        phone_number="0241234567",
        data_amount_mb=data_amount_mb,
        reference="ORD-1",
    )


@pytest.mark.asyncio
class TestHubnetSubmit:

    async def test_posts_volume_in_mb_to_network_endpoint(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["token"] = request.headers["token"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": True, "transaction_id": 998877})

        provider = provider_with(handler, webhook_url="https://app.example.com/webhooks/fulfillment-webhook")

        receipt = await provider.submit(bundle_request(Network.AIRTELTIGO, 2048))

        assert receipt.transaction_id == "998877"
        assert captured["url"] == f"{BASE_URL}/at-new-transaction"
        assert captured["token"] == "Bearer hub-token"
        assert captured["body"] == {
            "phone": "0241234567",
            "volume": 2048,
            "reference": "ORD-1",
            "referrer": "0241234567",
            "webhook": "https://app.example.com/webhooks/fulfillment-webhook",
        }

    async def test_camel_case_transaction_id(self):
        def handler(request):
            return httpx.Response(201, json={"success": True, "transactionId": "HN-5"})

        receipt = await provider_with(handler).submit(bundle_request(Network.TELECEL))

        assert receipt.transaction_id == "HN-5"

    async def test_timeout(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(FulfillmentProviderError, match="Provider request timed out"):
            await provider_with(handler).submit(bundle_request())

    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FulfillmentProviderError, match="Provider request failed"):
            await provider_with(handler).submit(bundle_request())

    async def test_non_2xx_uses_provider_message(self):
        def handler(request):
            return httpx.Response(400, json={"status": False, "message": "Insufficient float"})

        with pytest.raises(FulfillmentProviderError, match="Insufficient float"):
            await provider_with(handler).submit(bundle_request())

    async def test_non_2xx_without_body(self):
        def handler(request):
            return httpx.Response(503, text="")

        with pytest.raises(FulfillmentProviderError, match="Provider returned HTTP 503"):
            await provider_with(handler).submit(bundle_request())

    async def test_malformed_body(self):
        def handler(request):
            return httpx.Response(200, text="OK")

        with pytest.raises(FulfillmentProviderError, match="Malformed provider response"):
            await provider_with(handler).submit(bundle_request())

    async def test_reported_failure_in_2xx_body(self):
        def handler(request):
            return httpx.Response(200, json={"status": False})

        with pytest.raises(FulfillmentProviderError, match="Transaction failed"):
            await provider_with(handler).submit(bundle_request())

    async def test_registration_is_not_deliverable(self):
        def handler(request):
            raise AssertionError("no request expected")

        with pytest.raises(FulfillmentProviderError, match="not deliverable"):
            await provider_with(handler).submit(bundle_request(Network.AFA_REGISTRATION, 0))

    async def test_registers_webhook_with_callback_token(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": True})

        provider = provider_with(
            handler,
            webhook_url="https://app.example.com/fulfillment-webhook",
            webhook_secret="cb-secret",
        )

        await provider.submit(bundle_request())

        assert captured["body"]["webhook"] == "https://app.example.com/fulfillment-webhook?token=cb-secret"


class TestHubnetCallbackToken:

    def test_accepts_shared_token(self):
        provider = HubnetFulfillmentProvider(api_token="hub-token", webhook_secret="cb-secret")

        assert provider.verify_callback("cb-secret") is True

    @pytest.mark.parametrize("token", ["cb-secreT", "", None])
    def test_rejects_other_tokens(self, token):
        provider = HubnetFulfillmentProvider(api_token="hub-token", webhook_secret="cb-secret")

        assert provider.verify_callback(token) is False

    def test_rejects_everything_without_configured_secret(self):
        provider = HubnetFulfillmentProvider(api_token="hub-token")

        assert provider.verify_callback("") is False
        assert provider.verify_callback("anything") is False
