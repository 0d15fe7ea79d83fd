"""Unit tests for HandlePaymentWebhook and RecordFailedDeposit"""

import json
import pytest
from decimal import Decimal

from src.app.use_cases.wallet.confirm_deposit import ConfirmDeposit
from src.app.use_cases.wallet.dtos import InitiateDepositCommandDTO
from src.app.use_cases.wallet.handle_payment_webhook import HandlePaymentWebhook
from src.app.use_cases.wallet.initiate_deposit import InitiateDeposit
from src.app.use_cases.wallet.record_failed_deposit import RecordFailedDeposit
from src.domain.errors import ErrorCode
from src.domain.settlement_event import EventSeverity, SettlementEventType
from src.domain.wallet_transaction import TransactionStatus
from tests.fakes import SettlementHarness


@pytest.fixture
def harness():
    h = SettlementHarness()
    h.store.add_account("acc_1", "10.00")
    return h


@pytest.fixture
def webhook(harness):
    return HandlePaymentWebhook(
        gateway=harness.gateway,
        confirm_deposit=ConfirmDeposit(
            uow=harness.uow,
            account_repo=harness.account_repo,
            transaction_repo=harness.transaction_repo,
            ledger=harness.ledger,
            gateway=harness.gateway,
            publisher=harness.publisher,
        ),
        record_failed_deposit=RecordFailedDeposit(harness.uow, harness.ledger, harness.publisher),
        publisher=harness.publisher,
    )


async def initiate(h: SettlementHarness, amount: str = "20.00") -> str:
    use_case = InitiateDeposit(h.uow, h.account_repo, h.ledger, h.gateway, h.publisher)
    result = await use_case.execute(InitiateDepositCommandDTO(account_id="acc_1", amount=Decimal(amount)))
    return result.value.reference


def body(event: str, reference: str = None, **data) -> bytes:
    payload = {"event": event, "data": dict(data)}
    if reference is not None:
        payload["data"]["reference"] = reference
    return json.dumps(payload).encode("utf-8")


@pytest.mark.asyncio
class TestWebhookSignature:

    async def test_invalid_signature_is_rejected_before_parsing(self, webhook, harness):
        reference = await initiate(harness)
        harness.gateway.will_verify(reference, "20.00")

        result = await webhook.execute(body("charge.success", reference), "forged")

        assert result.is_err()
        assert result.error.code == ErrorCode.SIGNATURE_INVALID
        assert harness.gateway.verify_calls == []
        assert harness.store.balance("acc_1") == Decimal("10.00")

        event = harness.publisher.events[-1]
        assert event.event_type == SettlementEventType.SIGNATURE_INVALID
        assert event.severity == EventSeverity.CRITICAL

    async def test_missing_signature(self, webhook):
        result = await webhook.execute(body("charge.success", "T1"), None)

        assert result.is_err()
        assert result.error.code == ErrorCode.SIGNATURE_INVALID


@pytest.mark.asyncio
class TestWebhookRouting:

    async def test_charge_success_credits_once(self, webhook, harness):
        reference = await initiate(harness)
        harness.gateway.will_verify(reference, "20.00")

        first = await webhook.execute(body("charge.success", reference), "valid-signature")
        second = await webhook.execute(body("charge.success", reference), "valid-signature")

        assert first.is_ok()
        assert first.value.message == "Deposit successful"
        assert second.is_ok()
        assert second.value.message == "Deposit already processed"
        assert harness.store.balance("acc_1") == Decimal("30.00")

    async def test_charge_success_reverifies_amount(self, webhook, harness):
        """The webhook body amount is never trusted; the gateway verify call is"""
        reference = await initiate(harness)
        harness.gateway.will_verify(reference, "2.00")

        result = await webhook.execute(
            body("charge.success", reference, amount=2000), "valid-signature"
        )

        assert result.is_err()
        assert result.error.code == ErrorCode.AMOUNT_MISMATCH
        assert harness.store.balance("acc_1") == Decimal("10.00")

    async def test_charge_failed_marks_deposit_failed(self, webhook, harness):
        reference = await initiate(harness)

        result = await webhook.execute(
            body("charge.failed", reference, gateway_response="Declined"), "valid-signature"
        )

        assert result.is_ok()
        assert result.value.message == "Payment failure recorded"
        transaction = harness.store.transactions[reference]
        assert transaction.status == TransactionStatus.FAILED
        assert transaction.failure_reason == "Declined"
        assert harness.store.balance("acc_1") == Decimal("10.00")

    async def test_charge_failed_after_success_is_ignored(self, webhook, harness):
        reference = await initiate(harness)
        harness.gateway.will_verify(reference, "20.00")
        await webhook.execute(body("charge.success", reference), "valid-signature")

        result = await webhook.execute(body("charge.failed", reference), "valid-signature")

        assert result.is_ok()
        assert harness.store.transactions[reference].status == TransactionStatus.COMPLETED
        assert harness.store.balance("acc_1") == Decimal("30.00")

    async def test_other_events_are_acknowledged(self, webhook, harness):
        result = await webhook.execute(body("transfer.success", "TRF-1"), "valid-signature")

        assert result.is_ok()
        assert result.value.message == "Event received"
        assert harness.gateway.verify_calls == []

    async def test_malformed_json(self, webhook):
        result = await webhook.execute(b"{not json", "valid-signature")

        assert result.is_err()
        assert result.error.code == "INVALID_PAYLOAD"

    async def test_missing_reference(self, webhook):
        result = await webhook.execute(body("charge.success"), "valid-signature")

        assert result.is_err()
        assert result.error.code == "INVALID_PAYLOAD"


@pytest.mark.asyncio
class TestRecordFailedDeposit:

    async def test_returns_false_when_already_settled(self, harness):
        reference = await initiate(harness)
        use_case = RecordFailedDeposit(harness.uow, harness.ledger, harness.publisher)

        assert (await use_case.execute(reference)).value is True
        assert (await use_case.execute(reference)).value is False

    async def test_unknown_reference(self, harness):
        use_case = RecordFailedDeposit(harness.uow, harness.ledger, harness.publisher)

        result = await use_case.execute("missing")

        assert result.is_err()
        assert result.error.code == ErrorCode.TRANSACTION_NOT_FOUND
