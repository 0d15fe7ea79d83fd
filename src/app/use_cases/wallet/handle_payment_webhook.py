"""HandlePaymentWebhook Use Case

Authenticates an inbound gateway webhook and routes it to the same
settlement use cases the verification poll uses.
"""

import json
import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.payment_gateway import PaymentGateway
from src.app.services.event_publisher import SettlementEventPublisher
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from .confirm_deposit import ConfirmDeposit
from .record_failed_deposit import RecordFailedDeposit
from .dtos import PaymentWebhookAckDTO

logger = logging.getLogger(__name__)

CHARGE_SUCCESS = "charge.success"
CHARGE_FAILED = "charge.failed"


class HandlePaymentWebhook:
    """
    Use Case: Process a payment gateway webhook

    Business Rules:
    1. Signature over the raw body must verify, otherwise nothing is processed
    2. charge.success -> ConfirmDeposit (re-verifies amount with the gateway)
    3. charge.failed -> RecordFailedDeposit
    4. Other events are acknowledged and ignored
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        confirm_deposit: ConfirmDeposit,
        record_failed_deposit: RecordFailedDeposit,
        publisher: SettlementEventPublisher,
    ):
        self.gateway = gateway
        self.confirm_deposit = confirm_deposit
        self.record_failed_deposit = record_failed_deposit
        self.publisher = publisher

    async def execute(self, raw_body: bytes, signature: Optional[str]) -> Result[PaymentWebhookAckDTO]:
        if not self.gateway.verify_signature(raw_body, signature):
            logger.error("[WEBHOOK] Invalid webhook signature")
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.SIGNATURE_INVALID,
                    reference="unknown",
                    severity=EventSeverity.CRITICAL,
                    message="Payment webhook signature verification failed",
                    data={"signature_present": signature is not None},
                )
            )
            return Return.err(
                Error(
                    code=ErrorCode.SIGNATURE_INVALID,
                    message="Invalid signature",
                )
            )

        try:
            payload = json.loads(raw_body)
        except ValueError as e:
            return Return.err(
                Error(code="INVALID_PAYLOAD", message="Malformed webhook payload", reason=str(e))
            )

        event = payload.get("event") if isinstance(payload, dict) else None
        data = payload.get("data") if isinstance(payload, dict) else None
        reference = data.get("reference") if isinstance(data, dict) else None

        logger.info(f"[WEBHOOK] Event received: event={event}, reference={reference}")

        if event not in (CHARGE_SUCCESS, CHARGE_FAILED):
            return Return.ok(
                PaymentWebhookAckDTO(event=str(event), reference=reference, message="Event received")
            )

        if not reference:
            return Return.err(
                Error(code="INVALID_PAYLOAD", message="Missing payment reference")
            )

        if event == CHARGE_SUCCESS:
            result = await self.confirm_deposit.execute(reference)
            if result.is_err():
                return Return.err(result.error)
            message = (
                "Deposit already processed" if result.value.already_processed else "Deposit successful"
            )
            return Return.ok(PaymentWebhookAckDTO(event=event, reference=reference, message=message))

        gateway_message = data.get("gateway_response") or "charge failed"
        result = await self.record_failed_deposit.execute(reference, reason=str(gateway_message))
        if result.is_err():
            return Return.err(result.error)
        return Return.ok(
            PaymentWebhookAckDTO(event=event, reference=reference, message="Payment failure recorded")
        )
