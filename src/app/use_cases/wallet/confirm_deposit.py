"""ConfirmDeposit Use Case

Settles a pending deposit. Both the user-facing verification poll and the
gateway webhook funnel through this use case, so it is idempotent: however
many callers race on one reference, the wallet is credited exactly once.
"""

import json
import logging
from datetime import datetime
from decimal import Decimal
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway, PaymentGatewayError, ChargeVerification
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.bundle_catalog import PRICE_TOLERANCE
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType, EventSeverity
from src.domain.wallet_transaction import TransactionType, TransactionStatus
from .dtos import ConfirmDepositResponseDTO

logger = logging.getLogger(__name__)

VERIFICATION_FAILED_MESSAGE = "Payment verification failed"


class ConfirmDeposit:
    """
    Use Case: Confirm a deposit and credit the wallet exactly once

    Business Rules:
    1. Completed reference: return the current balance, credit nothing
    2. Gateway status is authoritative; callback payloads are never trusted
    3. Gateway amount must match the recorded amount within 0.01, otherwise
       the transaction fails with "amount mismatch" and nothing is credited
    4. pending -> completed is a compare-and-set; only the winner credits
    5. The loser of a race reports the already-settled balance

    Flow:
    1. Load transaction by reference (short-circuit when completed)
    2. Verify charge with the gateway
    3. Reject non-successful charges and amount mismatches
    4. Compare-and-set pending -> completed
    5. Credit wallet and stamp balance snapshots
    6. Commit
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: AccountRepository,
        transaction_repo: WalletTransactionRepository,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        publisher: SettlementEventPublisher,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo
        self.ledger = ledger
        self.gateway = gateway
        self.publisher = publisher

    async def execute(self, reference: str) -> Result[ConfirmDepositResponseDTO]:
        """
        Execute deposit confirmation

        Args:
            reference: Gateway payment reference

        Returns:
            Result[ConfirmDepositResponseDTO]: Settled deposit with current balance or error
        """
        try:
            transaction = await self.transaction_repo.get_by_reference(reference)
            if not transaction or transaction.transaction_type != TransactionType.DEPOSIT:
                return Return.err(
                    Error(
                        code=ErrorCode.TRANSACTION_NOT_FOUND,
                        message="Invalid payment reference or transaction not found",
                        reason=f"reference={reference}",
                    )
                )

            if transaction.status != TransactionStatus.PENDING:
                return await self._settled_result(reference)

            try:
                verification = await self.gateway.verify(reference)
            except PaymentGatewayError as e:
                logger.error(f"[VERIFY] Gateway verification failed for {reference}: {e}")
                return Return.err(
                    Error(
                        code=ErrorCode.GATEWAY_UNAVAILABLE,
                        message=VERIFICATION_FAILED_MESSAGE,
                        reason=str(e),
                    )
                )

            if not verification.is_successful:
                return await self._handle_unsuccessful(reference, transaction.account_id, verification)

            mismatch = self._amount_mismatch(transaction.amount, transaction.currency, verification)
            if mismatch:
                return await self._reject_mismatch(
                    reference, transaction.account_id, transaction.amount, verification, mismatch
                )

            account_id = transaction.account_id
            amount = transaction.amount

            finalized = await self.ledger.finalize_transaction(
                reference,
                TransactionStatus.PENDING,
                TransactionStatus.COMPLETED,
                {"completed_at": datetime.utcnow()},
            )
            if finalized.is_err():
                await self.uow.rollback()
                if finalized.error.code == ErrorCode.ALREADY_PROCESSED:
                    logger.info(f"[VERIFY] Lost settlement race for {reference}, reading settled state")
                    return await self._settled_result(reference)
                return Return.err(finalized.error)

            credited = await self.ledger.credit(account_id, amount)
            if credited.is_err():
                await self.uow.rollback()
                logger.error(f"[VERIFY] Credit failed for {reference}: {credited.error.message}")
                return Return.err(credited.error)

            new_balance = credited.value
            settled = finalized.value
            settled.balance_before = new_balance - amount
            settled.balance_after = new_balance
            await self.transaction_repo.update(settled)

            await self.uow.commit()

            logger.info(
                f"[VERIFY] Deposit completed - reference={reference}, account={account_id}, "
                f"amount={amount}, balance_after={new_balance}"
            )
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.DEPOSIT_COMPLETED,
                    reference=reference,
                    account_id=account_id,
                    amount=amount,
                    data={"balance_before": str(new_balance - amount), "balance_after": str(new_balance)},
                )
            )

            return Return.ok(
                ConfirmDepositResponseDTO(
                    reference=reference,
                    status=TransactionStatus.COMPLETED.value,
                    amount=amount,
                    balance=new_balance,
                    already_processed=False,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[VERIFY] Unexpected error confirming deposit {reference}")
            return Return.err(
                Error(
                    code="DEPOSIT_CONFIRMATION_FAILED",
                    message=VERIFICATION_FAILED_MESSAGE,
                    reason=str(e),
                )
            )

    @staticmethod
    def _amount_mismatch(
        recorded_amount: Decimal, recorded_currency: str, verification: ChargeVerification
    ) -> str:
        if abs(verification.amount - recorded_amount) > PRICE_TOLERANCE:
            return f"amount mismatch: expected {recorded_amount}, received {verification.amount}"
        if verification.currency and verification.currency.upper() != recorded_currency.upper():
            return f"amount mismatch: expected {recorded_currency}, received {verification.currency}"
        return ""

    async def _reject_mismatch(
        self,
        reference: str,
        account_id: str,
        recorded_amount: Decimal,
        verification: ChargeVerification,
        detail: str,
    ) -> Result[ConfirmDepositResponseDTO]:
        logger.error(
            f"[SECURITY] Amount mismatch for {reference}: expected={recorded_amount}, "
            f"received={verification.amount} {verification.currency or ''}"
        )

        failed = await self.ledger.finalize_transaction(
            reference,
            TransactionStatus.PENDING,
            TransactionStatus.FAILED,
            {
                "failure_reason": "amount mismatch",
                "completed_at": datetime.utcnow(),
                "metadata_json": json.dumps(
                    {
                        "expected_amount": str(recorded_amount),
                        "received_amount": str(verification.amount),
                        "received_currency": verification.currency,
                    }
                ),
            },
        )
        if failed.is_err():
            await self.uow.rollback()
            if failed.error.code == ErrorCode.ALREADY_PROCESSED:
                return await self._settled_result(reference)
            return Return.err(failed.error)

        await self.uow.commit()

        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.AMOUNT_MISMATCH,
                reference=reference,
                account_id=account_id,
                amount=verification.amount,
                severity=EventSeverity.CRITICAL,
                message=detail,
                data={"expected_amount": str(recorded_amount), "received_amount": str(verification.amount)},
            )
        )

        return Return.err(
            Error(
                code=ErrorCode.AMOUNT_MISMATCH,
                message=VERIFICATION_FAILED_MESSAGE,
                reason=detail,
            )
        )

    async def _handle_unsuccessful(
        self, reference: str, account_id: str, verification: ChargeVerification
    ) -> Result[ConfirmDepositResponseDTO]:
        if not verification.is_final_failure:
            return Return.err(
                Error(
                    code=ErrorCode.PAYMENT_PENDING,
                    message="Payment has not been completed yet",
                    reason=f"gateway_status={verification.status}",
                )
            )

        failed = await self.ledger.finalize_transaction(
            reference,
            TransactionStatus.PENDING,
            TransactionStatus.FAILED,
            {
                "failure_reason": f"gateway status: {verification.status}",
                "completed_at": datetime.utcnow(),
            },
        )
        if failed.is_err():
            await self.uow.rollback()
            if failed.error.code == ErrorCode.ALREADY_PROCESSED:
                return await self._settled_result(reference)
            return Return.err(failed.error)

        await self.uow.commit()

        logger.info(f"[VERIFY] Gateway reported {verification.status} for {reference}")
        await self.publisher.publish(
            SettlementEvent(
                event_type=SettlementEventType.DEPOSIT_FAILED,
                reference=reference,
                account_id=account_id,
                severity=EventSeverity.WARNING,
                message=f"gateway status: {verification.status}",
            )
        )

        return Return.err(
            Error(
                code=ErrorCode.PAYMENT_NOT_SUCCESSFUL,
                message="Payment verification failed with the payment gateway",
                reason=f"gateway_status={verification.status}",
            )
        )

    async def _settled_result(self, reference: str) -> Result[ConfirmDepositResponseDTO]:
        """Report the state another caller already settled, without mutating anything"""
        transaction = await self.transaction_repo.get_by_reference(reference)
        if not transaction:
            return Return.err(
                Error(
                    code=ErrorCode.TRANSACTION_NOT_FOUND,
                    message="Invalid payment reference or transaction not found",
                    reason=f"reference={reference}",
                )
            )

        if transaction.status == TransactionStatus.COMPLETED:
            account = await self.account_repo.get_by_id(transaction.account_id)
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.DEPOSIT_ALREADY_PROCESSED,
                    reference=reference,
                    account_id=transaction.account_id,
                    amount=transaction.amount,
                )
            )
            return Return.ok(
                ConfirmDepositResponseDTO(
                    reference=reference,
                    status=transaction.status.value,
                    amount=transaction.amount,
                    balance=account.wallet_balance if account else None,
                    already_processed=True,
                )
            )

        if transaction.status == TransactionStatus.FAILED:
            code = (
                ErrorCode.AMOUNT_MISMATCH
                if transaction.failure_reason == "amount mismatch"
                else ErrorCode.PAYMENT_NOT_SUCCESSFUL
            )
            return Return.err(
                Error(
                    code=code,
                    message=VERIFICATION_FAILED_MESSAGE,
                    reason=transaction.failure_reason,
                )
            )

        return Return.err(
            Error(
                code=ErrorCode.PAYMENT_PENDING,
                message="Payment is being processed",
                reason=f"reference={reference}",
            )
        )
