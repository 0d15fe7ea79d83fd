"""InitiateDeposit Use Case

Validates a deposit amount, opens a charge session with the payment gateway
and records a pending deposit keyed by the gateway's reference. No balance
changes here; the wallet is credited by ConfirmDeposit.
"""

import json
import logging
from decimal import Decimal
from typing import Any, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.services.ledger_store import LedgerStore
from src.app.services.payment_gateway import PaymentGateway, PaymentGatewayError
from src.app.services.event_publisher import SettlementEventPublisher
from src.app.repositories.account_repository import AccountRepository
from src.domain.errors import ErrorCode
from src.domain.settlement_event import SettlementEvent, SettlementEventType
from src.domain.wallet_transaction import WalletTransaction, TransactionType, TransactionStatus
from .dtos import InitiateDepositCommandDTO, DepositInitResponseDTO

logger = logging.getLogger(__name__)

DEPOSIT_MIN_AMOUNT = Decimal("1.00")
DEPOSIT_MAX_AMOUNT = Decimal("10000.00")
CENT = Decimal("0.01")


def validate_deposit_amount(
    amount: Any,
    minimum: Decimal = DEPOSIT_MIN_AMOUNT,
    maximum: Decimal = DEPOSIT_MAX_AMOUNT,
) -> Optional[str]:
    """
    Check a deposit amount against the configured bounds

    Returns:
        None when valid, otherwise a user-facing error message
    """
    if isinstance(amount, bool) or amount is None:
        return "Invalid amount. Amount must be a positive number."
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except ArithmeticError:
        return "Invalid amount. Amount must be a positive number."

    if not value.is_finite() or value <= 0:
        return "Invalid amount. Amount must be a positive number."
    if value < minimum:
        return f"Deposit amount is too low. Minimum is GH₵{minimum:.2f}"
    if value > maximum:
        return f"Deposit amount exceeds maximum. Maximum is GH₵{maximum:.2f}"
    if value != value.quantize(CENT):
        return "Amount must have maximum 2 decimal places"
    return None


class InitiateDeposit:
    """
    Use Case: Start funding a wallet

    Business Rules:
    1. Amount is positive, within [minimum, maximum], at most 2 decimal places
    2. Account must exist and have a billing email
    3. Exactly one pending transaction per gateway reference
    4. No wallet mutation

    Flow:
    1. Validate amount
    2. Load account
    3. Create gateway charge session
    4. Record pending deposit transaction
    5. Commit and return the authorization URL
    """

    def __init__(
        self,
        uow: UnitOfWork,
        account_repo: AccountRepository,
        ledger: LedgerStore,
        gateway: PaymentGateway,
        publisher: SettlementEventPublisher,
        currency: str = "GHS",
        min_amount: Decimal = DEPOSIT_MIN_AMOUNT,
        max_amount: Decimal = DEPOSIT_MAX_AMOUNT,
    ):
        self.uow = uow
        self.account_repo = account_repo
        self.ledger = ledger
        self.gateway = gateway
        self.publisher = publisher
        self.currency = currency
        self.min_amount = min_amount
        self.max_amount = max_amount

    async def execute(self, command: InitiateDepositCommandDTO) -> Result[DepositInitResponseDTO]:
        """
        Execute deposit initiation

        Args:
            command: InitiateDepositCommandDTO with account_id and amount

        Returns:
            Result[DepositInitResponseDTO]: Authorization handle or error
        """
        amount_error = validate_deposit_amount(command.amount, self.min_amount, self.max_amount)
        if amount_error:
            logger.info(
                f"[DEPOSIT] Amount validation failed for account {command.account_id}: "
                f"{amount_error} (attempted={command.amount})"
            )
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message=amount_error,
                    reason=f"amount={command.amount}",
                )
            )
        amount = command.amount.quantize(CENT)

        try:
            account = await self.account_repo.get_by_id(command.account_id)
            if not account:
                return Return.err(
                    Error(
                        code=ErrorCode.ACCOUNT_NOT_FOUND,
                        message="Account not found",
                        reason=f"account_id={command.account_id}",
                    )
                )

            if not account.email:
                return Return.err(
                    Error(
                        code=ErrorCode.ACCOUNT_EMAIL_MISSING,
                        message="Account email not configured",
                        reason=f"account_id={command.account_id}",
                    )
                )

            try:
                session = await self.gateway.initialize(
                    email=account.email,
                    amount=amount,
                    currency=self.currency,
                    metadata={"account_id": account.id},
                )
            except PaymentGatewayError as e:
                logger.error(f"[DEPOSIT] Gateway initialization failed for account {account.id}: {e}")
                return Return.err(
                    Error(
                        code=ErrorCode.GATEWAY_UNAVAILABLE,
                        message="Failed to initialize payment",
                        reason=str(e),
                    )
                )

            transaction = WalletTransaction(
                account_id=account.id,
                transaction_type=TransactionType.DEPOSIT,
                amount=amount,
                currency=self.currency,
                reference=session.reference,
                status=TransactionStatus.PENDING,
                description="Wallet funding via payment gateway",
                metadata_json=json.dumps({"source": "payment_gateway", "initial_amount": str(amount)}),
            )

            recorded = await self.ledger.record_transaction(transaction)
            if recorded.is_err():
                await self.uow.rollback()
                return Return.err(recorded.error)

            await self.uow.commit()

            logger.info(
                f"[DEPOSIT] Pending deposit recorded - reference={session.reference}, "
                f"account={account.id}, amount={amount}"
            )
            await self.publisher.publish(
                SettlementEvent(
                    event_type=SettlementEventType.DEPOSIT_INITIATED,
                    reference=session.reference,
                    account_id=account.id,
                    amount=amount,
                )
            )

            return Return.ok(
                DepositInitResponseDTO(
                    authorization_url=session.authorization_url,
                    reference=session.reference,
                    amount=amount,
                    currency=self.currency,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            logger.exception(f"[DEPOSIT] Unexpected error initiating deposit for {command.account_id}")
            return Return.err(
                Error(
                    code="DEPOSIT_INITIATION_FAILED",
                    message="Failed to initialize payment",
                    reason=str(e),
                )
            )
