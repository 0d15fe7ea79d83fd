"""Ledger Store

The only code path allowed to change a wallet balance or settle a wallet
transaction. Every primitive is a single conditional statement at the
storage layer; nothing here commits, callers own the unit of work.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.repositories.account_repository import AccountRepository
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.errors import ErrorCode
from src.domain.wallet_transaction import WalletTransaction, TransactionStatus

logger = logging.getLogger(__name__)


def is_valid_amount(amount: Any) -> bool:
    """Positive, finite Decimal"""
    return isinstance(amount, Decimal) and amount.is_finite() and amount > 0


class LedgerStore:
    """
    Ledger Store - atomic wallet primitives

    Primitives:
    - debit: conditional decrement (fails with INSUFFICIENT_FUNDS, never overdraws)
    - credit: increment (fails with ACCOUNT_NOT_FOUND)
    - record_transaction: insert with unique reference (DUPLICATE_REFERENCE)
    - finalize_transaction: compare-and-set on reference + status + processing
      flag; the losing caller gets ALREADY_PROCESSED
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        transaction_repo: WalletTransactionRepository,
    ):
        self.account_repo = account_repo
        self.transaction_repo = transaction_repo

    async def debit(self, account_id: str, amount: Decimal) -> Result[Decimal]:
        """
        Subtract amount from the wallet if the balance covers it

        Returns:
            Result[Decimal]: New balance or INVALID_AMOUNT / ACCOUNT_NOT_FOUND /
            INSUFFICIENT_FUNDS
        """
        if not is_valid_amount(amount):
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message="Debit amount must be a positive number",
                    reason=f"amount={amount}",
                )
            )

        new_balance = await self.account_repo.debit(account_id, amount)
        if new_balance is not None:
            return Return.ok(new_balance)

        account = await self.account_repo.get_by_id(account_id)
        if not account:
            return Return.err(
                Error(
                    code=ErrorCode.ACCOUNT_NOT_FOUND,
                    message=f"Account {account_id} not found",
                )
            )

        return Return.err(
            Error(
                code=ErrorCode.INSUFFICIENT_FUNDS,
                message="Insufficient wallet balance",
                reason=f"balance={account.wallet_balance}, required={amount}",
            )
        )

    async def credit(self, account_id: str, amount: Decimal) -> Result[Decimal]:
        """
        Add amount to the wallet

        Returns:
            Result[Decimal]: New balance or INVALID_AMOUNT / ACCOUNT_NOT_FOUND
        """
        if not is_valid_amount(amount):
            return Return.err(
                Error(
                    code=ErrorCode.INVALID_AMOUNT,
                    message="Credit amount must be a positive number",
                    reason=f"amount={amount}",
                )
            )

        new_balance = await self.account_repo.credit(account_id, amount)
        if new_balance is None:
            return Return.err(
                Error(
                    code=ErrorCode.ACCOUNT_NOT_FOUND,
                    message=f"Account {account_id} not found",
                )
            )
        return Return.ok(new_balance)

    async def record_transaction(self, transaction: WalletTransaction) -> Result[WalletTransaction]:
        """
        Insert a wallet transaction

        Returns:
            Result[WalletTransaction]: Created record or DUPLICATE_REFERENCE.
            After DUPLICATE_REFERENCE the caller must roll back.
        """
        existing = await self.transaction_repo.get_by_reference(transaction.reference)
        if existing:
            return Return.err(
                Error(
                    code=ErrorCode.DUPLICATE_REFERENCE,
                    message=f"Transaction reference {transaction.reference} already exists",
                )
            )

        try:
            created = await self.transaction_repo.create(transaction)
        except IntegrityError as e:
            logger.warning(f"Concurrent insert for reference {transaction.reference}: {e}")
            return Return.err(
                Error(
                    code=ErrorCode.DUPLICATE_REFERENCE,
                    message=f"Transaction reference {transaction.reference} already exists",
                    reason=str(e),
                )
            )
        return Return.ok(created)

    async def finalize_transaction(
        self,
        reference: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Result[WalletTransaction]:
        """
        Compare-and-set a transaction's status

        Returns:
            Result[WalletTransaction]: Updated record, ALREADY_PROCESSED when the
            row is no longer in expected_status (another caller won), or
            TRANSACTION_NOT_FOUND
        """
        updated = await self.transaction_repo.finalize(
            reference, expected_status, new_status, values
        )
        if updated is not None:
            return Return.ok(updated)

        current = await self.transaction_repo.get_by_reference(reference)
        if current is None:
            return Return.err(
                Error(
                    code=ErrorCode.TRANSACTION_NOT_FOUND,
                    message=f"Transaction {reference} not found",
                )
            )

        return Return.err(
            Error(
                code=ErrorCode.ALREADY_PROCESSED,
                message=f"Transaction {reference} was already processed",
                reason=f"status={current.status.value}, processing={current.processing}",
            )
        )
