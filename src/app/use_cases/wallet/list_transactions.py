"""
List Transactions Use Case

Retrieves wallet transaction history for an account with pagination.
"""
from libs.result import Result, Return
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from .dtos import ListTransactionsResponseDTO, TransactionDTO


class ListTransactions:
    """
    Use case: View wallet transactions

    Transactions are ordered by created_at DESC (most recent first).
    """

    def __init__(self, transaction_repo: WalletTransactionRepository):
        self.transaction_repo = transaction_repo

    async def execute(
        self, account_id: str, limit: int = 20, offset: int = 0
    ) -> Result[ListTransactionsResponseDTO]:
        transactions, total = await self.transaction_repo.get_by_account_id(
            account_id=account_id,
            limit=limit,
            offset=offset,
        )

        transaction_dtos = [
            TransactionDTO(
                id=txn.id,
                transaction_type=txn.transaction_type.value,
                amount=txn.amount,
                currency=txn.currency,
                reference=txn.reference,
                status=txn.status.value,
                balance_before=txn.balance_before,
                balance_after=txn.balance_after,
                description=txn.description,
                failure_reason=txn.failure_reason,
                created_at=txn.created_at,
                completed_at=txn.completed_at,
            )
            for txn in transactions
        ]

        return Return.ok(
            ListTransactionsResponseDTO(
                transactions=transaction_dtos,
                total=total,
                limit=limit,
                offset=offset,
            )
        )
