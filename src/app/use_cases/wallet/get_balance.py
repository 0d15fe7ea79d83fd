"""Get Balance Use Case

Retrieves an account's current wallet balance.
"""

from libs.result import Result, Return, Error
from src.app.repositories.account_repository import AccountRepository
from src.domain.errors import ErrorCode
from .dtos import BalanceResponseDTO


class GetBalance:
    """
    Get Balance Use Case

    Read-only. Balances shown to users always come from the store, never
    from client-side arithmetic.
    """

    def __init__(self, account_repo: AccountRepository):
        self.account_repo = account_repo

    async def execute(self, account_id: str) -> Result[BalanceResponseDTO]:
        """
        Execute get balance operation

        Args:
            account_id: The account identifier

        Returns:
            Result[BalanceResponseDTO]: Success with balance data or error

        Errors:
            ACCOUNT_NOT_FOUND: No such account
        """
        account = await self.account_repo.get_by_id(account_id)

        if not account:
            return Return.err(
                Error(
                    code=ErrorCode.ACCOUNT_NOT_FOUND,
                    message="Account not found",
                    reason=f"account_id={account_id}",
                )
            )

        return Return.ok(
            BalanceResponseDTO(
                account_id=account.id,
                balance=account.wallet_balance,
                currency=account.currency,
                last_updated=account.updated_at,
            )
        )
