"""Account Repository Interface

Defines the contract for wallet balance persistence. Balance mutations are
atomic conditional updates so concurrent requests never lose an update.
"""

from abc import ABC, abstractmethod
from typing import Optional
from decimal import Decimal
from src.domain.account import Account


class AccountRepository(ABC):
    """
    Repository interface for Account persistence

    debit/credit must be single read-modify-write statements at the storage
    layer (no read-then-write from Python).
    """

    @abstractmethod
    async def get_by_id(self, account_id: str, for_update: bool = False) -> Optional[Account]:
        """
        Retrieve account by ID

        Args:
            account_id: Account identifier
            for_update: If True, lock the row with SELECT FOR UPDATE

        Returns:
            Account if found, None otherwise
        """
        pass

    @abstractmethod
    async def create(self, account: Account) -> Account:
        """
        Create a new account

        Args:
            account: Account entity to persist

        Returns:
            Created Account
        """
        pass

    @abstractmethod
    async def debit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        """
        Atomically subtract amount when balance >= amount

        Args:
            account_id: Account identifier
            amount: Positive amount to subtract

        Returns:
            New balance, or None when the account is missing or balance is too low
        """
        pass

    @abstractmethod
    async def credit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        """
        Atomically add amount to the balance

        Args:
            account_id: Account identifier
            amount: Positive amount to add

        Returns:
            New balance, or None when the account is missing
        """
        pass
