"""Wallet Transaction Repository Interface

Defines the contract for wallet transaction persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from src.domain.wallet_transaction import WalletTransaction, TransactionStatus


class WalletTransactionRepository(ABC):
    """
    Repository interface for WalletTransaction persistence

    reference is unique. finalize is the compare-and-set primitive that
    serializes concurrent settlement of the same reference.
    """

    @abstractmethod
    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        """
        Create a new wallet transaction

        Raises:
            IntegrityError: If reference already exists
        """
        pass

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[WalletTransaction]:
        """Retrieve transaction by its unique reference"""
        pass

    @abstractmethod
    async def finalize(
        self,
        reference: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[WalletTransaction]:
        """
        Conditionally move a transaction to a new status

        Matches on reference AND status == expected_status AND processing is
        false, in a single statement.

        Args:
            reference: Transaction reference
            expected_status: Status the row must currently have
            new_status: Status to set
            values: Extra columns to set in the same statement

        Returns:
            Updated WalletTransaction, or None when no row matched (lost the race)
        """
        pass

    @abstractmethod
    async def update(self, transaction: WalletTransaction) -> WalletTransaction:
        """Persist changes to an already-loaded transaction"""
        pass

    @abstractmethod
    async def get_by_account_id(
        self, account_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[WalletTransaction], int]:
        """
        Retrieve an account's transactions, newest first

        Returns:
            Tuple of (transactions page, total count)
        """
        pass

    @abstractmethod
    async def get_pending_deposits(
        self, created_before: datetime, limit: int = 100
    ) -> List[WalletTransaction]:
        """Retrieve pending deposit transactions created before a cutoff"""
        pass
