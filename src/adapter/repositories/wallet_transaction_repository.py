"""SQLAlchemy implementation of WalletTransactionRepository

Provides persistence for WalletTransaction entities. Uniqueness of reference
is enforced by the database; settlement uses a conditional UPDATE so only one
caller can move a record out of pending.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.wallet_transaction_repository import WalletTransactionRepository
from src.domain.wallet_transaction import WalletTransaction, TransactionStatus, TransactionType


class SqlAlchemyWalletTransactionRepository(WalletTransactionRepository):
    """
    SQLAlchemy implementation of WalletTransactionRepository

    Features:
    - Unique reference constraint (IntegrityError on duplicates)
    - Compare-and-set finalize (status + processing flag in the WHERE clause)
    - Paginated history with total count
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transaction: WalletTransaction) -> WalletTransaction:
        """
        Raises:
            IntegrityError: If reference already exists
        """
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_reference(self, reference: str) -> Optional[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.reference == reference)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def finalize(
        self,
        reference: str,
        expected_status: TransactionStatus,
        new_status: TransactionStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[WalletTransaction]:
        stmt = (
            update(WalletTransaction)
            .where(
                WalletTransaction.reference == reference,
                WalletTransaction.status == expected_status,
                WalletTransaction.processing.is_(False),
            )
            .values(status=new_status, **(values or {}))
            .returning(WalletTransaction.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.first()
        if row is None:
            return None

        return await self.get_by_reference(reference)

    async def update(self, transaction: WalletTransaction) -> WalletTransaction:
        self.session.add(transaction)
        await self.session.flush()
        await self.session.refresh(transaction)
        return transaction

    async def get_by_account_id(
        self, account_id: str, limit: int = 20, offset: int = 0
    ) -> Tuple[List[WalletTransaction], int]:
        stmt = (
            select(WalletTransaction)
            .where(WalletTransaction.account_id == account_id)
            .order_by(WalletTransaction.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        transactions = list(result.scalars().all())

        count_stmt = (
            select(func.count())
            .select_from(WalletTransaction)
            .where(WalletTransaction.account_id == account_id)
        )
        count_result = await self.session.execute(count_stmt)
        total = count_result.scalar_one()

        return transactions, total

    async def get_pending_deposits(
        self, created_before: datetime, limit: int = 100
    ) -> List[WalletTransaction]:
        stmt = (
            select(WalletTransaction)
            .where(
                WalletTransaction.transaction_type == TransactionType.DEPOSIT,
                WalletTransaction.status == TransactionStatus.PENDING,
                WalletTransaction.created_at < created_before,
            )
            .order_by(WalletTransaction.created_at.asc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
