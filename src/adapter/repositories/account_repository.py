"""SQLAlchemy implementation of AccountRepository

Wallet balance changes are single UPDATE ... RETURNING statements so the
database serializes concurrent debits and credits on the same row.
"""

from typing import Optional
from decimal import Decimal
from datetime import datetime
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.account_repository import AccountRepository
from src.domain.account import Account


class SqlAlchemyAccountRepository(AccountRepository):
    """
    SQLAlchemy implementation of AccountRepository

    Features:
    - Conditional decrement (balance >= amount) in one statement
    - Optional pessimistic locking via SELECT FOR UPDATE for reads
    - Reads always refresh the identity map so balances are never stale
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, account_id: str, for_update: bool = False) -> Optional[Account]:
        stmt = (
            select(Account)
            .where(Account.id == account_id)
            .execution_options(populate_existing=True)
        )

        if for_update:
            stmt = stmt.with_for_update()

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, account: Account) -> Account:
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def debit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        """
        Subtract amount only when the balance covers it

        Returns:
            New balance, or None when no row matched (missing account or
            insufficient balance)
        """
        stmt = (
            update(Account)
            .where(Account.id == account_id, Account.wallet_balance >= amount)
            .values(
                wallet_balance=Account.wallet_balance - amount,
                updated_at=datetime.utcnow(),
            )
            .returning(Account.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.first()
        return row[0] if row is not None else None

    async def credit(self, account_id: str, amount: Decimal) -> Optional[Decimal]:
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(
                wallet_balance=Account.wallet_balance + amount,
                updated_at=datetime.utcnow(),
            )
            .returning(Account.wallet_balance)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        row = result.first()
        return row[0] if row is not None else None
