"""SQLAlchemy implementation of DataOrderRepository"""

from typing import Any, Dict, List, Optional
from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.data_order_repository import DataOrderRepository
from src.domain.data_order import DataOrder, OrderStatus


class SqlAlchemyDataOrderRepository(DataOrderRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, order: DataOrder) -> DataOrder:
        """
        Raises:
            IntegrityError: If reference already exists
        """
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(order)
        return order

    async def get_by_reference(self, reference: str) -> Optional[DataOrder]:
        stmt = (
            select(DataOrder)
            .where(DataOrder.reference == reference)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, order: DataOrder) -> DataOrder:
        self.session.add(order)
        await self.session.flush()
        await self.session.refresh(order)
        return order

    async def transition(
        self,
        reference: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[DataOrder]:
        stmt = (
            update(DataOrder)
            .where(
                DataOrder.reference == reference,
                DataOrder.status == expected_status,
            )
            .values(status=new_status, **(values or {}))
            .returning(DataOrder.id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        if result.first() is None:
            return None

        return await self.get_by_reference(reference)

    async def get_by_account_id(
        self, account_id: str, limit: int = 50, offset: int = 0
    ) -> List[DataOrder]:
        stmt = (
            select(DataOrder)
            .where(DataOrder.account_id == account_id)
            .order_by(DataOrder.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
