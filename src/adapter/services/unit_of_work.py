"""SQLAlchemy Unit of Work

Wraps the request-scoped AsyncSession so use cases commit or roll back
without knowing about SQLAlchemy. Repositories built on the same session
share its transaction.
"""

import logging
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        # Nothing to undo between commits; avoids a round trip per early return
        if not self.session.in_transaction():
            return
        logger.debug("Rolling back open transaction")
        await self.session.rollback()
