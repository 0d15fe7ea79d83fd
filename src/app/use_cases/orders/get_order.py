"""Get Order Use Case"""

from libs.result import Result, Return, Error
from src.app.repositories.data_order_repository import DataOrderRepository
from src.domain.errors import ErrorCode
from .dtos import OrderDTO


class GetOrder:
    """Read-only order status lookup by reference"""

    def __init__(self, order_repo: DataOrderRepository):
        self.order_repo = order_repo

    async def execute(self, reference: str) -> Result[OrderDTO]:
        order = await self.order_repo.get_by_reference(reference)
        if not order:
            return Return.err(
                Error(
                    code=ErrorCode.ORDER_NOT_FOUND,
                    message="Order not found",
                    reason=f"reference={reference}",
                )
            )
        return Return.ok(OrderDTO.from_entity(order))
