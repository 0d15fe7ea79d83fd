"""List Orders Use Case"""

from libs.result import Result, Return
from src.app.repositories.data_order_repository import DataOrderRepository
from .dtos import ListOrdersResponseDTO, OrderDTO


class ListOrders:
    """An account's orders, newest first"""

    def __init__(self, order_repo: DataOrderRepository):
        self.order_repo = order_repo

    async def execute(self, account_id: str, limit: int = 50, offset: int = 0) -> Result[ListOrdersResponseDTO]:
        orders = await self.order_repo.get_by_account_id(account_id, limit=limit, offset=offset)
        return Return.ok(
            ListOrdersResponseDTO(
                orders=[OrderDTO.from_entity(order) for order in orders],
                limit=limit,
                offset=offset,
            )
        )
