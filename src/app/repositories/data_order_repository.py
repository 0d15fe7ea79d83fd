"""Data Order Repository Interface"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from src.domain.data_order import DataOrder, OrderStatus


class DataOrderRepository(ABC):
    """Repository interface for DataOrder persistence (reference is unique)"""

    @abstractmethod
    async def create(self, order: DataOrder) -> DataOrder:
        """
        Create a new data order

        Raises:
            IntegrityError: If reference already exists
        """
        pass

    @abstractmethod
    async def get_by_reference(self, reference: str) -> Optional[DataOrder]:
        pass

    @abstractmethod
    async def update(self, order: DataOrder) -> DataOrder:
        pass

    @abstractmethod
    async def transition(
        self,
        reference: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        values: Optional[Dict[str, Any]] = None,
    ) -> Optional[DataOrder]:
        """
        Compare-and-set an order's status

        Returns:
            The updated order, or None when the order is no longer in
            expected_status
        """
        pass

    @abstractmethod
    async def get_by_account_id(
        self, account_id: str, limit: int = 50, offset: int = 0
    ) -> List[DataOrder]:
        """Retrieve an account's orders, newest first"""
        pass
