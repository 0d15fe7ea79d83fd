"""Settlement Event Publisher Interface

Defines the contract for emitting structured settlement events.
"""

from abc import ABC, abstractmethod
from src.domain.settlement_event import SettlementEvent


class SettlementEventPublisher(ABC):
    """
    Abstract sink for settlement events

    Implementations can send events to:
    - Application logs
    - Webhook (HTTP POST)
    - Any combination of the above
    """

    @abstractmethod
    async def publish(self, event: SettlementEvent) -> bool:
        """
        Publish a settlement event

        Args:
            event: SettlementEvent to publish

        Returns:
            True if published successfully, False otherwise
        """
        pass
