"""Settlement Event Publisher Implementations

Provides concrete sinks for settlement events.
"""

import logging
from typing import Optional
import httpx
from src.app.services.event_publisher import SettlementEventPublisher
from src.domain.settlement_event import SettlementEvent, EventSeverity

logger = logging.getLogger(__name__)

SEVERITY_LEVELS = {
    EventSeverity.INFO: logging.INFO,
    EventSeverity.WARNING: logging.WARNING,
    EventSeverity.CRITICAL: logging.CRITICAL,
}


class LoggingEventPublisher(SettlementEventPublisher):
    """
    Publisher that logs events

    Always configured; the log is the baseline audit trail.
    """

    async def publish(self, event: SettlementEvent) -> bool:
        logger.log(
            SEVERITY_LEVELS.get(event.severity, logging.INFO),
            f"[SETTLEMENT EVENT] {event.event_type.value} "
            f"Reference: {event.reference}, "
            f"Account: {event.account_id}, "
            f"Amount: {event.amount}, "
            f"Message: {event.message or '-'}, "
            f"Data: {event.data}"
        )
        return True


class WebhookEventPublisher(SettlementEventPublisher):
    """
    Publisher that POSTs events as JSON to a webhook
    """

    def __init__(
        self,
        webhook_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            webhook_url: URL to POST events to
            timeout: Request timeout in seconds
        """
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.transport = transport

    async def publish(self, event: SettlementEvent) -> bool:
        payload = event.model_dump(mode="json")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    self.webhook_url,
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
                response.raise_for_status()
                logger.debug(f"Settlement event {event.event_type.value} for {event.reference} sent to {self.webhook_url}")
                return True
        except httpx.HTTPError as e:
            logger.error(f"Failed to send settlement event {event.event_type.value} for {event.reference}: {e}")
            return False


class CompositeEventPublisher(SettlementEventPublisher):
    """
    Publisher that fans out to multiple publishers

    A failing sink never blocks the others.
    """

    def __init__(self, publishers: list[SettlementEventPublisher]):
        self.publishers = publishers

    async def publish(self, event: SettlementEvent) -> bool:
        """
        Returns:
            True if at least one publisher succeeded, False otherwise
        """
        success = False
        for publisher in self.publishers:
            try:
                if await publisher.publish(event):
                    success = True
            except Exception as e:
                logger.error(f"Event publisher {type(publisher).__name__} failed: {e}")
        return success


def create_event_publisher(webhook_url: Optional[str] = None) -> SettlementEventPublisher:
    """
    Factory function to create the configured event publisher

    Args:
        webhook_url: Optional webhook URL. If provided, creates composite
                     publisher with logging + webhook. Otherwise, just logging.
    """
    publishers: list[SettlementEventPublisher] = [LoggingEventPublisher()]

    if webhook_url:
        publishers.append(WebhookEventPublisher(webhook_url))

    if len(publishers) == 1:
        return publishers[0]

    return CompositeEventPublisher(publishers)
