"""Async tasks for the core module."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="core.relay_outbox_events", ignore_result=True)
def relay_outbox_events(batch_size: int = 100) -> dict:
    """Publish pending outbox events on the in-process event bus."""
    from modules.core.outbox import OutboxRelay
    from shared.infrastructure.bus import event_bus

    result = OutboxRelay(event_bus).publish_pending(batch_size=batch_size)
    logger.info("relay_outbox_events.executed", **result)
    return result
