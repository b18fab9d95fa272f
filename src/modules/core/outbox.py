"""Outbox writer and relay.

``record_event`` persists a domain event next to the business rows that
produced it.  ``schedule_relay`` arranges for the relay task to run once the
surrounding transaction commits; ``OutboxRelay`` replays pending rows onto
the in-process event bus.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.conf import settings
from django.db import transaction
from django.db.models import Q

from modules.core.models import EventStatus, OutboxEvent
from shared.domain.bus import IEventBus
from shared.domain.events import DomainEvent, event_from_payload

logger = structlog.get_logger(__name__)

RELAY_BATCH_SIZE = 100


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


def record_event(event: DomainEvent, topic: Optional[str] = None) -> OutboxEvent:
    """Persist ``event`` in the outbox and schedule a relay after commit."""
    row = OutboxEvent.objects.create(
        event_type=event.event_name,
        aggregate_id=str(event.aggregate_id),
        payload=serialize_event_payload(event),
        topic=topic or event.topic,
    )
    schedule_relay()
    return row


def serialize_event_payload(event: DomainEvent) -> Dict[str, Any]:
    data = asdict(event)
    normalized = _normalize_for_json(data)
    return json.loads(json.dumps(normalized))


def _normalize_for_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (list, tuple)):
        return [_normalize_for_json(item) for item in value]
    if isinstance(value, dict):
        return {key: _normalize_for_json(val) for key, val in value.items()}
    return value


# ---------------------------------------------------------------------------
# Scheduling
# ---------------------------------------------------------------------------


def schedule_relay() -> None:
    """Enqueue the relay task once the current transaction commits.

    Django de-duplicates nothing here; the relay itself is idempotent
    because it only picks ``PENDING`` rows.
    """
    transaction.on_commit(_enqueue_relay)


def _enqueue_relay() -> None:
    from modules.core.tasks import relay_outbox_events

    try:
        relay_outbox_events.delay()
    except Exception:
        logger.exception("outbox.relay_enqueue_failed")


# ---------------------------------------------------------------------------
# Relay
# ---------------------------------------------------------------------------


class OutboxRelay:
    """Publish pending outbox rows on an event bus.

    Each row is handled independently: a failing handler marks its row
    ``FAILED`` and the relay moves on.  Failed rows are picked up again on
    later passes until they reach ``max_retries`` failures.
    """

    def __init__(self, bus: IEventBus, max_retries: Optional[int] = None) -> None:
        self._bus = bus
        self._max_retries = (
            settings.OUTBOX_MAX_RETRIES if max_retries is None else max_retries
        )

    def publish_pending(self, batch_size: int = RELAY_BATCH_SIZE) -> Dict[str, int]:
        published = failed = 0
        due = Q(status=EventStatus.PENDING) | Q(
            status=EventStatus.FAILED, retry_count__lt=self._max_retries
        )
        with transaction.atomic():
            rows = list(
                OutboxEvent.objects.select_for_update(skip_locked=True)
                .filter(due)
                .order_by("created_at")[:batch_size]
            )
            for row in rows:
                if self._publish(row):
                    published += 1
                else:
                    failed += 1
        if rows:
            logger.info("outbox.relay_completed", published=published, failed=failed)
        return {"published": published, "failed": failed}

    def _publish(self, row: OutboxEvent) -> bool:
        log = logger.bind(outbox_id=str(row.id), event_type=row.event_type)
        try:
            event = event_from_payload(row.event_type, row.payload)
            with transaction.atomic():
                self._bus.publish(event)
        except Exception as exc:
            log.exception("outbox.publish_failed")
            row.mark_as_failed(f"{type(exc).__name__}: {exc}")
            if row.retry_count >= self._max_retries:
                log.error("outbox.retries_exhausted", retry_count=row.retry_count)
            return False
        row.mark_as_published()
        log.info("outbox.published")
        return True
