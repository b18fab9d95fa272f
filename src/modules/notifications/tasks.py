"""Async tasks for the notifications module."""

import structlog
from celery import shared_task

logger = structlog.get_logger(__name__)


@shared_task(name="notifications.purge_expired", ignore_result=True)
def purge_expired_notifications() -> int:
    """Delete notifications past the retention window."""
    from modules.notifications.repositories.django_repository import (
        NotificationDjangoRepository,
    )
    from modules.notifications.services import NotificationService

    deleted = NotificationService(NotificationDjangoRepository()).purge_expired()
    logger.info("purge_expired_notifications.executed", deleted=deleted)
    return deleted
