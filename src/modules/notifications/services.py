"""Notification service layer: the user's inbox."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import structlog
from django.conf import settings
from django.utils import timezone

from modules.notifications.exceptions import NotificationNotFound

if TYPE_CHECKING:
    from django.db import models

    from modules.notifications.models import Notification
    from modules.notifications.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)


class NotificationService:
    def __init__(self, repository: INotificationRepository) -> None:
        self._repo = repository

    def list_for_user(
        self, user_id: Any, unread_only: bool = False
    ) -> "models.QuerySet[Notification]":
        return self._repo.for_user(user_id, unread_only=unread_only)

    def unread_count(self, user_id: Any) -> int:
        return self._repo.unread_count(user_id)

    def mark_read(self, notification_id: Any, user_id: Any) -> Notification:
        """Raises ``NotificationNotFound`` if missing or not the user's."""
        notification = self._repo.mark_read(notification_id, user_id)
        if notification is None:
            raise NotificationNotFound()
        return notification

    def mark_all_read(self, user_id: Any) -> int:
        count = self._repo.mark_all_read(user_id)
        logger.info("notifications.marked_all_read", user_id=user_id, count=count)
        return count

    def delete(self, notification_id: Any, user_id: Any) -> None:
        if not self._repo.delete(notification_id, user_id):
            raise NotificationNotFound()

    def purge_expired(self) -> int:
        """Delete notifications older than ``NOTIFICATION_RETENTION_DAYS``."""
        cutoff = timezone.now() - timedelta(days=settings.NOTIFICATION_RETENTION_DAYS)
        return self._repo.purge_older_than(cutoff)
