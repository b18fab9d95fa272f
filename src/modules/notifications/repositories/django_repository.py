"""Django ORM implementation of the Notification repository."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable, List, Optional

import structlog
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from modules.notifications.dtos import NotificationDataDTO
from modules.notifications.models import Notification
from modules.notifications.repositories.interfaces import INotificationRepository

logger = structlog.get_logger(__name__)


class NotificationDjangoRepository(INotificationRepository):
    def create_for_users(self, user_ids: Iterable[Any], data: NotificationDataDTO) -> int:
        fields = data.model_dump()
        created = Notification.objects.bulk_create(
            Notification(user_id=user_id, **fields) for user_id in user_ids
        )
        return len(created)

    def staff_user_ids(self) -> List[int]:
        return list(
            get_user_model()
            .objects.filter(is_staff=True, is_active=True)
            .values_list("pk", flat=True)
        )

    def for_user(self, user_id: Any, unread_only: bool = False) -> "models.QuerySet[Notification]":
        queryset = Notification.objects.filter(user_id=user_id)
        if unread_only:
            queryset = queryset.filter(read=False)
        return queryset.order_by("-created_at")

    def unread_count(self, user_id: Any) -> int:
        return Notification.objects.filter(user_id=user_id, read=False).count()

    def mark_read(self, id: Any, user_id: Any) -> Optional[Notification]:
        try:
            notification = Notification.objects.filter(id=id, user_id=user_id).first()
        except (ValueError, ValidationError):
            return None
        if notification is None:
            return None
        if not notification.read:
            notification.read = True
            notification.read_at = timezone.now()
            notification.save(update_fields=["read", "read_at"])
        return notification

    def mark_all_read(self, user_id: Any) -> int:
        now = timezone.now()
        return Notification.objects.filter(user_id=user_id, read=False).update(
            read=True, read_at=now, updated_at=now
        )

    def delete(self, id: Any, user_id: Any) -> bool:
        try:
            deleted, _ = Notification.objects.filter(id=id, user_id=user_id).delete()
        except (ValueError, ValidationError):
            return False
        return deleted > 0

    def purge_older_than(self, cutoff: datetime) -> int:
        deleted, _ = Notification.objects.filter(created_at__lt=cutoff).delete()
        logger.info("notifications.purged", count=deleted, cutoff=cutoff.isoformat())
        return deleted
