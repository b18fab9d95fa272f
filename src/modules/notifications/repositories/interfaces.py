"""Notification repository interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, List, Optional

if TYPE_CHECKING:
    from django.db import models

    from modules.notifications.dtos import NotificationDataDTO
    from modules.notifications.models import Notification


class INotificationRepository(ABC):
    @abstractmethod
    def create_for_users(self, user_ids: Iterable[Any], data: NotificationDataDTO) -> int:
        """Create one notification per user; returns the number created."""

    @abstractmethod
    def staff_user_ids(self) -> List[int]:
        """Ids of active staff users (sellers and employees)."""

    @abstractmethod
    def for_user(self, user_id: Any, unread_only: bool = False) -> "models.QuerySet[Notification]":
        """Newest first."""

    @abstractmethod
    def unread_count(self, user_id: Any) -> int: ...

    @abstractmethod
    def mark_read(self, id: Any, user_id: Any) -> Optional[Notification]:
        """``None`` if the notification is missing or not the user's."""

    @abstractmethod
    def mark_all_read(self, user_id: Any) -> int: ...

    @abstractmethod
    def delete(self, id: Any, user_id: Any) -> bool: ...

    @abstractmethod
    def purge_older_than(self, cutoff: datetime) -> int: ...
