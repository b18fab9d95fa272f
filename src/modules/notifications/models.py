"""In-app notification model.

Notifications are created by the dispatcher from relayed domain events and
are owned by a single user; read state is tracked per row.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models

from modules.core.models import BaseModel
from modules.notifications.constants import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    NotificationType,
    RelatedModel,
)


class Notification(BaseModel):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    type = models.CharField(
        max_length=10,
        choices=NotificationType.choices,
        default=NotificationType.SYSTEM,
    )
    title = models.CharField(max_length=TITLE_MAX_LENGTH)
    message = models.CharField(max_length=MESSAGE_MAX_LENGTH)
    link = models.CharField(max_length=255, blank=True, default="")
    related_id = models.UUIDField(null=True, blank=True)
    related_model = models.CharField(
        max_length=10, choices=RelatedModel.choices, blank=True, default=""
    )
    read = models.BooleanField(default=False)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "read", "-created_at"], name="notif_user_read_idx"),
            models.Index(fields=["-created_at"], name="notif_created_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title} -> {self.user_id}"
