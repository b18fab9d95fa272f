"""Notification domain exceptions."""

from __future__ import annotations

from rest_framework import status

from modules.core.exceptions import DomainError


class NotificationNotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Notification not found"
