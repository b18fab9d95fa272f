"""Notification DTOs (Pydantic v2, immutable).

``OrderNotificationDTO`` and ``LowStockNotificationDTO`` are the data the
dispatcher needs; handlers build them from relayed domain events.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.notifications.constants import (
    MESSAGE_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    NotificationType,
)


class NotificationDataDTO(BaseModel):
    """Content of one notification, before it is addressed to users."""

    model_config = ConfigDict(frozen=True)

    type: NotificationType = NotificationType.SYSTEM
    title: str
    message: str
    link: str = ""
    related_id: Optional[UUID] = None
    related_model: str = ""

    @field_validator("title")
    @classmethod
    def truncate_title(cls, v: str) -> str:
        return v[:TITLE_MAX_LENGTH]

    @field_validator("message")
    @classmethod
    def truncate_message(cls, v: str) -> str:
        return v[:MESSAGE_MAX_LENGTH]


class OrderNotificationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    order_number: str
    user_id: Optional[int] = None
    customer_name: str = "Customer"


class OrderNotificationOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    cancelled_by: str = ""
    reason: str = ""


class LowStockNotificationDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: UUID
    name: str
    stock_available: int
