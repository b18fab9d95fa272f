"""Notification DRF serializers."""

from __future__ import annotations

from rest_framework import serializers

from modules.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "type",
            "title",
            "message",
            "link",
            "related_id",
            "related_model",
            "read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields
