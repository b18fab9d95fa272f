"""Notification API views: the authenticated user's inbox."""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.core.pagination import StandardResultsSetPagination
from modules.notifications.repositories.django_repository import NotificationDjangoRepository
from modules.notifications.serializers import NotificationSerializer
from modules.notifications.services import NotificationService

_TRUTHY = {"1", "true", "yes"}


class NotificationViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = NotificationService(NotificationDjangoRepository())

    def list(self, request: Request) -> Response:
        """GET /api/v1/notifications/?unread=true"""
        unread_only = request.query_params.get("unread", "").lower() in _TRUTHY
        queryset = self._service.list_for_user(request.user.pk, unread_only=unread_only)

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        response = paginator.get_paginated_response(NotificationSerializer(page, many=True).data)
        response.data["unread_count"] = self._service.unread_count(request.user.pk)
        return response

    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request: Request) -> Response:
        return Response({"unread_count": self._service.unread_count(request.user.pk)})

    @action(detail=True, methods=["post", "put"])
    def read(self, request: Request, pk: str | None = None) -> Response:
        notification = self._service.mark_read(pk, request.user.pk)
        return Response(NotificationSerializer(notification).data)

    @action(detail=False, methods=["post", "put"], url_path="read-all")
    def read_all(self, request: Request) -> Response:
        return Response({"modified_count": self._service.mark_all_read(request.user.pk)})

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        self._service.delete(pk, request.user.pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
