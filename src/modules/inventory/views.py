"""Inventory API views (staff only).

Reserve, release and deduct are not exposed: they are driven by the
order lifecycle.  Domain exceptions propagate to ``api_exception_handler``.
"""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.inventory.constants import STOCK_LIST_DEFAULT_LIMIT
from modules.inventory.dtos import LedgerEntryDTO, LedgerQueryDTO, StockMutationResult
from modules.inventory.repositories.django_repository import (
    LedgerDjangoRepository,
    StockDjangoRepository,
)
from modules.inventory.serializers import StockMutationInputSerializer, StockProductSerializer
from modules.inventory.services import InventoryService


def _mutation_response(result: StockMutationResult, code: int = status.HTTP_200_OK) -> Response:
    return Response(
        {
            "product": StockProductSerializer(result.product).data,
            "log": LedgerEntryDTO.from_entity(result.entry).model_dump(mode="json"),
        },
        status=code,
    )


def _limit(request: Request) -> int:
    try:
        limit = int(request.query_params.get("limit", STOCK_LIST_DEFAULT_LIMIT))
    except ValueError:
        return STOCK_LIST_DEFAULT_LIMIT
    return max(1, min(limit, 100))


class _InventoryViewSet(ViewSet):
    permission_classes = [IsAdminUser]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = InventoryService(StockDjangoRepository(), LedgerDjangoRepository())

    def _ledger_query(self, request: Request) -> LedgerQueryDTO:
        params = {key: value for key, value in request.query_params.items() if value != ""}
        return LedgerQueryDTO.model_validate(params)


class ProductStockViewSet(_InventoryViewSet):
    """Stock operations on one product: ``/inventory/products/{pk}/...``."""

    @action(detail=True, methods=["post"], url_path="add")
    def add(self, request: Request, pk: str | None = None) -> Response:
        data = self._validated(request)
        result = self._service.add_stock(
            pk, data["quantity"], actor=request.user,
            reason=data.get("reason"), notes=data.get("notes", ""),
        )
        return _mutation_response(result, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="adjust")
    def adjust(self, request: Request, pk: str | None = None) -> Response:
        data = self._validated(request)
        result = self._service.adjust_stock(
            pk, data["quantity"], actor=request.user,
            reason=data.get("reason"), notes=data.get("notes", ""),
        )
        return _mutation_response(result)

    @action(detail=True, methods=["post"], url_path="damaged")
    def damaged(self, request: Request, pk: str | None = None) -> Response:
        data = self._validated(request)
        result = self._service.mark_damaged(
            pk, data["quantity"], actor=request.user,
            reason=data.get("reason"), notes=data.get("notes", ""),
        )
        return _mutation_response(result)

    @action(detail=True, methods=["get"], url_path="logs")
    def logs(self, request: Request, pk: str | None = None) -> Response:
        page = self._service.get_logs(pk, self._ledger_query(request))
        return Response(page.model_dump(mode="json"))

    def _validated(self, request: Request) -> dict:
        serializer = StockMutationInputSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


class InventoryViewSet(_InventoryViewSet):
    """Inventory-wide reads: ``/inventory/logs/``, ``stats/``, ``low-stock/``, ``out-of-stock/``."""

    @action(detail=False, methods=["get"], url_path="logs")
    def logs(self, request: Request) -> Response:
        page = self._service.get_logs(None, self._ledger_query(request))
        return Response(page.model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request: Request) -> Response:
        return Response(self._service.get_stats().model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request: Request) -> Response:
        products = self._service.get_low_stock_products(_limit(request))
        return Response(StockProductSerializer(products, many=True).data)

    @action(detail=False, methods=["get"], url_path="out-of-stock")
    def out_of_stock(self, request: Request) -> Response:
        products = self._service.get_out_of_stock_products(_limit(request))
        return Response(StockProductSerializer(products, many=True).data)
