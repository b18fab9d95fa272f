"""Product API views.

Exposes the ``ProductService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``api_exception_handler``; the view never
swallows generic exceptions.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.mixins import ListModelMixin
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from modules.inventory.repositories.django_repository import (
    LedgerDjangoRepository,
    StockDjangoRepository,
)
from modules.inventory.services import InventoryService
from modules.products.dtos import CreateProductDTO, PriceQuoteDTO, UpdateProductDTO
from modules.products.filters import ProductFilter
from modules.products.models import Product
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.serializers import PriceQuoteSerializer, ProductSerializer
from modules.products.services import ProductService


class ProductViewSet(ListModelMixin, GenericViewSet):
    """ViewSet for the product catalog.

    Reads are open to any authenticated buyer; catalog writes are staff
    only.  Does **not** extend ``ModelViewSet``; all ORM access goes
    through the service/repository layer.
    """

    filterset_class = ProductFilter
    search_fields = ["name", "sku", "brand", "description"]
    ordering_fields = ["name", "price", "stock_total", "created_at"]
    ordering = ["name", "id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    queryset = Product.objects.alive()
    serializer_class = ProductSerializer

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = ProductService(
            repository=ProductDjangoRepository(),
            inventory_service=InventoryService(
                StockDjangoRepository(), LedgerDjangoRepository()
            ),
        )

    def get_permissions(self):
        if self.action in ("list", "retrieve", "quote"):
            return [IsAuthenticated()]
        return [IsAdminUser()]

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        return self._service.list_products()

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/"""
        product = self._service.get_product(pk)
        return Response(ProductSerializer(product).data)

    @action(detail=True, methods=["get"], url_path="quote")
    def quote(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/products/{pk}/quote/?quantity=N"""
        try:
            quantity = int(request.query_params.get("quantity", ""))
        except ValueError:
            raise ValidationError({"quantity": "A positive integer is required."})
        if quantity <= 0:
            raise ValidationError({"quantity": "A positive integer is required."})

        quote = PriceQuoteDTO.from_quote(self._service.quote(pk, quantity))
        return Response(PriceQuoteSerializer(quote.model_dump()).data)

    # ------------------------------------------------------------------
    # Create / Update / Destroy
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/products/"""
        dto = CreateProductDTO.model_validate(request.data)
        product = self._service.create_product(dto, actor=request.user)
        return Response(ProductSerializer(product).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/products/{pk}/"""
        dto = UpdateProductDTO.model_validate(request.data)
        product = self._service.update_product(pk, dto)
        return Response(ProductSerializer(product).data)

    def update(self, request: Request, pk: str | None = None) -> Response:
        """PUT /api/v1/products/{pk}/"""
        return self.partial_update(request, pk)

    def destroy(self, request: Request, pk: str | None = None) -> Response:
        """DELETE /api/v1/products/{pk}/"""
        self._service.delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)
