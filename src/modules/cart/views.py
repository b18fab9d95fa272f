"""Cart API views: ``/api/v1/cart/``."""

from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.cart.serializers import AddCartItemSerializer, UpdateCartItemSerializer
from modules.cart.services import CartService
from modules.products.repositories.django_repository import ProductDjangoRepository


class CartViewSet(ViewSet):
    """The authenticated user's cart.

    ``GET cart/``, ``DELETE cart/``, ``POST cart/items/``,
    ``PATCH|DELETE cart/items/{product_id}/``.
    """

    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = CartService(CartDjangoRepository(), ProductDjangoRepository())

    def list(self, request: Request) -> Response:
        return Response(self._service.get_cart(request.user.pk).model_dump(mode="json"))

    @action(detail=False, methods=["delete"], url_path="clear")
    def clear(self, request: Request) -> Response:
        return Response(self._service.clear(request.user.pk).model_dump(mode="json"))

    @action(detail=False, methods=["post"], url_path="items")
    def add_item(self, request: Request) -> Response:
        serializer = AddCartItemSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        cart = self._service.add_item(
            request.user.pk,
            serializer.validated_data["product_id"],
            serializer.validated_data["quantity"],
        )
        return Response(cart.model_dump(mode="json"), status=status.HTTP_201_CREATED)

    @action(
        detail=False,
        methods=["patch", "delete"],
        url_path=r"items/(?P<product_id>[^/.]+)",
    )
    def item(self, request: Request, product_id: str | None = None) -> Response:
        if request.method == "DELETE":
            cart = self._service.remove_item(request.user.pk, product_id)
        else:
            serializer = UpdateCartItemSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            cart = self._service.update_item(
                request.user.pk, product_id, serializer.validated_data["quantity"]
            )
        return Response(cart.model_dump(mode="json"))
