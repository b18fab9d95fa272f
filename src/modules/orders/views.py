"""Order API views.

Exposes the ``OrderService`` via HTTP using DRF ViewSets.  Domain
exceptions propagate to ``api_exception_handler``; the view never
swallows generic exceptions.

Buyers see and act on their own orders only; staff (``is_staff``) see
every order and drive fulfilment, payment confirmation and refunds.
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter, SearchFilter
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import BaseThrottle
from rest_framework.viewsets import GenericViewSet

from modules.cart.repositories.django_repository import CartDjangoRepository
from modules.core.pagination import StandardResultsSetPagination
from modules.customers.repositories.django_repository import CustomerDjangoRepository
from modules.inventory.repositories.django_repository import (
    LedgerDjangoRepository,
    StockDjangoRepository,
)
from modules.inventory.services import InventoryService
from modules.orders.constants import CancelledBy
from modules.orders.dtos import CreateOrderDTO
from modules.orders.filters import OrderFilter
from modules.orders.models import Order
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.serializers import (
    AssignEmployeeSerializer,
    CancelOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    StaffCancelOrderSerializer,
    StaffOrderSerializer,
    SubmitPaymentSerializer,
    UpdateOrderStatusSerializer,
)
from modules.orders.services import OrderService

STAFF_ACTIONS = {
    "partial_update",
    "confirm_payment",
    "refund",
    "assign",
    "stats",
    "pending_payment",
}


def build_order_service() -> OrderService:
    """Wire ``OrderService`` with its Django repositories."""
    return OrderService(
        order_repository=OrderDjangoRepository(),
        cart_repository=CartDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        inventory_service=InventoryService(StockDjangoRepository(), LedgerDjangoRepository()),
    )


class OrderViewSet(GenericViewSet):
    """ViewSet for Order operations.

    Uses ``OrderService`` with injected repositories (DIP).
    Does **not** extend ``ModelViewSet``; all writes go through the
    service/repository layer.
    """

    queryset = Order.objects.all()
    filterset_class = OrderFilter
    search_fields = ["order_number", "customer_snapshot__name", "customer_snapshot__business_name"]
    ordering_fields = ["created_at", "total_amount", "status"]
    ordering = ["-created_at", "-id"]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_order_service()

    def get_permissions(self):
        if self.action in STAFF_ACTIONS:
            return [IsAdminUser()]
        return [IsAuthenticated()]

    def get_throttles(self) -> list[BaseThrottle]:
        """Per-action throttling scopes."""
        throttle_scope: str | None
        if self.action == "create":
            throttle_scope = "order_creation"
        elif self.action in {"list", "retrieve"}:
            throttle_scope = "order_listing"
        else:
            throttle_scope = None
        self.throttle_scope = throttle_scope
        return super().get_throttles()

    def _is_staff(self) -> bool:
        return bool(self.request.user and self.request.user.is_staff)

    def _owner(self) -> int | None:
        """Restrict look-ups to the caller's orders unless staff."""
        return None if self._is_staff() else self.request.user.pk

    def _detail(self, order: Order) -> Response:
        serializer_class = StaffOrderSerializer if self._is_staff() else OrderSerializer
        return Response(serializer_class(order).data)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(self, request: Request) -> Response:
        """POST /api/v1/orders/

        Places an order from the caller's cart and reserves its stock.
        """
        dto = CreateOrderDTO.model_validate(request.data)
        order = self._service.create_order(request.user.pk, dto)
        return Response(OrderSerializer(order).data, status=status.HTTP_201_CREATED)

    # ------------------------------------------------------------------
    # List / Retrieve
    # ------------------------------------------------------------------

    def get_queryset(self):
        if self._is_staff():
            return self._service.list_orders()
        return self._service.list_user_orders(self.request.user.pk)

    def list(self, request: Request) -> Response:
        """GET /api/v1/orders/

        Filtering is handled by ``OrderFilter``, ordering by
        ``OrderingFilter``.  Results are paginated.
        """
        queryset = self.filter_queryset(self.get_queryset())

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    def retrieve(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/"""
        return self._detail(self._service.get_order(pk, user_id=self._owner()))

    @action(detail=True, methods=["get"])
    def invoice(self, request: Request, pk: str | None = None) -> Response:
        """GET /api/v1/orders/{pk}/invoice/"""
        invoice = self._service.get_invoice_data(pk, user_id=self._owner())
        return Response(invoice.model_dump(mode="json"))

    @action(detail=False, methods=["get"])
    def stats(self, request: Request) -> Response:
        """GET /api/v1/orders/stats/"""
        return Response(self._service.get_order_stats().model_dump(mode="json"))

    @action(detail=False, methods=["get"], url_path="pending-payment")
    def pending_payment(self, request: Request) -> Response:
        """GET /api/v1/orders/pending-payment/ (oldest first)."""
        queryset = self._service.list_pending_payment_orders()
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path="assigned")
    def assigned(self, request: Request) -> Response:
        """GET /api/v1/orders/assigned/ (orders assigned to the caller)."""
        queryset = self._service.list_employee_orders(request.user.pk)
        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = OrderListSerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)

    # ------------------------------------------------------------------
    # Status Update
    # ------------------------------------------------------------------

    def partial_update(self, request: Request, pk: str | None = None) -> Response:
        """PATCH /api/v1/orders/{pk}/

        Staff fulfilment transitions (accepted, in_transit, delivered).
        Payment and cancellation have dedicated endpoints.
        """
        serializer = UpdateOrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.update_status(
            pk,
            serializer.validated_data["status"],
            note=serializer.validated_data["note"],
            actor=request.user,
        )
        return self._detail(order)

    @action(detail=True, methods=["post"])
    def assign(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/assign/"""
        serializer = AssignEmployeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.assign_employee(
            pk, serializer.validated_data["employee_id"], actor=request.user
        )
        return self._detail(order)

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"], url_path="submit-payment")
    def submit_payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/submit-payment/"""
        serializer = SubmitPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.submit_payment(
            pk,
            request.user.pk,
            method=serializer.validated_data.get("payment_method"),
            reference=serializer.validated_data["reference"],
        )
        return self._detail(order)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/confirm-payment/

        Manual confirmation by staff; deducts the reserved stock.
        """
        order = self._service.confirm_payment(pk, actor=request.user)
        return self._detail(order)

    # ------------------------------------------------------------------
    # Cancel / Refund
    # ------------------------------------------------------------------

    @action(detail=True, methods=["post"])
    def cancel(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/cancel/

        Cancels an unpaid order and releases its reserved stock.
        """
        if self._is_staff():
            serializer = StaffCancelOrderSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            cancelled_by = serializer.validated_data["cancelled_by"]
        else:
            serializer = CancelOrderSerializer(data=request.data)
            serializer.is_valid(raise_exception=True)
            cancelled_by = CancelledBy.CUSTOMER

        order = self._service.cancel_order(
            pk,
            actor=request.user,
            reason=serializer.validated_data["reason"],
            cancelled_by=cancelled_by,
            user_id=self._owner(),
        )
        return self._detail(order)

    @action(detail=True, methods=["post"])
    def refund(self, request: Request, pk: str | None = None) -> Response:
        """POST /api/v1/orders/{pk}/refund/

        Cancels a paid or accepted order, marks it refunded and puts its
        stock back.
        """
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = self._service.refund_and_restock(
            pk, actor=request.user, reason=serializer.validated_data["reason"]
        )
        return self._detail(order)
