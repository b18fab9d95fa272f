"""Payment API views.

``verify`` is called by the buyer's client after checkout; ``webhook`` is
called by the gateway and authenticated by its signature only.
"""

from __future__ import annotations

from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework.viewsets import ViewSet

from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.orders.views import build_order_service
from modules.payments.constants import SIGNATURE_HEADER
from modules.payments.dtos import VerifyPaymentDTO
from modules.payments.gateway import RazorpayGateway
from modules.payments.serializers import PaymentStatusSerializer
from modules.payments.services import PaymentService


def build_payment_service() -> PaymentService:
    return PaymentService(
        order_service=build_order_service(),
        order_repository=OrderDjangoRepository(),
        gateway=RazorpayGateway(),
    )


class PaymentViewSet(ViewSet):
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._service = build_payment_service()

    def _owner(self, request: Request) -> int | None:
        return None if request.user.is_staff else request.user.pk

    @action(detail=False, methods=["post"])
    def verify(self, request: Request) -> Response:
        """POST /api/v1/payments/verify/"""
        dto = VerifyPaymentDTO.model_validate(request.data)
        order = self._service.verify_payment(dto, user_id=self._owner(request))
        return Response(PaymentStatusSerializer(order).data)

    @action(detail=False, methods=["get"], url_path=r"status/(?P<order_id>[^/.]+)")
    def payment_status(self, request: Request, order_id: str | None = None) -> Response:
        """GET /api/v1/payments/status/{order_id}/"""
        order = self._service.get_payment_status(order_id, user_id=self._owner(request))
        return Response(PaymentStatusSerializer(order).data)


class RazorpayWebhookView(APIView):
    """POST /api/v1/payments/webhook/

    The signature is computed over the raw body, so the body is read
    before DRF parses it.
    """

    authentication_classes: list = []
    permission_classes = [AllowAny]
    throttle_classes: list = []

    def post(self, request: Request) -> Response:
        body = request.body
        signature = request.headers.get(SIGNATURE_HEADER, "")
        result = build_payment_service().handle_webhook(body, signature)
        return Response(result.model_dump())
