"""Payment URL configuration."""

from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from modules.payments.views import PaymentViewSet, RazorpayWebhookView

router = DefaultRouter(trailing_slash=True)
router.register("payments", PaymentViewSet, basename="payment")

urlpatterns = [
    path("payments/webhook/", RazorpayWebhookView.as_view(), name="payment-webhook"),
    *router.urls,
]
