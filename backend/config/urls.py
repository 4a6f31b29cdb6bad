from django.contrib import admin
from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from bookings.api import BookingCreateView, BookingDetailView, BookingPaymentView
from payments.api import (
    MobileMoneyStatusCheckView,
    PaymentDetailView,
    PaymentRefundView,
    PaymentStatusUpdateView,
    StripeWebhookView,
)

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/auth/login/", TokenObtainPairView.as_view(), name="auth-login"),
    path("api/auth/refresh/", TokenRefreshView.as_view(), name="auth-refresh"),
    path("api/bookings/", BookingCreateView.as_view(), name="booking-create"),
    path(
        "api/bookings/<str:reference>/",
        BookingDetailView.as_view(),
        name="booking-detail",
    ),
    path(
        "api/bookings/<str:reference>/payments/",
        BookingPaymentView.as_view(),
        name="booking-payment",
    ),
    path(
        "api/bookings/<str:reference>/payments/<str:payment_reference>/check/",
        MobileMoneyStatusCheckView.as_view(),
        name="payment-status-check",
    ),
    path("api/payments/<int:payment_id>/", PaymentDetailView.as_view(), name="payment-detail"),
    path(
        "api/payments/<int:payment_id>/status/",
        PaymentStatusUpdateView.as_view(),
        name="payment-status-update",
    ),
    path(
        "api/payments/<int:payment_id>/refund/",
        PaymentRefundView.as_view(),
        name="payment-refund",
    ),
    path("api/webhooks/stripe/", StripeWebhookView.as_view(), name="stripe-webhook"),
]
