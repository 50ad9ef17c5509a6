"""URL routing for the finance domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import InvoicePaymentUrlView, VnpayReturnView

urlpatterns = [
    path("vnpay-return/", VnpayReturnView.as_view(), name="vnpay-return"),
    path(
        "invoices/<str:invoice_code>/payment-url/",
        InvoicePaymentUrlView.as_view(),
        name="invoice-payment-url",
    ),
]
