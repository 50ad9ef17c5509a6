"""API views for payment processing.

The VNPay return endpoint is public: its authenticity comes from the
HMAC signature over the query string, not from a session. Payment link
regeneration is restricted to the booking owner.
"""

from __future__ import annotations

import structlog
from django.shortcuts import get_object_or_404  # type: ignore
from rest_framework import permissions, status  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.infrastructure.http import api_response, get_client_ip, get_request_locale

from .gateway import PaymentGatewayError, VnpayGateway
from .models import Invoice
from .reconciliation import ERROR, SUCCESS, PaymentReconciler
from .services import InvoiceNotPayableError, request_payment_url

logger = structlog.get_logger(__name__)


class VnpayReturnView(APIView):
    """Handle the browser redirect back from the VNPay payment page."""

    authentication_classes: list = []
    permission_classes = [permissions.AllowAny]

    def get_reconciler(self) -> PaymentReconciler:
        return PaymentReconciler(VnpayGateway.from_settings())

    def get(self, request, *args, **kwargs):  # type: ignore
        params = request.query_params.dict()
        try:
            reconciler = self.get_reconciler()
        except PaymentGatewayError as exc:
            logger.error("gateway_misconfigured", error=str(exc))
            return api_response(
                "error",
                "Payment gateway is not configured.",
                code="GATEWAY_NOT_CONFIGURED",
                http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

        result = reconciler.reconcile(params)

        if result.status == SUCCESS:
            return api_response(
                result.status,
                result.message,
                data={"invoice_code": result.invoice_code, "replayed": result.replayed},
            )

        data = {"txn_ref": result.invoice_code, "response_code": result.response_code}
        http_status = status.HTTP_500_INTERNAL_SERVER_ERROR if result.status == ERROR else status.HTTP_200_OK
        return api_response(result.status, result.message, code=result.code, data=data, http_status=http_status)


class InvoicePaymentUrlView(APIView):
    """Issue a fresh payment link for the caller's pending invoice."""

    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, invoice_code: str, *args, **kwargs):  # type: ignore
        invoice = get_object_or_404(
            Invoice.objects.select_related("booking"),
            invoice_code=invoice_code,
            booking__user=request.user,
        )
        try:
            payment_url = request_payment_url(invoice, get_client_ip(request), get_request_locale(request))
        except InvoiceNotPayableError as exc:
            return api_response(
                "error",
                str(exc),
                code=exc.code,
                http_status=status.HTTP_409_CONFLICT,
            )
        except PaymentGatewayError:
            return api_response(
                "error",
                "The payment link could not be generated.",
                code="PAYMENT_LINK_FAILED",
                http_status=status.HTTP_502_BAD_GATEWAY,
            )

        return api_response(
            "success",
            "Payment link generated.",
            data={"invoice_code": invoice.invoice_code, "payment_url": payment_url},
        )
