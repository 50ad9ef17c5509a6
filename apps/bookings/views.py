"""API views for the booking domain."""

from __future__ import annotations

import logging

from rest_framework import generics, permissions, status  # type: ignore
from rest_framework.views import APIView  # type: ignore

from shared.domain.exceptions import (
    BookingValidationError,
    ConflictError,
    DomainError,
    NotFoundError,
    TransactionError,
)
from shared.infrastructure.http import api_response, first_error_code, get_client_ip, get_request_locale

from .application.command_handlers import CreateBookingHandler
from .models import Booking
from .serializers import BookingCreateSerializer, BookingSerializer

logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (BookingValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (TransactionError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_status_for(error: DomainError) -> int:
    for error_class, http_status in ERROR_STATUS:
        if isinstance(error, error_class):
            return http_status
    return status.HTTP_400_BAD_REQUEST


class BookingCreateView(APIView):
    """Reserve rooms and services, then return the payment link."""

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = BookingCreateSerializer

    def get_handler(self) -> CreateBookingHandler:
        return CreateBookingHandler()

    def post(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return api_response(
                "error",
                "Invalid booking request.",
                code=first_error_code(serializer.errors),
                data=serializer.errors,
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        command = serializer.to_command(request.user, get_client_ip(request), get_request_locale(request))
        try:
            result = self.get_handler().handle(command)
        except DomainError as exc:
            logger.warning(f"Booking rejected for user {request.user.pk}: {exc.code} {exc.message}")
            data = {"room_id": exc.room_id} if isinstance(exc, ConflictError) else None
            return api_response("error", exc.message, code=exc.code, data=data, http_status=http_status_for(exc))

        invoice = result.invoice
        data = {
            "booking_id": result.booking.pk,
            "invoice_id": invoice.pk,
            "invoice_code": invoice.invoice_code,
            "total_amount": str(invoice.total_amount),
            "payment_url": result.payment_url,
        }
        if result.payment_link_failed:
            return api_response(
                "success",
                "Booking created, but the payment link could not be generated. Request a new one later.",
                code="PAYMENT_LINK_FAILED",
                data=data,
                http_status=status.HTTP_201_CREATED,
            )
        return api_response("success", "Booking created.", data=data, http_status=status.HTTP_201_CREATED)


class BookingDetailView(generics.RetrieveAPIView):
    """Caller's own booking with rooms, services and invoice."""

    permission_classes = [permissions.IsAuthenticated]
    serializer_class = BookingSerializer

    def get_queryset(self):  # type: ignore
        return (
            Booking.objects.filter(user=self.request.user)
            .select_related("invoice")
            .prefetch_related("booking_rooms__room", "booking_services__service", "invoice__transactions")
        )
