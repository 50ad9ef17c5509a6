"""
Booking Command Handlers

Use cases for the booking domain. They orchestrate domain operations
within transactions.

Commands:
- CreateBookingCommand: Reserve rooms and services, issue the invoice
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import logging

from django.utils import timezone

from shared.application.uow import DjangoUnitOfWork
from shared.domain.exceptions import BookingValidationError, NotFoundError
from shared.domain.value_objects import TimeInterval
from apps.bookings.availability import ensure_rooms_available, lock_rooms
from apps.bookings.models import Booking, BookingRoom, BookingService
from apps.bookings.pricing import ServiceLine, compute_total, count_nights

logger = logging.getLogger(__name__)


# ===== Commands =====

@dataclass(frozen=True)
class ServiceRequest:
    service_id: int
    quantity: int = 1


@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    This is the primary entry point for creating bookings.
    """
    user_id: int
    room_ids: List[int]
    start_time: datetime
    end_time: datetime
    num_adults: int = 1
    num_children: int = 0
    services: List[ServiceRequest] = field(default_factory=list)
    payment_method: str = 'card'
    client_ip: str = '127.0.0.1'
    locale: str = 'vi'


@dataclass
class BookingResult:
    """
    Outcome of a committed booking

    ``payment_error`` is set when the booking and invoice were committed
    but no payment link could be produced; the caller can request one
    later for the still-pending invoice.
    """
    booking: Booking
    invoice: object
    payment_url: Optional[str] = None
    payment_error: Optional[str] = None

    @property
    def payment_link_failed(self) -> bool:
        return self.payment_error is not None


# ===== Command Handlers =====

class CreateBookingHandler:
    """
    Handler for CreateBooking command

    Strategy:
    1. Validate the request (no database access)
    2. Start database transaction (atomic)
    3. Lock requested Room rows with SELECT FOR UPDATE, ordered by id
    4. Load services in one query
    5. Check availability of every room (no partial allocation)
    6. Price the reservation
    7. Insert Booking, Invoice, BookingRoom and BookingService rows
    8. Commit transaction
    9. Request the payment link (outside the transaction)

    Raises:
        BookingValidationError: Malformed request (START_TIME_PAST, INVALID_INTERVAL, ...)
        NotFoundError: Unknown room or service
        ConflictError: A room is already booked for an overlapping interval
        TransactionError: Storage failure; everything was rolled back
    """

    def __init__(self, gateway=None, clock=timezone.now):
        self.gateway = gateway
        self.clock = clock

    def handle(self, command: CreateBookingCommand) -> BookingResult:
        from apps.finances.models import Invoice

        logger.info(
            f"Creating booking for user {command.user_id}, rooms {command.room_ids}, "
            f"{command.start_time} - {command.end_time}"
        )

        now = self.clock()
        interval = self._validate(command, now)
        room_ids = sorted(command.room_ids)

        with DjangoUnitOfWork():
            rooms = lock_rooms(room_ids)
            missing_rooms = [room_id for room_id in room_ids if room_id not in rooms]
            if missing_rooms:
                raise NotFoundError("ROOM_NOT_FOUND", f"Room {missing_rooms[0]} not found.")

            services = self._load_services(command.services)

            ensure_rooms_available(room_ids, interval)

            nights = count_nights(interval)
            service_lines = [
                ServiceLine(services[request.service_id].price, request.quantity)
                for request in command.services
            ]
            total = compute_total([rooms[room_id].price for room_id in room_ids], nights, service_lines)

            booking = Booking.objects.create(
                user_id=command.user_id,
                start_time=interval.start,
                end_time=interval.end,
                num_adults=command.num_adults,
                num_children=command.num_children,
                status=Booking.Status.BOOKED,
                locale=command.locale,
            )
            invoice = Invoice.objects.create(
                booking=booking,
                invoice_code=Invoice.generate_code(now, booking.pk),
                total_amount=total.amount,
                payment_method=command.payment_method,
                status=Invoice.Status.PENDING,
                issued_date=now,
            )
            BookingRoom.objects.bulk_create([
                BookingRoom(booking=booking, room=rooms[room_id], price_at_booking=rooms[room_id].price)
                for room_id in room_ids
            ])
            BookingService.objects.bulk_create([
                BookingService(
                    booking=booking,
                    service=services[request.service_id],
                    quantity=request.quantity,
                    price_at_booking=services[request.service_id].price,
                )
                for request in command.services
            ])

        logger.info(
            f"Booking {booking.pk} created with invoice {invoice.invoice_code}, "
            f"total {total}, {nights} night(s)"
        )

        return self._attach_payment_url(booking, invoice, command)

    def _validate(self, command: CreateBookingCommand, now: datetime) -> TimeInterval:
        if command.start_time <= now:
            raise BookingValidationError("START_TIME_PAST", "Start time must be in the future.")
        if command.end_time <= command.start_time:
            raise BookingValidationError("INVALID_INTERVAL", "End time must be after start time.")
        if not command.room_ids:
            raise BookingValidationError("ROOM_REQUIRED", "At least one room is required.")
        if len(set(command.room_ids)) != len(command.room_ids):
            raise BookingValidationError("DUPLICATE_ROOM", "A room can only be booked once per booking.")

        service_ids = [request.service_id for request in command.services]
        if len(set(service_ids)) != len(service_ids):
            raise BookingValidationError("DUPLICATE_SERVICE", "A service can only be listed once per booking.")
        for request in command.services:
            if request.quantity < 1:
                raise BookingValidationError("INVALID_QUANTITY", f"Quantity must be at least 1 for service {request.service_id}.")

        if command.num_adults < 1:
            raise BookingValidationError("INVALID_GUESTS", "At least one adult is required.")
        if command.num_children < 0:
            raise BookingValidationError("INVALID_GUESTS", "Number of children cannot be negative.")

        return TimeInterval(command.start_time, command.end_time)

    def _load_services(self, requests: List[ServiceRequest]) -> dict:
        from apps.catalog.models import Service

        if not requests:
            return {}

        requested_ids = [request.service_id for request in requests]
        services = Service.objects.in_bulk(requested_ids)
        for service_id in requested_ids:
            if service_id not in services:
                raise NotFoundError("SERVICE_NOT_FOUND", f"Service {service_id} not found.")
        return services

    def _attach_payment_url(self, booking, invoice, command: CreateBookingCommand) -> BookingResult:
        from apps.finances.gateway import PaymentGatewayError
        from apps.finances.services import request_payment_url

        try:
            payment_url = request_payment_url(
                invoice,
                command.client_ip,
                command.locale,
                gateway=self.gateway,
            )
        except PaymentGatewayError as exc:
            logger.error(
                f"Booking {booking.pk} committed but payment link failed: {exc}",
                exc_info=True,
            )
            return BookingResult(booking=booking, invoice=invoice, payment_error=str(exc))

        return BookingResult(booking=booking, invoice=invoice, payment_url=payment_url)
