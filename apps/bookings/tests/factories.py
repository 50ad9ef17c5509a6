"""Small builders for booking and invoice rows used across test modules."""

from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone

from apps.bookings.models import Booking, BookingRoom
from apps.catalog.models import Room, Service
from apps.finances.models import Invoice


def make_user(username: str = "guest", email: str | None = None):
    return get_user_model().objects.create_user(
        username=username,
        email=email if email is not None else f"{username}@example.com",
        password="GuestPass123",
    )


def make_room(name: str = "Deluxe 101", price: str = "1000.00") -> Room:
    return Room.objects.create(name=name, price=Decimal(price), capacity=2)


def make_service(name: str = "Breakfast", price: str = "200.00") -> Service:
    return Service.objects.create(name=name, price=Decimal(price))


def tomorrow_at(hour: int = 14) -> datetime:
    day = timezone.localtime() + timedelta(days=1)
    return day.replace(hour=hour, minute=0, second=0, microsecond=0)


def make_booking(
    user,
    rooms,
    start: datetime,
    end: datetime,
    *,
    status: str = Booking.Status.BOOKED,
    total: str = "1000.00",
    invoice_status: str = Invoice.Status.PENDING,
) -> Booking:
    """Booking with its rooms and invoice, written directly."""
    booking = Booking.objects.create(user=user, start_time=start, end_time=end, status=status)
    for room in rooms:
        BookingRoom.objects.create(booking=booking, room=room, price_at_booking=room.price)
    Invoice.objects.create(
        booking=booking,
        invoice_code=Invoice.generate_code(timezone.now(), booking.pk),
        total_amount=Decimal(total),
        status=invoice_status,
    )
    return booking
