"""Booking domain models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import TimeInterval


class Booking(models.Model):
    """Reservation of one or more rooms for a time window."""

    class Status(models.TextChoices):
        BOOKED = "booked", _("Booked")
        CANCELED = "canceled", _("Canceled")
        COMPLETED = "completed", _("Completed")

    TERMINAL_STATUSES = (Status.CANCELED, Status.COMPLETED)

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="bookings",
    )
    start_time = models.DateTimeField()
    end_time = models.DateTimeField()
    num_adults = models.PositiveSmallIntegerField(default=1)
    num_children = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.BOOKED,
    )
    locale = models.CharField(
        max_length=10,
        default="vi",
        help_text=_("Language used for messages about this booking."),
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Booking")
        verbose_name_plural = _("Bookings")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_time__gt=models.F("start_time")),
                name="booking_valid_interval",
            ),
        ]
        indexes = [
            models.Index(fields=["start_time", "end_time"], name="booking_interval_idx"),
            models.Index(fields=["status"], name="booking_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Booking #{self.pk} ({self.status})"

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start_time, self.end_time)

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    def mark_canceled(self) -> None:
        """BOOKED -> CANCELED. Caller saves inside its transaction."""
        if self.is_terminal:
            raise ValueError(f"Cannot cancel booking {self.pk} in status {self.status}")
        self.status = self.Status.CANCELED


class BookingRoom(models.Model):
    """Room held by a booking, with the nightly price captured at booking time."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="booking_rooms",
    )
    room = models.ForeignKey(
        "catalog.Room",
        on_delete=models.PROTECT,
        related_name="booking_rooms",
    )
    price_at_booking = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        verbose_name = _("Booked room")
        verbose_name_plural = _("Booked rooms")
        constraints = [
            models.UniqueConstraint(fields=["booking", "room"], name="booking_room_unique"),
        ]

    def __str__(self) -> str:
        return f"Room {self.room_id} in booking {self.booking_id}"


class BookingService(models.Model):
    """Ancillary service line of a booking, with unit price captured at booking time."""

    booking = models.ForeignKey(
        Booking,
        on_delete=models.CASCADE,
        related_name="booking_services",
    )
    service = models.ForeignKey(
        "catalog.Service",
        on_delete=models.PROTECT,
        related_name="booking_services",
    )
    quantity = models.PositiveIntegerField(default=1)
    price_at_booking = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        verbose_name = _("Booked service")
        verbose_name_plural = _("Booked services")
        constraints = [
            models.UniqueConstraint(fields=["booking", "service"], name="booking_service_unique"),
        ]

    def __str__(self) -> str:
        return f"{self.quantity} x service {self.service_id} in booking {self.booking_id}"
