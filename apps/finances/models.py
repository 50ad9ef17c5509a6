"""Financial domain models: invoices and gateway callback history."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import Money


class Invoice(models.Model):
    """Invoice issued together with a booking and settled through the gateway."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending payment")
        PAID = "paid", _("Paid")
        CANCELED = "canceled", _("Canceled")

    class PaymentMethod(models.TextChoices):
        CARD = "card", _("Card")
        CASH = "cash", _("Cash")
        BANK_TRANSFER = "bank_transfer", _("Bank transfer")

    booking = models.OneToOneField(
        "bookings.Booking",
        on_delete=models.CASCADE,
        related_name="invoice",
    )
    invoice_code = models.CharField(max_length=40, unique=True)
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    payment_method = models.CharField(
        max_length=20,
        choices=PaymentMethod.choices,
        default=PaymentMethod.CARD,
    )
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    issued_date = models.DateTimeField(default=timezone.now)
    paid_date = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Invoice")
        verbose_name_plural = _("Invoices")
        ordering = ["-issued_date"]

    def __str__(self) -> str:
        return f"Invoice {self.invoice_code} ({self.status})"

    @staticmethod
    def generate_code(issued_at: datetime, booking_id: int) -> str:
        """INV-<epoch milliseconds>-<booking id>: unique because booking ids are."""
        return f"INV-{int(issued_at.timestamp() * 1000)}-{booking_id}"

    @property
    def total(self) -> Money:
        return Money(self.total_amount)

    @property
    def is_pending(self) -> bool:
        return self.status == self.Status.PENDING

    def mark_paid(self, paid_at: datetime | None = None) -> None:
        """PENDING -> PAID. Caller saves inside its transaction."""
        if not self.is_pending:
            raise ValueError(f"Cannot pay invoice {self.invoice_code} in status {self.status}")
        self.status = self.Status.PAID
        self.paid_date = paid_at or timezone.now()

    def mark_canceled(self) -> None:
        """PENDING -> CANCELED. Caller saves inside its transaction."""
        if not self.is_pending:
            raise ValueError(f"Cannot cancel invoice {self.invoice_code} in status {self.status}")
        self.status = self.Status.CANCELED


class PaymentTransaction(models.Model):
    """Gateway callback that moved an invoice out of PENDING."""

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="transactions",
    )
    provider = models.CharField(max_length=30, default="vnpay")
    response_code = models.CharField(max_length=10)
    transaction_no = models.CharField(max_length=50, blank=True)
    bank_code = models.CharField(max_length=20, blank=True)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    payload = models.JSONField(default=dict)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Payment transaction")
        verbose_name_plural = _("Payment transactions")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.provider} {self.response_code} for invoice {self.invoice_id}"
