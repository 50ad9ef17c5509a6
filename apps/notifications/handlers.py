"""Domain event handlers that queue notifications."""

from __future__ import annotations

import logging

from apps.finances.events import InvoicePaid

from .tasks import send_booking_confirmation_email

logger = logging.getLogger(__name__)


def queue_booking_confirmation(event: InvoicePaid) -> None:
    """Queue the confirmation e-mail for a freshly paid invoice."""
    send_booking_confirmation_email.delay(event.invoice_id)
    logger.info(f"Queued booking confirmation for invoice {event.invoice_code}")


def register_handlers(bus) -> None:
    bus.register_event_handler(InvoicePaid, queue_booking_confirmation)
