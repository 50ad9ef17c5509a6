"""Celery tasks for notification delivery."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from . import services

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """The mail backend refused the message; the task will be retried."""


@shared_task(
    name="notifications.send_booking_confirmation_email",
    autoretry_for=(EmailDeliveryError,),
    retry_backoff=True,
    retry_backoff_max=600,
    max_retries=5,
)
def send_booking_confirmation_email(invoice_id: int) -> bool:
    """
    Send the booking confirmation for a paid invoice.

    Enqueued after the payment transaction commits. Delivery is
    at-least-once: a refused message is retried with exponential backoff.
    """
    from apps.finances.models import Invoice

    try:
        invoice = Invoice.objects.select_related("booking", "booking__user").get(pk=invoice_id)
    except Invoice.DoesNotExist:
        logger.warning(f"Invoice {invoice_id} not found, confirmation email skipped")
        return False

    if invoice.status != Invoice.Status.PAID:
        logger.warning(f"Invoice {invoice.invoice_code} is {invoice.status}, confirmation email skipped")
        return False

    if not services.send_booking_confirmation_email(invoice):
        raise EmailDeliveryError(f"Confirmation email for invoice {invoice.invoice_code} was not sent")
    return True
