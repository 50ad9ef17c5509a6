"""Notification services for sending emails."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils import translation  # type: ignore
from django.utils.html import strip_tags  # type: ignore
from django.utils.translation import gettext as _  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.finances.models import Invoice

logger = logging.getLogger(__name__)


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(
    recipient_email: str,
    subject: str,
    html_message: str,
) -> bool:
    """
    Send one HTML e-mail with a plain-text alternative.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        html_message: HTML body; the text part is derived from it

    Returns:
        bool: True if the message was handed to the mail backend
    """
    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False

    logger.info(f"Email sent successfully to {recipient_email}: {subject}")
    return True


def render_booking_confirmation(invoice: "Invoice") -> tuple[str, str]:
    """Subject and HTML body of the confirmation, in the booking's language."""
    booking = invoice.booking
    user = booking.user
    guest_name = user.get_full_name() or user.get_username()
    rooms = booking.booking_rooms.select_related("room")

    with translation.override(booking.locale or settings.LANGUAGE_CODE):
        subject = _("Booking confirmation - invoice %(code)s") % {"code": invoice.invoice_code}
        room_items = "".join(
            f"<li>{line.room.name}: {line.price_at_booking} / {_('night')}</li>"
            for line in rooms
        )
        html_message = f"""
    <html>
    <body>
        <h2>{_('Hello')}, {guest_name}!</h2>
        <p>{_('Your payment was received and your booking is confirmed.')}</p>

        <h3>{_('Booking details')}:</h3>
        <ul>
            <li><strong>{_('Invoice code')}:</strong> {invoice.invoice_code}</li>
            <li><strong>{_('Check-in')}:</strong> {booking.start_time:%d/%m/%Y %H:%M}</li>
            <li><strong>{_('Check-out')}:</strong> {booking.end_time:%d/%m/%Y %H:%M}</li>
        </ul>

        <h3>{_('Booked rooms')}:</h3>
        <ul>{room_items}</ul>

        <p><strong>{_('Total paid')}:</strong> {invoice.total_amount} VND</p>
    </body>
    </html>
    """
    return subject, html_message


def send_booking_confirmation_email(invoice: "Invoice") -> bool:
    """Booking confirmation sent to the guest once the invoice is paid."""
    recipient = invoice.booking.user.email
    if not recipient:
        logger.warning(f"Invoice {invoice.invoice_code}: booking owner has no email, confirmation skipped")
        return True

    subject, html_message = render_booking_confirmation(invoice)
    return send_email_notification(recipient, subject, html_message)
