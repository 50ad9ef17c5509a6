"""Payment link services."""

from __future__ import annotations

import structlog

from .gateway import PaymentGatewayError, VnpayGateway
from .models import Invoice

logger = structlog.get_logger(__name__)


class InvoiceNotPayableError(Exception):
    """A payment link was requested for an invoice that is no longer pending."""

    code = "INVOICE_NOT_PENDING"

    def __init__(self, invoice: Invoice):
        self.invoice = invoice
        super().__init__(f"Invoice {invoice.invoice_code} is {invoice.status}, not pending")


def payment_description(invoice: Invoice) -> str:
    return f"Payment-for-invoice-{invoice.invoice_code}"


def request_payment_url(
    invoice: Invoice,
    client_ip: str,
    locale: str = "vi",
    gateway: VnpayGateway | None = None,
) -> str:
    """
    Build a fresh VNPay payment URL for a pending invoice

    Runs outside any database transaction: nothing is written.

    Raises:
        InvoiceNotPayableError: The invoice is already paid or canceled
        PaymentGatewayError: The gateway is misconfigured or rejected the input
    """
    if not invoice.is_pending:
        raise InvoiceNotPayableError(invoice)

    gateway = gateway or VnpayGateway.from_settings()
    try:
        url = gateway.build_redirect_url(
            client_ip,
            invoice.total,
            payment_description(invoice),
            invoice.invoice_code,
            locale=locale,
        )
    except PaymentGatewayError:
        logger.exception("payment_url_failed", invoice_code=invoice.invoice_code)
        raise

    logger.info("payment_url_issued", invoice_code=invoice.invoice_code)
    return url
