"""
Finance Domain Events

Published after the reconciliation transaction commits.
"""

from dataclasses import dataclass

from shared.domain.base import DomainEvent


@dataclass
class InvoicePaid(DomainEvent):
    """
    Event: Gateway confirmed payment (PENDING -> PAID)

    Triggers:
    - Send booking confirmation e-mail to the guest
    """
    invoice_id: int
    booking_id: int
    invoice_code: str


@dataclass
class InvoiceCanceled(DomainEvent):
    """Event: Gateway reported a failed payment; invoice and booking canceled"""
    invoice_id: int
    booking_id: int
    invoice_code: str
    response_code: str
