"""
Payment Reconciliation

Applies the outcome reported by the payment gateway to the invoice it
names and to that invoice's booking.

Steps:
1. Verify the callback signature (no database access on failure)
2. Lock the invoice row for the rest of the transaction
3. Reject amount mismatches
4. Short-circuit replays of an already settled invoice
5. Transition PENDING -> PAID while the booking stays BOOKED, or
   PENDING -> CANCELED together with the booking, and record the callback.
   A success for a booking that is already closed cancels the invoice.
6. Publish InvoicePaid / InvoiceCanceled after commit

Concurrent callbacks for one invoice serialize on the row lock: the
second one sees a settled invoice and takes the replay branch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

import structlog

from shared.application.uow import DjangoUnitOfWork

from .events import InvoiceCanceled, InvoicePaid
from .gateway import SUCCESS_RESPONSE_CODE, CallbackVerification, VnpayGateway
from .models import Invoice, PaymentTransaction

logger = structlog.get_logger(__name__)

SUCCESS = "success"
FAILED = "failed"
ERROR = "error"


@dataclass(frozen=True)
class ReconciliationResult:
    status: str
    message: str
    code: str = ""
    invoice_code: str = ""
    response_code: str = ""
    replayed: bool = False

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS


def _rejected(code: str, message: str, params: Mapping[str, str]) -> ReconciliationResult:
    return ReconciliationResult(
        status=ERROR,
        message=message,
        code=code,
        invoice_code=str(params.get("vnp_TxnRef", "")),
        response_code=str(params.get("vnp_ResponseCode", "")),
    )


class PaymentReconciler:
    """Reconciles VNPay return/IPN callbacks against pending invoices."""

    def __init__(self, gateway: VnpayGateway | None = None):
        self.gateway = gateway or VnpayGateway.from_settings()

    def reconcile(self, params: Mapping[str, str]) -> ReconciliationResult:
        verification = self.gateway.verify_callback(params)
        if not verification.valid:
            logger.warning("callback_rejected", reason="signature", reference=params.get("vnp_TxnRef"))
            return _rejected("INVALID_SIGNATURE", "Invalid signature", params)

        with DjangoUnitOfWork() as uow:
            # Joined booking row is locked together with the invoice
            invoice = (
                Invoice.objects.select_for_update()
                .select_related("booking")
                .filter(invoice_code=verification.reference)
                .first()
            )
            # Unknown references are reported exactly like forged ones
            if invoice is None:
                logger.warning("callback_rejected", reason="unknown_invoice", reference=verification.reference)
                return _rejected("INVALID_SIGNATURE", "Invalid signature", params)

            if verification.amount.minor_units != invoice.total.minor_units:
                logger.warning(
                    "callback_rejected",
                    reason="amount_mismatch",
                    reference=verification.reference,
                    expected=invoice.total.minor_units,
                    received=verification.amount.minor_units,
                )
                return _rejected("AMOUNT_MISMATCH", "Amount does not match the invoice", params)

            if not invoice.is_pending:
                return self._replay(invoice, verification)

            booking = invoice.booking
            if verification.response_code == SUCCESS_RESPONSE_CODE and not booking.is_terminal:
                result = self._mark_paid(invoice, verification)
                uow.add_event(InvoicePaid(
                    aggregate_id=invoice.pk,
                    invoice_id=invoice.pk,
                    booking_id=invoice.booking_id,
                    invoice_code=invoice.invoice_code,
                ))
            else:
                if verification.response_code == SUCCESS_RESPONSE_CODE:
                    result = self._reject_closed_booking(invoice, verification)
                else:
                    result = self._mark_canceled(invoice, verification)
                uow.add_event(InvoiceCanceled(
                    aggregate_id=invoice.pk,
                    invoice_id=invoice.pk,
                    booking_id=invoice.booking_id,
                    invoice_code=invoice.invoice_code,
                    response_code=verification.response_code,
                ))

            self._record_transaction(invoice, verification, params)

        logger.info(
            "callback_reconciled",
            invoice_code=invoice.invoice_code,
            status=result.status,
            response_code=verification.response_code,
        )
        return result

    def _replay(self, invoice: Invoice, verification: CallbackVerification) -> ReconciliationResult:
        logger.info("callback_replayed", invoice_code=invoice.invoice_code, invoice_status=invoice.status)
        if invoice.status == Invoice.Status.PAID:
            return ReconciliationResult(
                status=SUCCESS,
                message="Payment already confirmed",
                invoice_code=invoice.invoice_code,
                response_code=verification.response_code,
                replayed=True,
            )
        return ReconciliationResult(
            status=FAILED,
            message="Payment already canceled",
            code="PAYMENT_FAILED",
            invoice_code=invoice.invoice_code,
            response_code=verification.response_code,
            replayed=True,
        )

    def _mark_paid(self, invoice: Invoice, verification: CallbackVerification) -> ReconciliationResult:
        invoice.mark_paid()
        invoice.save(update_fields=["status", "paid_date", "updated_at"])

        booking = invoice.booking
        booking.status = booking.Status.BOOKED
        booking.save(update_fields=["status", "updated_at"])
        return ReconciliationResult(
            status=SUCCESS,
            message="Payment successful",
            invoice_code=invoice.invoice_code,
            response_code=verification.response_code,
        )

    def _reject_closed_booking(
        self,
        invoice: Invoice,
        verification: CallbackVerification,
    ) -> ReconciliationResult:
        # A paid invoice must never sit on a canceled or completed booking
        invoice.mark_canceled()
        invoice.save(update_fields=["status", "updated_at"])
        logger.warning(
            "payment_for_closed_booking",
            invoice_code=invoice.invoice_code,
            booking_status=invoice.booking.status,
        )
        return ReconciliationResult(
            status=FAILED,
            message="Booking is no longer active",
            code="BOOKING_NOT_ACTIVE",
            invoice_code=invoice.invoice_code,
            response_code=verification.response_code,
        )

    def _mark_canceled(self, invoice: Invoice, verification: CallbackVerification) -> ReconciliationResult:
        invoice.mark_canceled()
        invoice.save(update_fields=["status", "updated_at"])

        booking = invoice.booking
        if not booking.is_terminal:
            booking.mark_canceled()
            booking.save(update_fields=["status", "updated_at"])

        return ReconciliationResult(
            status=FAILED,
            message="Payment failed",
            code="PAYMENT_FAILED",
            invoice_code=invoice.invoice_code,
            response_code=verification.response_code,
        )

    def _record_transaction(
        self,
        invoice: Invoice,
        verification: CallbackVerification,
        params: Mapping[str, str],
    ) -> PaymentTransaction:
        return PaymentTransaction.objects.create(
            invoice=invoice,
            provider="vnpay",
            response_code=verification.response_code,
            transaction_no=verification.transaction_no,
            bank_code=verification.bank_code,
            amount=verification.amount.amount,
            payload={key: str(value) for key, value in params.items()},
        )
