"""Tests for applying gateway callbacks to invoices and bookings."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.core import mail
from django.test import TestCase

from apps.bookings.models import Booking
from apps.bookings.tests.factories import make_booking, make_room, make_user, tomorrow_at
from apps.finances.gateway import VnpayGateway
from apps.finances.models import Invoice, PaymentTransaction
from apps.finances.reconciliation import PaymentReconciler
from apps.finances.tests.helpers import signed_callback


class PaymentReconcilerTests(TestCase):
    def setUp(self) -> None:
        self.user = make_user()
        start = tomorrow_at(14)
        self.booking = make_booking(self.user, [make_room()], start, start + timedelta(days=1), total="1400.00")
        self.invoice = self.booking.invoice
        self.reconciler = PaymentReconciler(VnpayGateway.from_settings())

    def _reload(self) -> None:
        self.invoice.refresh_from_db()
        self.booking.refresh_from_db()

    def test_successful_payment_marks_invoice_paid(self) -> None:
        result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000))

        self._reload()
        self.assertEqual(result.status, "success")
        self.assertFalse(result.replayed)
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.assertIsNotNone(self.invoice.paid_date)
        self.assertEqual(self.booking.status, Booking.Status.BOOKED)

        transaction_row = PaymentTransaction.objects.get()
        self.assertEqual(transaction_row.invoice, self.invoice)
        self.assertEqual(transaction_row.response_code, "00")
        self.assertEqual(transaction_row.transaction_no, "14000001")
        self.assertEqual(transaction_row.payload["vnp_TxnRef"], self.invoice.invoice_code)

    def test_declined_payment_cancels_invoice_and_booking(self) -> None:
        result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000, "24"))

        self._reload()
        self.assertEqual(result.status, "failed")
        self.assertEqual(result.response_code, "24")
        self.assertEqual(self.invoice.status, Invoice.Status.CANCELED)
        self.assertIsNone(self.invoice.paid_date)
        self.assertEqual(self.booking.status, Booking.Status.CANCELED)
        self.assertEqual(PaymentTransaction.objects.count(), 1)

    def test_forged_signature_changes_nothing(self) -> None:
        params = signed_callback(self.invoice.invoice_code, 140000)
        params["vnp_ResponseCode"] = "24"

        result = self.reconciler.reconcile(params)

        self._reload()
        self.assertEqual(result.status, "error")
        self.assertEqual(result.code, "INVALID_SIGNATURE")
        self.assertEqual(self.invoice.status, Invoice.Status.PENDING)
        self.assertEqual(self.booking.status, Booking.Status.BOOKED)
        self.assertFalse(PaymentTransaction.objects.exists())

    def test_unknown_invoice_looks_like_bad_signature(self) -> None:
        result = self.reconciler.reconcile(signed_callback("INV-0-0", 140000))

        self.assertEqual(result.status, "error")
        self.assertEqual(result.code, "INVALID_SIGNATURE")
        self.assertEqual(result.invoice_code, "INV-0-0")

    def test_amount_mismatch_changes_nothing(self) -> None:
        result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 100))

        self._reload()
        self.assertEqual(result.status, "error")
        self.assertEqual(result.code, "AMOUNT_MISMATCH")
        self.assertEqual(self.invoice.status, Invoice.Status.PENDING)
        self.assertFalse(PaymentTransaction.objects.exists())

    def test_replayed_success_is_idempotent(self) -> None:
        params = signed_callback(self.invoice.invoice_code, 140000)
        self.reconciler.reconcile(params)
        self._reload()
        paid_date = self.invoice.paid_date

        result = self.reconciler.reconcile(params)

        self._reload()
        self.assertEqual(result.status, "success")
        self.assertTrue(result.replayed)
        self.assertEqual(self.invoice.paid_date, paid_date)
        self.assertEqual(PaymentTransaction.objects.count(), 1)

    def test_late_failure_does_not_undo_payment(self) -> None:
        self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000))

        result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000, "24"))

        self._reload()
        self.assertEqual(result.status, "success")
        self.assertTrue(result.replayed)
        self.assertEqual(self.invoice.status, Invoice.Status.PAID)
        self.assertEqual(self.booking.status, Booking.Status.BOOKED)

    def test_success_after_cancellation_is_reported_as_failed(self) -> None:
        self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000, "24"))

        result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000))

        self._reload()
        self.assertEqual(result.status, "failed")
        self.assertTrue(result.replayed)
        self.assertEqual(self.invoice.status, Invoice.Status.CANCELED)

    def test_payment_for_canceled_booking_is_not_accepted(self) -> None:
        Booking.objects.filter(pk=self.booking.pk).update(status=Booking.Status.CANCELED)

        with mock.patch(
            "apps.notifications.handlers.send_booking_confirmation_email.delay"
        ) as delay:
            with self.captureOnCommitCallbacks(execute=True):
                result = self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000))

        self._reload()
        self.assertEqual(result.status, "failed")
        self.assertEqual(result.code, "BOOKING_NOT_ACTIVE")
        self.assertEqual(self.invoice.status, Invoice.Status.CANCELED)
        self.assertIsNone(self.invoice.paid_date)
        self.assertEqual(self.booking.status, Booking.Status.CANCELED)
        self.assertEqual(PaymentTransaction.objects.count(), 1)
        delay.assert_not_called()

    def test_confirmation_email_is_queued_once_after_commit(self) -> None:
        params = signed_callback(self.invoice.invoice_code, 140000)

        with mock.patch(
            "apps.notifications.handlers.send_booking_confirmation_email.delay"
        ) as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self.reconciler.reconcile(params)
            with self.captureOnCommitCallbacks(execute=True):
                self.reconciler.reconcile(params)

        delay.assert_called_once_with(self.invoice.pk)

    def test_declined_payment_sends_no_confirmation(self) -> None:
        with mock.patch(
            "apps.notifications.handlers.send_booking_confirmation_email.delay"
        ) as delay:
            with self.captureOnCommitCallbacks(execute=True):
                self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000, "24"))

        delay.assert_not_called()

    def test_paid_invoice_confirmation_reaches_outbox(self) -> None:
        with self.captureOnCommitCallbacks(execute=True):
            self.reconciler.reconcile(signed_callback(self.invoice.invoice_code, 140000))

        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, [self.user.email])
        self.assertIn(self.invoice.invoice_code, mail.outbox[0].subject)
