"""Serializers for the finance domain (invoices)."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import Invoice, PaymentTransaction


class PaymentTransactionSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentTransaction
        fields = ["id", "provider", "response_code", "transaction_no", "bank_code", "amount", "created_at"]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    """Invoice as shown to the booking owner."""

    transactions = PaymentTransactionSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_code",
            "total_amount",
            "payment_method",
            "status",
            "issued_date",
            "paid_date",
            "transactions",
        ]
        read_only_fields = fields
