"""Admin registration for invoices."""

from __future__ import annotations

from django.contrib import admin

from .models import Invoice, PaymentTransaction


class PaymentTransactionInline(admin.TabularInline):
    model = PaymentTransaction
    extra = 0
    readonly_fields = ("provider", "response_code", "transaction_no", "bank_code", "amount", "payload", "created_at")


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ("invoice_code", "booking", "status", "payment_method", "total_amount", "issued_date", "paid_date")
    list_filter = ("status", "payment_method")
    search_fields = ("invoice_code",)
    readonly_fields = ("invoice_code", "total_amount", "issued_date", "paid_date", "created_at", "updated_at")
    inlines = [PaymentTransactionInline]
