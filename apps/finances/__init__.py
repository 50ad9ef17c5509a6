"""Finances app package.

Invoices issued with each booking, the VNPay gateway adapter and the
reconciliation of gateway callbacks against pending invoices.
"""
