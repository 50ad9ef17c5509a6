"""Bookings app package.

This app owns the reservation itself: the booking, the rooms it holds
and the ancillary services it includes. Creation is a single atomic
unit of work that locks the requested rooms, checks them for
overlapping reservations, prices the stay and issues the invoice.
"""
