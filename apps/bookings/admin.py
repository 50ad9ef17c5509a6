"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking, BookingRoom, BookingService


class BookingRoomInline(admin.TabularInline):
    model = BookingRoom
    extra = 0
    readonly_fields = ("room", "price_at_booking")


class BookingServiceInline(admin.TabularInline):
    model = BookingService
    extra = 0
    readonly_fields = ("service", "quantity", "price_at_booking")


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "status",
        "start_time",
        "end_time",
        "num_adults",
        "num_children",
        "created_at",
    )
    list_filter = ("status", "start_time", "end_time")
    search_fields = ("user__username", "user__email", "invoice__invoice_code")
    readonly_fields = ("created_at", "updated_at")
    inlines = [BookingRoomInline, BookingServiceInline]
