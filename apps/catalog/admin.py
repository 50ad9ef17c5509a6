"""Admin registration for the catalog."""

from __future__ import annotations

from django.contrib import admin

from .models import Room, Service


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ("name", "capacity", "price", "updated_at")
    search_fields = ("name",)


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "updated_at")
    search_fields = ("name",)
