"""URL routing for the booking domain."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import BookingCreateView, BookingDetailView

urlpatterns = [
    path("", BookingCreateView.as_view(), name="booking-create"),
    path("<int:pk>/", BookingDetailView.as_view(), name="booking-detail"),
]
