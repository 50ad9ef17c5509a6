"""Integration tests for booking API endpoints."""

from __future__ import annotations

from datetime import timedelta
from unittest import mock

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Booking, BookingService
from apps.bookings.tests.factories import make_booking, make_room, make_service, make_user, tomorrow_at
from apps.finances.gateway import PaymentGatewayError, VnpayGateway
from apps.finances.models import Invoice


class BookingAPITests(APITestCase):
    """Covers creation, conflicts and the response envelope."""

    def setUp(self) -> None:
        self.guest = make_user("guest")
        self.room = make_room(price="1000.00")
        self.breakfast = make_service(price="200.00")
        self.start = tomorrow_at(14)
        self.end = self.start + timedelta(days=1)
        self.client.force_authenticate(self.guest)
        self.create_url = reverse("booking-create")

    def _payload(self, **overrides) -> dict:
        payload = {
            "room_ids": [self.room.pk],
            "start_time": self.start.isoformat(),
            "end_time": self.end.isoformat(),
            "num_adults": 2,
            "num_children": 1,
            "services": [{"service_id": self.breakfast.pk, "quantity": 2}],
            "payment_method": "card",
        }
        payload.update(overrides)
        return payload

    def test_guest_can_create_booking(self) -> None:
        response = self.client.post(self.create_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "success")
        data = response.data["data"]
        booking = Booking.objects.get()
        self.assertEqual(data["booking_id"], booking.pk)
        self.assertEqual(data["invoice_code"], booking.invoice.invoice_code)
        self.assertEqual(data["total_amount"], "1400.00")
        self.assertTrue(data["payment_url"].startswith("https://sandbox.vnpayment.vn/"))
        self.assertEqual(booking.user, self.guest)
        self.assertEqual(booking.num_children, 1)

    def test_legacy_service_arrays_are_accepted(self) -> None:
        payload = self._payload()
        del payload["services"]
        payload["service_ids"] = [self.breakfast.pk]
        payload["quantities"] = [3]

        response = self.client.post(self.create_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(BookingService.objects.get().quantity, 3)
        self.assertEqual(response.data["data"]["total_amount"], "1600.00")

    def test_mismatched_legacy_arrays_rejected(self) -> None:
        payload = self._payload()
        del payload["services"]
        payload["service_ids"] = [self.breakfast.pk]
        payload["quantities"] = [1, 2]

        response = self.client.post(self.create_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "QUANTITY_MISMATCH")
        self.assertEqual(Booking.objects.count(), 0)

    def test_services_with_legacy_ids_rejected(self) -> None:
        payload = self._payload(service_ids=[self.breakfast.pk])

        response = self.client.post(self.create_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "AMBIGUOUS_SERVICES")
        self.assertEqual(Booking.objects.count(), 0)

    def test_services_with_stray_quantities_rejected(self) -> None:
        payload = self._payload(quantities=[5])

        response = self.client.post(self.create_url, payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, response.data)
        self.assertEqual(response.data["code"], "AMBIGUOUS_SERVICES")
        self.assertEqual(Booking.objects.count(), 0)

    def test_missing_fields_use_generic_validation_code(self) -> None:
        response = self.client.post(self.create_url, {"room_ids": [self.room.pk]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["status"], "error")
        self.assertEqual(response.data["code"], "VALIDATION_ERROR")

    def test_prevent_double_booking_on_overlap(self) -> None:
        first = self.client.post(self.create_url, self._payload(), format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED, first.data)

        overlapping = self._payload(
            start_time=(self.start + timedelta(hours=3)).isoformat(),
            end_time=(self.end + timedelta(hours=3)).isoformat(),
        )
        conflict = self.client.post(self.create_url, overlapping, format="json")

        self.assertEqual(conflict.status_code, status.HTTP_409_CONFLICT, conflict.data)
        self.assertEqual(conflict.data["code"], "ROOM_NOT_AVAILABLE")
        self.assertEqual(conflict.data["data"], {"room_id": self.room.pk})
        self.assertEqual(Booking.objects.count(), 1)

    def test_unknown_room_is_not_found(self) -> None:
        response = self.client.post(self.create_url, self._payload(room_ids=[987654]), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data["code"], "ROOM_NOT_FOUND")

    def test_past_start_time_rejected(self) -> None:
        past = self.start - timedelta(days=3)
        response = self.client.post(
            self.create_url,
            self._payload(start_time=past.isoformat(), end_time=(past + timedelta(days=1)).isoformat()),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "START_TIME_PAST")

    def test_payment_link_failure_still_returns_created(self) -> None:
        with mock.patch.object(
            VnpayGateway,
            "build_redirect_url",
            side_effect=PaymentGatewayError("gateway unavailable"),
        ):
            response = self.client.post(self.create_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["code"], "PAYMENT_LINK_FAILED")
        self.assertIsNone(response.data["data"]["payment_url"])
        self.assertEqual(Invoice.objects.get().status, Invoice.Status.PENDING)

    def test_authentication_required(self) -> None:
        self.client.force_authenticate(None)

        response = self.client.post(self.create_url, self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_owner_can_read_booking(self) -> None:
        booking = make_booking(self.guest, [self.room], self.start, self.end)

        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["rooms"][0]["room"], self.room.pk)
        self.assertEqual(response.data["invoice"]["invoice_code"], booking.invoice.invoice_code)
        self.assertEqual(response.data["invoice"]["status"], Invoice.Status.PENDING)

    def test_other_users_booking_is_hidden(self) -> None:
        booking = make_booking(make_user("stranger"), [self.room], self.start, self.end)

        response = self.client.get(reverse("booking-detail", kwargs={"pk": booking.pk}))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
