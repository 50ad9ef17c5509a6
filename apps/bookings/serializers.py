"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from apps.finances.models import Invoice
from apps.finances.serializers import InvoiceSerializer

from .application.command_handlers import CreateBookingCommand, ServiceRequest
from .models import Booking, BookingRoom, BookingService


class ServiceRequestSerializer(serializers.Serializer):
    service_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, default=1)


class BookingCreateSerializer(serializers.Serializer):
    """
    Booking request

    Services are given either as ``services: [{service_id, quantity}]`` or
    as the older parallel ``service_ids`` / ``quantities`` arrays.
    """

    room_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=True)
    start_time = serializers.DateTimeField()
    end_time = serializers.DateTimeField()
    num_adults = serializers.IntegerField(min_value=1, default=1)
    num_children = serializers.IntegerField(min_value=0, default=0)
    services = ServiceRequestSerializer(many=True, required=False)
    service_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    quantities = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    payment_method = serializers.ChoiceField(
        choices=Invoice.PaymentMethod.choices,
        default=Invoice.PaymentMethod.CARD,
    )

    def validate(self, attrs):  # type: ignore
        service_ids = attrs.pop("service_ids", None)
        quantities = attrs.pop("quantities", None)

        if "services" in attrs:
            if service_ids or quantities:
                raise serializers.ValidationError(
                    "Use either services or service_ids with quantities, not both.",
                    code="AMBIGUOUS_SERVICES",
                )
            return attrs

        service_ids = service_ids or []
        if quantities is None:
            quantities = [1] * len(service_ids)
        if len(quantities) != len(service_ids):
            raise serializers.ValidationError(
                "service_ids and quantities must have the same length.",
                code="QUANTITY_MISMATCH",
            )
        attrs["services"] = [
            {"service_id": service_id, "quantity": quantity}
            for service_id, quantity in zip(service_ids, quantities)
        ]
        return attrs

    def to_command(self, user, client_ip: str, locale: str) -> CreateBookingCommand:
        data = self.validated_data
        return CreateBookingCommand(
            user_id=user.pk,
            room_ids=list(data["room_ids"]),
            start_time=data["start_time"],
            end_time=data["end_time"],
            num_adults=data["num_adults"],
            num_children=data["num_children"],
            services=[
                ServiceRequest(service_id=item["service_id"], quantity=item["quantity"])
                for item in data.get("services", [])
            ],
            payment_method=data["payment_method"],
            client_ip=client_ip,
            locale=locale,
        )


class BookingRoomSerializer(serializers.ModelSerializer):
    room_name = serializers.CharField(source="room.name", read_only=True)

    class Meta:
        model = BookingRoom
        fields = ["room", "room_name", "price_at_booking"]


class BookingServiceSerializer(serializers.ModelSerializer):
    service_name = serializers.CharField(source="service.name", read_only=True)

    class Meta:
        model = BookingService
        fields = ["service", "service_name", "quantity", "price_at_booking"]


class BookingSerializer(serializers.ModelSerializer):
    """Read-only booking with its rooms, services and invoice."""

    rooms = BookingRoomSerializer(source="booking_rooms", many=True, read_only=True)
    services = BookingServiceSerializer(source="booking_services", many=True, read_only=True)
    invoice = InvoiceSerializer(read_only=True)

    class Meta:
        model = Booking
        fields = [
            "id",
            "status",
            "start_time",
            "end_time",
            "num_adults",
            "num_children",
            "rooms",
            "services",
            "invoice",
            "created_at",
        ]
        read_only_fields = fields
