import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("catalog", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.DateTimeField()),
                ("end_time", models.DateTimeField()),
                ("num_adults", models.PositiveSmallIntegerField(default=1)),
                ("num_children", models.PositiveSmallIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[("booked", "Booked"), ("canceled", "Canceled"), ("completed", "Completed")],
                        default="booked",
                        max_length=20,
                    ),
                ),
                (
                    "locale",
                    models.CharField(
                        default="vi",
                        help_text="Language used for messages about this booking.",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="bookings",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["start_time", "end_time"], name="booking_interval_idx"),
                    models.Index(fields=["status"], name="booking_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_time__gt", models.F("start_time"))),
                        name="booking_valid_interval",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingRoom",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("price_at_booking", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booking_rooms",
                        to="bookings.booking",
                    ),
                ),
                (
                    "room",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="booking_rooms",
                        to="catalog.room",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booked room",
                "verbose_name_plural": "Booked rooms",
                "constraints": [
                    models.UniqueConstraint(fields=("booking", "room"), name="booking_room_unique"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BookingService",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField(default=1)),
                ("price_at_booking", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "booking",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="booking_services",
                        to="bookings.booking",
                    ),
                ),
                (
                    "service",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="booking_services",
                        to="catalog.service",
                    ),
                ),
            ],
            options={
                "verbose_name": "Booked service",
                "verbose_name_plural": "Booked services",
                "constraints": [
                    models.UniqueConstraint(fields=("booking", "service"), name="booking_service_unique"),
                ],
            },
        ),
    ]
