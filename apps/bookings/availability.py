"""Room availability checks.

A room is available for an interval when no non-canceled booking holds
it for an overlapping interval. Intervals are half-open, so a booking
ending at 11:00 does not block one starting at 11:00.

These checks only prevent double booking when they run inside the
same ``transaction.atomic()`` block as the insert, after the room rows
have been locked with ``lock_rooms``.
"""

from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from shared.domain.exceptions import ConflictError
from shared.domain.value_objects import TimeInterval

from .models import Booking, BookingRoom

logger = logging.getLogger(__name__)


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def lock_rooms(room_ids: Iterable[int]) -> dict:
    """
    Load and lock the requested rooms, keyed by id

    Rows are locked in primary-key order so two requests for
    overlapping room sets cannot deadlock each other.
    """
    from apps.catalog.models import Room

    queryset = Room.objects.filter(pk__in=list(room_ids)).order_by("pk")
    return {room.pk: room for room in _lock_queryset_if_possible(queryset)}


def overlapping_booking_rooms(room_id: int, interval: TimeInterval):
    """BookingRoom rows of active bookings that overlap ``interval`` for one room."""

    overlapping_filter = Q(booking__start_time__lt=interval.end) & Q(booking__end_time__gt=interval.start)

    return (
        BookingRoom.objects.filter(room_id=room_id)
        .exclude(booking__status=Booking.Status.CANCELED)
        .filter(overlapping_filter)
    )


def is_available(room_id: int, interval: TimeInterval) -> bool:
    """True when no active booking holds ``room_id`` during ``interval``."""

    queryset = _lock_queryset_if_possible(overlapping_booking_rooms(room_id, interval))
    return not queryset.exists()


def ensure_rooms_available(room_ids: Iterable[int], interval: TimeInterval) -> None:
    """
    Check every room, failing on the first conflict

    Raises:
        ConflictError: carrying the id of the first unavailable room
    """
    for room_id in room_ids:
        if not is_available(room_id, interval):
            logger.info(f"Room {room_id} is not available for {interval}")
            raise ConflictError(
                "ROOM_NOT_AVAILABLE",
                f"Room {room_id} is not available for the selected time.",
                room_id=room_id,
            )
