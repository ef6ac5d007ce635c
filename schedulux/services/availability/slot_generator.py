# schedulux/services/availability/slot_generator.py
"""Lazy slot generation over resolved time blocks"""
from datetime import datetime, timedelta
from typing import Iterator, Sequence
from zoneinfo import ZoneInfo

from schedulux.models.appointment import Appointment
from schedulux.schemas.availability import AvailableSlot, TimeBlock
from schedulux.utils.datetime_utils import ensure_utc, to_iso_string


def count_overlapping(appointments: Sequence[Appointment], start: datetime, end: datetime) -> int:
    """Appointments whose requested interval intersects [start, end)"""
    return sum(
        1 for appointment in appointments
        if ensure_utc(appointment.requested_start_datetime) < end
        and ensure_utc(appointment.requested_end_datetime) > start
    )


def generate_slots(
        blocks: Sequence[TimeBlock],
        duration_minutes: int,
        buffer_minutes: int,
        appointments: Sequence[Appointment],
        now: datetime,
        zone: ZoneInfo
) -> Iterator[AvailableSlot]:
    """
    Walk every open block in steps of duration + buffer and yield the slots
    that are in the future, fit inside the block and still have capacity.

    Capacity is checked against the full occupied interval (buffer included);
    end_datetime is that full interval end, local_end_time shows start + duration.
    Calling again restarts the walk.
    """
    step = timedelta(minutes=duration_minutes + buffer_minutes)
    display = timedelta(minutes=duration_minutes)
    if step <= timedelta(0):
        raise ValueError("Slot length must be positive")

    for block in blocks:
        if not block.is_available:
            continue

        slot_start = block.start
        while slot_start + step <= block.end:
            slot_end = slot_start + step

            if slot_start > now:
                remaining = block.max_concurrent - count_overlapping(appointments, slot_start, slot_end)
                if remaining > 0:
                    local_start = slot_start.astimezone(zone)
                    local_end = (slot_start + display).astimezone(zone)
                    yield AvailableSlot(
                        start_datetime=to_iso_string(slot_start),
                        end_datetime=to_iso_string(slot_end),
                        local_date=local_start.strftime("%Y-%m-%d"),
                        local_start_time=local_start.strftime("%H:%M"),
                        local_end_time=local_end.strftime("%H:%M"),
                        available_capacity=remaining,
                    )

            slot_start = slot_end
