"""
Free time-slot generation for a lesson day.

The core walk (``generate_free_slots``) moves a cursor through the working
window, skipping each existing booking plus its buffer, and offers one slot
per free gap. With ``pack_gaps`` it offers every back-to-back slot that fits
in each gap instead.

Usage:
    slots = get_available_slots("2025-11-20", bookings, duration=60)
    for slot in slots:
        print(format_time_in_timezone(slot.start))
"""

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

from lesson_scheduler.config import settings
from lesson_scheduler.date_utils import (
    add_civil_days,
    create_datetime_in_timezone,
    do_time_slots_overlap,
    minutes_to_time,
    parse_date,
    time_to_minutes,
    to_instant,
)
from lesson_scheduler.schemas.booking_schema import ExistingBooking, TimeSlot
from lesson_scheduler.schemas.calendar_schema import WeeklySchedule
from lesson_scheduler.schemas.constraints_schema import DEFAULT_CONSTRAINTS, SchedulingConstraints

logger = logging.getLogger(__name__)

DayLike = Union[date, str]


def _day_string(day: DayLike) -> str:
    if isinstance(day, str):
        return parse_date(day).isoformat()
    return day.isoformat()


def _fill_gap(
    start: datetime, end: datetime, length: timedelta, pack: bool
) -> list[TimeSlot]:
    slots = []
    cursor = start
    while cursor + length <= end:
        slots.append(TimeSlot(start=cursor, end=cursor + length))
        if not pack:
            break
        cursor += length
    return slots


def generate_free_slots(
    day: DayLike,
    start_time: str,
    end_time: str,
    duration: int,
    existing_bookings: Iterable[ExistingBooking],
    buffer_minutes: int,
    *,
    timezone: Optional[str] = None,
    pack_gaps: bool = False,
) -> list[TimeSlot]:
    """
    Compute bookable slots of ``duration`` minutes inside a working window.

    Args:
        day: Civil date of the window.
        start_time: Window start, HH:mm.
        end_time: Window end, HH:mm.
        duration: Lesson length in minutes.
        existing_bookings: Bookings on that day; only confirmed ones block time.
        buffer_minutes: Idle time kept before and after each booking.
        timezone: IANA zone for the window; defaults to config.
        pack_gaps: Offer every slot that fits in a gap, not just the first.

    Returns:
        Slots ordered by start time.
    """
    if duration <= 0:
        raise ValueError(f"Slot duration must be positive, got {duration}")

    day_string = _day_string(day)
    window_start = create_datetime_in_timezone(day_string, start_time, timezone)
    window_end = create_datetime_in_timezone(day_string, end_time, timezone)
    if window_end <= window_start:
        raise ValueError(f"Working window {start_time}-{end_time} is empty")

    length = timedelta(minutes=duration)
    buffer = timedelta(minutes=buffer_minutes)
    bookings = sorted(
        (b for b in existing_bookings if b.is_confirmed), key=lambda b: b.start_time
    )

    slots: list[TimeSlot] = []
    cursor = window_start
    for booking in bookings:
        gap_end = min(booking.start_time - buffer, window_end)
        slots.extend(_fill_gap(cursor, gap_end, length, pack_gaps))
        cursor = max(cursor, booking.end_time + buffer)
        if cursor >= window_end:
            break
    slots.extend(_fill_gap(cursor, window_end, length, pack_gaps))

    logger.debug(
        "%d free slots of %d minutes on %s between %s and %s",
        len(slots), duration, day_string, start_time, end_time,
    )
    return slots


def get_available_slots(
    date: DayLike,
    existing_bookings: Iterable[ExistingBooking],
    duration: int,
    constraints: Optional[SchedulingConstraints] = None,
    *,
    schedule: Optional[WeeklySchedule] = None,
    timezone: Optional[str] = None,
    pack_gaps: Optional[bool] = None,
) -> list[TimeSlot]:
    """
    Free slots for a civil date using the weekly working hours.

    Non-working days and vacation days have no slots. The working window is
    narrowed to the constraints' earliest start and latest end.
    """
    constraints = constraints or DEFAULT_CONSTRAINTS
    schedule = schedule or WeeklySchedule()
    day_string = _day_string(date)

    hours = schedule.hours_for(day_string)
    if hours is None:
        logger.debug("No working hours on %s", day_string)
        return []

    start = max(time_to_minutes(hours.start), constraints.start_minutes)
    end = min(time_to_minutes(hours.end), constraints.end_minutes)
    if start >= end:
        return []

    if pack_gaps is None:
        pack_gaps = settings.scheduling.pack_slots_per_gap
    return generate_free_slots(
        day_string,
        minutes_to_time(start),
        minutes_to_time(end),
        duration,
        existing_bookings,
        constraints.min_buffer_between_lessons,
        timezone=timezone,
        pack_gaps=pack_gaps,
    )


def generate_time_slots(
    date: DayLike,
    start_time: str,
    end_time: str,
    slot_duration: int,
    timezone: Optional[str] = None,
) -> list[TimeSlot]:
    """
    Fixed grid of slots from ``start_time``, each ``slot_duration`` long, that fit the window.

    The grid steps in wall-clock minutes, so starts stay on the civil grid on
    DST transition days. A slot that falls entirely inside a DST gap is dropped.
    """
    if slot_duration <= 0:
        raise ValueError(f"Slot duration must be positive, got {slot_duration}")
    day_string = _day_string(date)
    first = time_to_minutes(start_time)
    last = time_to_minutes(end_time)

    slots = []
    for minute in range(first, last - slot_duration + 1, slot_duration):
        start = create_datetime_in_timezone(day_string, minutes_to_time(minute), timezone)
        end = create_datetime_in_timezone(
            day_string, minutes_to_time(minute + slot_duration), timezone
        )
        if end > start:
            slots.append(TimeSlot(start=start, end=end))
    return slots


def filter_available_slots(
    slots: Iterable[TimeSlot],
    existing_bookings: Iterable[ExistingBooking],
    buffer_minutes: int,
) -> list[TimeSlot]:
    """Keep slots that stay clear of every confirmed booking and its buffer."""
    blocking = [b for b in existing_bookings if b.is_confirmed]
    available = []
    for slot in slots:
        conflict = next(
            (
                b for b in blocking
                if do_time_slots_overlap(slot.start, slot.end, b.start_time, b.end_time, buffer_minutes)
            ),
            None,
        )
        if conflict is None:
            available.append(slot)
        else:
            logger.debug("Slot at %s conflicts with booking %s", slot.start.isoformat(), conflict.id)
    return available


def find_next_available_slot(
    start_date: DayLike,
    duration: int,
    existing_bookings: Iterable[ExistingBooking],
    constraints: Optional[SchedulingConstraints] = None,
    *,
    schedule: Optional[WeeklySchedule] = None,
    timezone: Optional[str] = None,
    horizon_days: Optional[int] = None,
    not_before: Optional[datetime] = None,
) -> Optional[TimeSlot]:
    """
    First free slot on or after ``start_date``, scanning day by day.

    Slots starting before ``not_before`` are skipped, which lets callers
    respect the minimum advance-booking notice.
    """
    horizon = (
        horizon_days if horizon_days is not None else settings.scheduling.next_slot_horizon_days
    )
    earliest = to_instant(not_before) if not_before is not None else None
    bookings = list(existing_bookings)
    first_day = _day_string(start_date)

    for offset in range(horizon):
        day = add_civil_days(first_day, offset)
        for slot in get_available_slots(
            day, bookings, duration, constraints,
            schedule=schedule, timezone=timezone, pack_gaps=True,
        ):
            if earliest is None or slot.start >= earliest:
                return slot

    logger.info("No %d-minute slot within %d days of %s", duration, horizon, first_day)
    return None
