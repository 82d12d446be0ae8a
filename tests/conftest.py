"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta
from typing import Optional

import pytest

from lesson_scheduler.date_utils import create_datetime_in_timezone
from lesson_scheduler.scheduling.validator import SchedulingValidator
from lesson_scheduler.schemas.booking_schema import BookingRequest, BookingStatus, ExistingBooking
from lesson_scheduler.schemas.constraints_schema import DEFAULT_CONSTRAINTS

TZ = "Australia/Brisbane"

# Monday 17 November 2025, 09:00 in Brisbane. The requests used across the
# suite sit later in that same week.
NOW = create_datetime_in_timezone("2025-11-17", "09:00", TZ)


def at(date: str, time: str, tz: str = TZ) -> datetime:
    """Instant for a civil date and time."""
    return create_datetime_in_timezone(date, time, tz)


def make_request(
    date: str = "2025-11-20",
    start: str = "10:00",
    duration: int = 60,
    user_id: str = "student-1",
    lesson_type: Optional[str] = None,
    instructor_id: Optional[str] = None,
) -> BookingRequest:
    """Helper to create a BookingRequest with sensible defaults."""
    start_time = at(date, start)
    return BookingRequest(
        user_id=user_id,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=duration),
        duration=duration,
        lesson_type=lesson_type,
        instructor_id=instructor_id,
    )


def make_booking(
    booking_id: str,
    date: str,
    start: str,
    duration: int = 60,
    user_id: str = "student-1",
    status: BookingStatus = BookingStatus.CONFIRMED,
    instructor_id: Optional[str] = None,
) -> ExistingBooking:
    """Helper to create an ExistingBooking."""
    start_time = at(date, start)
    return ExistingBooking(
        id=booking_id,
        user_id=user_id,
        start_time=start_time,
        end_time=start_time + timedelta(minutes=duration),
        status=status,
        instructor_id=instructor_id,
    )


@pytest.fixture
def constraints():
    return DEFAULT_CONSTRAINTS


@pytest.fixture
def validator():
    return SchedulingValidator(timezone=TZ)
