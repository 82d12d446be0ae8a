"""Lesson scheduling constraint engine: booking validation and slot generation."""

from lesson_scheduler.date_utils import (
    InputFormatError,
    InvalidDateFormatError,
    InvalidTimeFormatError,
    create_date_in_timezone,
    create_datetime_in_timezone,
    do_time_slots_overlap,
    format_date_in_timezone,
    format_time_in_timezone,
)
from lesson_scheduler.scheduling import SchedulingValidator, get_available_slots, validate_booking
from lesson_scheduler.schemas import (
    DEFAULT_CONSTRAINTS,
    BookingRequest,
    BookingStatus,
    ConfigurationError,
    ExistingBooking,
    SchedulingConstraints,
    TimeSlot,
    ValidationResult,
    WeeklySchedule,
)

__all__ = [
    "SchedulingValidator",
    "validate_booking",
    "get_available_slots",
    "BookingRequest",
    "BookingStatus",
    "ExistingBooking",
    "SchedulingConstraints",
    "DEFAULT_CONSTRAINTS",
    "TimeSlot",
    "ValidationResult",
    "WeeklySchedule",
    "ConfigurationError",
    "InputFormatError",
    "InvalidDateFormatError",
    "InvalidTimeFormatError",
    "create_date_in_timezone",
    "create_datetime_in_timezone",
    "format_date_in_timezone",
    "format_time_in_timezone",
    "do_time_slots_overlap",
]
