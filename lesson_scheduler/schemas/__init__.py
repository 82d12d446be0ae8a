from lesson_scheduler.schemas.booking_schema import (
    BookingRequest,
    BookingStatus,
    ExistingBooking,
    TimeSlot,
    ValidationResult,
)
from lesson_scheduler.schemas.calendar_schema import DayHours, DayOfWeek, WeeklySchedule
from lesson_scheduler.schemas.constraints_schema import (
    DEFAULT_CONSTRAINTS,
    ConfigurationError,
    SchedulingConstraints,
    build_constraints,
    check_admin_ranges,
)

__all__ = [
    "BookingRequest",
    "BookingStatus",
    "ExistingBooking",
    "TimeSlot",
    "ValidationResult",
    "DayHours",
    "DayOfWeek",
    "WeeklySchedule",
    "DEFAULT_CONSTRAINTS",
    "ConfigurationError",
    "SchedulingConstraints",
    "build_constraints",
    "check_admin_ranges",
]
