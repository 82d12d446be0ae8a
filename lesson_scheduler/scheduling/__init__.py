from lesson_scheduler.scheduling.slots import (
    filter_available_slots,
    find_next_available_slot,
    generate_free_slots,
    generate_time_slots,
    get_available_slots,
)
from lesson_scheduler.scheduling.validator import SchedulingValidator, validate_booking

__all__ = [
    "SchedulingValidator",
    "validate_booking",
    "get_available_slots",
    "generate_free_slots",
    "generate_time_slots",
    "filter_available_slots",
    "find_next_available_slot",
]
