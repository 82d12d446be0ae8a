"""
Scheduling constraint record and its validation rules.

A SchedulingConstraints instance is immutable. Admin edits go through
``with_updates`` which returns a new, revalidated record, so a validation
run always sees one consistent set of limits.
"""

import logging
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from lesson_scheduler.date_utils import is_valid_time_string, time_to_minutes

logger = logging.getLogger(__name__)


class ConfigurationError(ValueError):
    """Raised when a constraints record is malformed or internally inconsistent."""


class SchedulingConstraints(BaseModel):
    """All tunable scheduling limits. Durations and buffers are in minutes."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Weekly limits
    max_hours_per_week: float = Field(default=20, ge=0)
    max_lessons_per_week: int = Field(default=15, ge=0)
    max_consecutive_lessons: int = Field(default=3, ge=0)

    # Daily limits
    max_hours_per_day: float = Field(default=6, ge=0)
    max_lessons_per_day: int = Field(default=8, ge=0)

    # Time-of-day window
    earliest_start_time: str = "07:00"
    latest_end_time: str = "19:00"

    # Buffers
    min_buffer_between_lessons: int = Field(default=15, ge=0)
    max_buffer_between_lessons: int = Field(default=60, ge=0)

    # Lesson durations
    min_lesson_duration: int = Field(default=60, ge=0)
    max_lesson_duration: int = Field(default=180, ge=0)
    allowed_durations: tuple[int, ...] = (60, 90, 120, 180)

    # Advance booking
    max_advance_booking_days: int = Field(default=30, ge=0)
    min_advance_booking_hours: float = Field(default=24, ge=0)

    # Instructor and breaks
    max_instructor_hours_per_day: float = Field(default=8, ge=0)
    required_break_after_hours: float = Field(default=4, ge=0)
    min_break_duration: int = Field(default=30, ge=0)

    def __init__(self, **values: Any) -> None:
        """
        Raises:
            ConfigurationError: If any value is malformed or the bounds are inverted.
        """
        try:
            super().__init__(**values)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'constraints'}: {err['msg']}"
                for err in exc.errors()
            )
            logger.warning("Rejected scheduling constraints: %s", problems)
            raise ConfigurationError(f"Invalid scheduling constraints: {problems}") from exc

    @field_validator("earliest_start_time", "latest_end_time")
    @classmethod
    def _check_time_format(cls, value: str) -> str:
        if not is_valid_time_string(value):
            raise ValueError(f"must be HH:mm, got {value!r}")
        return value

    @field_validator("allowed_durations")
    @classmethod
    def _check_allowed_durations(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("at least one allowed duration must be specified")
        if any(d <= 0 for d in value):
            raise ValueError(f"allowed durations must be positive, got {list(value)}")
        return tuple(sorted(set(value)))

    @model_validator(mode="after")
    def _check_bounds(self) -> "SchedulingConstraints":
        if self.start_minutes >= self.end_minutes:
            raise ValueError(
                f"earliest_start_time {self.earliest_start_time} must be before "
                f"latest_end_time {self.latest_end_time}"
            )
        if self.min_lesson_duration > self.max_lesson_duration:
            raise ValueError(
                f"min_lesson_duration {self.min_lesson_duration} exceeds "
                f"max_lesson_duration {self.max_lesson_duration}"
            )
        if self.min_buffer_between_lessons > self.max_buffer_between_lessons:
            raise ValueError(
                f"min_buffer_between_lessons {self.min_buffer_between_lessons} exceeds "
                f"max_buffer_between_lessons {self.max_buffer_between_lessons}"
            )
        return self

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.earliest_start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.latest_end_time)

    def with_updates(self, partial: Mapping[str, Any]) -> "SchedulingConstraints":
        """Return a new record with ``partial`` applied on top of this one."""
        unknown = sorted(set(partial) - set(type(self).model_fields))
        if unknown:
            raise ConfigurationError(f"Unknown constraint fields: {', '.join(unknown)}")
        return build_constraints(**{**self.model_dump(), **partial})


def build_constraints(**values: Any) -> SchedulingConstraints:
    """Build a constraints record from keyword values over the defaults."""
    return SchedulingConstraints(**values)


DEFAULT_CONSTRAINTS = SchedulingConstraints()


# Policy ranges enforced by the admin settings form. These are tighter than
# the structural checks above and are reported, not raised.
_ADMIN_RANGES: list[tuple[str, str, float, float]] = [
    ("max_hours_per_week", "Max hours per week", 1, 40),
    ("max_lessons_per_week", "Max lessons per week", 1, 20),
    ("max_consecutive_lessons", "Max consecutive lessons", 1, 5),
    ("max_hours_per_day", "Max hours per day", 1, 12),
    ("max_lessons_per_day", "Max lessons per day", 1, 10),
    ("min_buffer_between_lessons", "Min buffer time", 0, 120),
    ("min_lesson_duration", "Min lesson duration", 30, 240),
    ("max_advance_booking_days", "Max advance booking days", 1, 90),
    ("min_advance_booking_hours", "Min advance booking hours", 1, 168),
    ("max_instructor_hours_per_day", "Max instructor hours per day", 4, 12),
    ("required_break_after_hours", "Required break after hours", 1, 12),
    ("min_break_duration", "Min break duration", 15, 120),
]


def check_admin_ranges(constraints: SchedulingConstraints) -> list[str]:
    """List every admin policy range the record falls outside of."""
    problems = []
    for field_name, label, low, high in _ADMIN_RANGES:
        value = getattr(constraints, field_name)
        if not low <= value <= high:
            problems.append(f"{label} must be between {low:g} and {high:g}")

    if constraints.max_buffer_between_lessons > 240:
        problems.append("Max buffer time must be at most 240 minutes")
    if constraints.max_lesson_duration > 480:
        problems.append("Max lesson duration must be at most 480 minutes")

    for duration in constraints.allowed_durations:
        if not constraints.min_lesson_duration <= duration <= constraints.max_lesson_duration:
            problems.append(f"Allowed duration {duration} is outside the min/max range")

    return problems
