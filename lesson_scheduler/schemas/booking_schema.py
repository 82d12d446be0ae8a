"""Booking, slot and validation-result data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, computed_field, model_validator


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    CANCELLED = "cancelled"


def _minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


class BookingRequest(BaseModel):
    """A proposed lesson, built per validation call."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    start_time: AwareDatetime
    end_time: AwareDatetime
    duration: int = Field(gt=0, description="Lesson length in minutes")
    lesson_type: Optional[str] = None
    instructor_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_duration(self) -> "BookingRequest":
        actual = _minutes_between(self.start_time, self.end_time)
        if actual != self.duration:
            raise ValueError(
                f"duration {self.duration} does not match end_time - start_time ({actual:g} minutes)"
            )
        return self

    @property
    def duration_hours(self) -> float:
        return self.duration / 60


class ExistingBooking(BaseModel):
    """Snapshot of a stored booking supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    start_time: AwareDatetime
    end_time: AwareDatetime
    status: BookingStatus = BookingStatus.CONFIRMED
    lesson_type: Optional[str] = None
    instructor_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_order(self) -> "ExistingBooking":
        if self.end_time <= self.start_time:
            raise ValueError(f"booking {self.id} ends before it starts")
        return self

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED

    @property
    def duration_minutes(self) -> float:
        return _minutes_between(self.start_time, self.end_time)

    @property
    def duration_hours(self) -> float:
        return self.duration_minutes / 60


class TimeSlot(BaseModel):
    """One offerable booking window."""

    model_config = ConfigDict(frozen=True)

    start: AwareDatetime
    end: AwareDatetime

    @property
    def duration_minutes(self) -> float:
        return _minutes_between(self.start, self.end)


class ValidationResult(BaseModel):
    """Outcome of validating one booking request."""

    model_config = ConfigDict(frozen=True)

    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_valid(self) -> bool:
        return not self.errors
