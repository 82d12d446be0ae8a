"""Weekly working-hours models used when offering slots."""

from datetime import date
from enum import IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from lesson_scheduler.date_utils import is_valid_time_string, parse_date, time_to_minutes


class DayOfWeek(IntEnum):
    """Civil weekday, numbered like ``date.weekday()``."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def is_weekend(self) -> bool:
        return self >= DayOfWeek.SATURDAY


class DayHours(BaseModel):
    """Working window for one weekday."""

    model_config = ConfigDict(frozen=True)

    start: str
    end: str
    enabled: bool = True

    @field_validator("start", "end")
    @classmethod
    def _check_time(cls, value: str) -> str:
        if not is_valid_time_string(value):
            raise ValueError(f"working hours must be HH:mm, got {value!r}")
        return value

    @model_validator(mode="after")
    def _check_order(self) -> "DayHours":
        if time_to_minutes(self.start) >= time_to_minutes(self.end):
            raise ValueError(f"working hours start {self.start} must be before end {self.end}")
        return self


def _default_days() -> dict[DayOfWeek, DayHours]:
    weekday = DayHours(start="09:00", end="17:00", enabled=True)
    weekend = DayHours(start="10:00", end="16:00", enabled=False)
    return {day: (weekend if day.is_weekend else weekday) for day in DayOfWeek}


class WeeklySchedule(BaseModel):
    """
    Per-weekday working hours plus vacation days.

    Days missing from ``days`` are treated as not worked.
    """

    model_config = ConfigDict(frozen=True)

    days: dict[DayOfWeek, DayHours] = Field(default_factory=_default_days)
    vacation_days: frozenset[str] = frozenset()

    @field_validator("vacation_days")
    @classmethod
    def _check_vacation_days(cls, value: frozenset[str]) -> frozenset[str]:
        for day in value:
            parse_date(day)
        return value

    def hours_for(self, day: Union[date, str]) -> Optional[DayHours]:
        """Working window for a civil date, or None when not worked."""
        if isinstance(day, str):
            day = parse_date(day)
        if day.isoformat() in self.vacation_days:
            return None
        hours = self.days.get(DayOfWeek(day.weekday()))
        if hours is None or not hours.enabled:
            return None
        return hours

    def is_working_day(self, day: Union[date, str]) -> bool:
        return self.hours_for(day) is not None
