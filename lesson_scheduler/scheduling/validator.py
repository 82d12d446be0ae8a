"""
Booking validation against scheduling constraints.

Independent checks, each looking at a different rule:
1. Time window: start/end inside the allowed time of day
2. Duration: lesson length bounds and standard lengths
3. Advance notice: not too soon, not too far ahead
4. Weekly limits: hours and lessons in the Monday-starting week
5. Daily limits: hours and lessons on the civil day
6. Buffer: overlap and minimum gap to neighbouring lessons
7. Consecutive: back-to-back run length
8. Breaks: continuous driving time without a proper break
9. Instructor load: instructor hours on the civil day

Every check runs on every call and their findings are merged, so a caller
can show all problems at once. Business-rule violations are returned in the
ValidationResult, never raised.

Usage:
    result = validate_booking(request, existing_bookings, constraints)
    if not result.is_valid:
        show(result.errors)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Optional

from lesson_scheduler.config import settings
from lesson_scheduler.date_utils import (
    add_civil_days,
    create_date_in_timezone,
    do_time_slots_overlap,
    format_date_in_timezone,
    format_time_in_timezone,
    get_day_name,
    start_of_day,
    start_of_week,
    to_instant,
    to_local,
)
from lesson_scheduler.logging_context import get_run_logger, new_run_id, set_run_id
from lesson_scheduler.schemas.booking_schema import BookingRequest, ExistingBooking, ValidationResult
from lesson_scheduler.schemas.calendar_schema import DayOfWeek
from lesson_scheduler.schemas.constraints_schema import DEFAULT_CONSTRAINTS, SchedulingConstraints

logger = get_run_logger(__name__)


@dataclass
class CheckFindings:
    """Messages produced by a single check."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class CheckContext:
    """Inputs shared by every check in one validation run."""

    request: BookingRequest
    constraints: SchedulingConstraints
    timezone: str
    now: datetime
    user_bookings: list[ExistingBooking]
    confirmed_bookings: list[ExistingBooking]

    def window(self, start: datetime, end: datetime) -> list[ExistingBooking]:
        """User bookings whose start falls in [start, end)."""
        return [b for b in self.user_bookings if start <= b.start_time < end]

    def day_bounds(self) -> tuple[datetime, datetime]:
        day_start = start_of_day(self.request.start_time, self.timezone)
        next_day = add_civil_days(format_date_in_timezone(day_start, self.timezone), 1)
        return day_start, create_date_in_timezone(next_day, self.timezone)

    def week_bounds(self) -> tuple[datetime, datetime]:
        week_start = start_of_week(self.request.start_time, self.timezone)
        next_week = add_civil_days(format_date_in_timezone(week_start, self.timezone), 7)
        return week_start, create_date_in_timezone(next_week, self.timezone)


def _minutes(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def _booked_minutes(bookings: Iterable[ExistingBooking]) -> float:
    # Limits are compared in minutes; summing fractional hours drifts past them.
    return sum(b.duration_minutes for b in bookings)


def _civil_minutes(instant: datetime, reference: datetime, tz: str) -> int:
    """Minutes from civil midnight of ``reference``'s day to ``instant``'s wall clock."""
    local = to_local(instant, tz)
    day_offset = (local.date() - to_local(reference, tz).date()).days
    return day_offset * 24 * 60 + local.hour * 60 + local.minute


def check_time_window(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    start = _civil_minutes(ctx.request.start_time, ctx.request.start_time, ctx.timezone)
    end = _civil_minutes(ctx.request.end_time, ctx.request.start_time, ctx.timezone)

    if start < c.start_minutes:
        findings.errors.append(f"Lessons cannot start before {c.earliest_start_time}")
    if end > c.end_minutes:
        findings.errors.append(f"Lessons must end by {c.latest_end_time}")

    day = DayOfWeek(to_local(ctx.request.start_time, ctx.timezone).weekday())
    if day.is_weekend:
        findings.warnings.append(
            f"{get_day_name(ctx.request.start_time, ctx.timezone).title()} lessons "
            "are outside regular weekday hours and may have limited availability"
        )
    return findings


def check_duration(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    duration = ctx.request.duration

    if duration < c.min_lesson_duration:
        findings.errors.append(f"Lesson duration must be at least {c.min_lesson_duration} minutes")
    if duration > c.max_lesson_duration:
        findings.errors.append(f"Lesson duration cannot exceed {c.max_lesson_duration} minutes")
    if duration not in c.allowed_durations:
        allowed = ", ".join(str(d) for d in c.allowed_durations)
        findings.warnings.append(
            f"{duration}-minute lessons are not a standard length (allowed: {allowed} minutes)"
        )
    return findings


def check_advance_notice(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    minutes_until = _minutes(ctx.now, ctx.request.start_time)

    if minutes_until < 0:
        findings.errors.append("Cannot book lessons in the past")
    elif minutes_until < c.min_advance_booking_hours * 60:
        findings.errors.append(
            f"Lessons must be booked at least {c.min_advance_booking_hours:g} hours in advance"
        )
    if minutes_until > c.max_advance_booking_days * 24 * 60:
        findings.errors.append(
            f"Lessons cannot be booked more than {c.max_advance_booking_days} days in advance"
        )
    return findings


def check_weekly_limits(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    in_week = ctx.window(*ctx.week_bounds())

    minutes = _booked_minutes(in_week) + ctx.request.duration
    lessons = len(in_week) + 1
    if minutes > c.max_hours_per_week * 60:
        findings.errors.append(
            f"Weekly limit exceeded: this booking brings the week to {minutes / 60:g} hours "
            f"(maximum {c.max_hours_per_week:g})"
        )
    if lessons > c.max_lessons_per_week:
        findings.errors.append(
            f"Weekly lesson limit exceeded: this would be lesson {lessons} of the week "
            f"(maximum {c.max_lessons_per_week})"
        )
    return findings


def check_daily_limits(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    in_day = ctx.window(*ctx.day_bounds())

    minutes = _booked_minutes(in_day) + ctx.request.duration
    lessons = len(in_day) + 1
    if minutes > c.max_hours_per_day * 60:
        findings.errors.append(
            f"Daily limit exceeded: this booking brings the day to {minutes / 60:g} hours "
            f"(maximum {c.max_hours_per_day:g})"
        )
    if lessons > c.max_lessons_per_day:
        findings.errors.append(
            f"Daily lesson limit exceeded: this would be lesson {lessons} of the day "
            f"(maximum {c.max_lessons_per_day})"
        )
    return findings


def check_buffer(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    buffer = ctx.constraints.min_buffer_between_lessons
    req = ctx.request

    for booking in sorted(ctx.user_bookings, key=lambda b: b.start_time):
        if not do_time_slots_overlap(
            req.start_time, req.end_time, booking.start_time, booking.end_time, buffer
        ):
            continue

        if do_time_slots_overlap(req.start_time, req.end_time, booking.start_time, booking.end_time):
            findings.errors.append(
                "Booking overlaps with an existing lesson from "
                f"{format_time_in_timezone(booking.start_time, ctx.timezone)} to "
                f"{format_time_in_timezone(booking.end_time, ctx.timezone)}"
            )
            findings.suggestions.append("Choose a different time slot")
            continue

        gap_before = _minutes(req.end_time, booking.start_time)
        gap = gap_before if gap_before >= 0 else _minutes(booking.end_time, req.start_time)
        if gap == 0:
            findings.suggestions.append(
                "Back-to-back lessons detected; consider adding buffer time between them"
            )
        elif gap < buffer:
            findings.errors.append(
                f"Only {gap:g} minutes between lessons ({buffer} minutes required)"
            )
            shift = buffer - gap
            if gap_before >= 0:
                findings.suggestions.append(f"Consider ending the lesson {shift:g} minutes earlier")
            else:
                findings.suggestions.append(f"Consider starting the lesson {shift:g} minutes later")

    nearest = _nearest_gap(ctx)
    if nearest is not None and nearest > ctx.constraints.max_buffer_between_lessons:
        findings.suggestions.append(
            f"The nearest lesson that day is {nearest:g} minutes away; gaps over "
            f"{ctx.constraints.max_buffer_between_lessons} minutes leave idle time"
        )
    return findings


def _nearest_gap(ctx: CheckContext) -> Optional[float]:
    """Smallest non-negative gap to another lesson on the same day, if any."""
    req = ctx.request
    gaps = []
    for booking in ctx.window(*ctx.day_bounds()):
        if booking.start_time >= req.end_time:
            gaps.append(_minutes(req.end_time, booking.start_time))
        elif booking.end_time <= req.start_time:
            gaps.append(_minutes(booking.end_time, req.start_time))
    return min(gaps) if gaps else None


def _run_containing_request(
    ctx: CheckContext, joins: Callable[[float], bool]
) -> list[tuple[datetime, datetime]]:
    """Lessons of the day chained to the request by gaps for which ``joins`` holds."""
    req = ctx.request
    lessons = [(b.start_time, b.end_time) for b in ctx.window(*ctx.day_bounds())]
    lessons.append((req.start_time, req.end_time))
    lessons.sort()

    runs: list[list[tuple[datetime, datetime]]] = [[lessons[0]]]
    for lesson in lessons[1:]:
        previous = runs[-1][-1]
        if joins(_minutes(previous[1], lesson[0])):
            runs[-1].append(lesson)
        else:
            runs.append([lesson])

    target = (req.start_time, req.end_time)
    return next(run for run in runs if target in run)


def check_consecutive_lessons(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    run = _run_containing_request(ctx, lambda gap: gap <= c.min_buffer_between_lessons)
    if len(run) > c.max_consecutive_lessons:
        findings.warnings.append(
            f"This booking creates {len(run)} consecutive lessons "
            f"(recommended maximum {c.max_consecutive_lessons})"
        )
    return findings


def check_breaks(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    c = ctx.constraints
    run = _run_containing_request(ctx, lambda gap: gap < c.min_break_duration)
    driving = sum(_minutes(start, end) for start, end in run)
    if len(run) > 1 and driving > c.required_break_after_hours * 60:
        findings.warnings.append(
            f"A break of at least {c.min_break_duration} minutes is required after "
            f"{c.required_break_after_hours:g} hours of lessons "
            f"({driving / 60:g} hours without a break)"
        )
    return findings


def check_instructor_load(ctx: CheckContext) -> CheckFindings:
    findings = CheckFindings()
    instructor = ctx.request.instructor_id
    if instructor is None:
        return findings

    day_start, day_end = ctx.day_bounds()
    minutes = ctx.request.duration + _booked_minutes(
        b
        for b in ctx.confirmed_bookings
        if b.instructor_id == instructor and day_start <= b.start_time < day_end
    )
    limit = ctx.constraints.max_instructor_hours_per_day
    if minutes > limit * 60:
        findings.errors.append(
            f"Instructor daily limit exceeded: {minutes / 60:g} hours booked (maximum {limit:g})"
        )
    return findings


CHECKS: list[Callable[[CheckContext], CheckFindings]] = [
    check_time_window,
    check_duration,
    check_advance_notice,
    check_weekly_limits,
    check_daily_limits,
    check_buffer,
    check_consecutive_lessons,
    check_breaks,
    check_instructor_load,
]


def validate_booking(
    request: BookingRequest,
    existing_bookings: Iterable[ExistingBooking],
    constraints: Optional[SchedulingConstraints] = None,
    *,
    timezone: Optional[str] = None,
    now: Optional[datetime] = None,
    exclude_booking_id: Optional[str] = None,
) -> ValidationResult:
    """
    Validate a booking request against constraints and existing bookings.

    Args:
        request: The proposed lesson.
        existing_bookings: Snapshot of stored bookings. Only confirmed ones count.
        constraints: Limits to apply; defaults to DEFAULT_CONSTRAINTS.
        timezone: IANA zone for wall-clock rules; defaults to config.
        now: Reference instant for advance-notice rules; defaults to the current time.
        exclude_booking_id: Booking to ignore, e.g. the one being rescheduled.

    Returns:
        A ValidationResult listing every error, warning and suggestion.
    """
    set_run_id(new_run_id())
    ctx = _build_context(request, existing_bookings, constraints, timezone, now, exclude_booking_id)

    errors: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []
    for check in CHECKS:
        findings = check(ctx)
        if findings.errors or findings.warnings:
            logger.debug(
                "%s: %d errors, %d warnings",
                check.__name__, len(findings.errors), len(findings.warnings),
            )
        errors.extend(findings.errors)
        warnings.extend(findings.warnings)
        suggestions.extend(findings.suggestions)

    result = ValidationResult(
        errors=tuple(errors), warnings=tuple(warnings), suggestions=tuple(suggestions)
    )
    logger.info(
        "Booking for user %s at %s %s: %d errors, %d warnings",
        request.user_id,
        to_local(request.start_time, ctx.timezone).strftime("%Y-%m-%d %H:%M"),
        "accepted" if result.is_valid else "rejected",
        len(result.errors),
        len(result.warnings),
    )
    return result


def _build_context(
    request: BookingRequest,
    existing_bookings: Iterable[ExistingBooking],
    constraints: Optional[SchedulingConstraints],
    tz: Optional[str],
    now: Optional[datetime],
    exclude_booking_id: Optional[str],
) -> CheckContext:
    confirmed = [
        b for b in existing_bookings if b.is_confirmed and b.id != exclude_booking_id
    ]
    return CheckContext(
        request=request,
        constraints=constraints or DEFAULT_CONSTRAINTS,
        timezone=tz or settings.scheduling.timezone,
        now=to_instant(now) if now is not None else datetime.now(timezone.utc),
        user_bookings=[b for b in confirmed if b.user_id == request.user_id],
        confirmed_bookings=confirmed,
    )


class SchedulingValidator:
    """
    Holds the active constraints record for a booking service.

    The record is never mutated: ``update_constraints`` swaps in a new,
    revalidated record, and each ``validate_booking`` call reads the record
    once so it sees a single consistent set of limits.
    """

    def __init__(
        self,
        constraints: Optional[SchedulingConstraints] = None,
        timezone: Optional[str] = None,
    ) -> None:
        self._constraints = constraints or DEFAULT_CONSTRAINTS
        self._timezone = timezone

    def get_constraints(self) -> SchedulingConstraints:
        return self._constraints

    def update_constraints(self, partial: Mapping[str, Any]) -> SchedulingConstraints:
        """
        Apply an admin update.

        Raises:
            ConfigurationError: If the merged record is invalid; the current
                record stays in place.
        """
        updated = self._constraints.with_updates(partial)
        self._constraints = updated
        logger.info("Scheduling constraints updated: %s", ", ".join(sorted(partial)))
        return updated

    def reset_constraints(self) -> SchedulingConstraints:
        self._constraints = DEFAULT_CONSTRAINTS
        logger.info("Scheduling constraints reset to defaults")
        return self._constraints

    def validate_booking(
        self,
        request: BookingRequest,
        existing_bookings: Iterable[ExistingBooking],
        now: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> ValidationResult:
        return validate_booking(
            request,
            existing_bookings,
            self._constraints,
            timezone=self._timezone,
            now=now,
            exclude_booking_id=exclude_booking_id,
        )
