"""Tests for free slot generation and next-slot search."""

from datetime import date

import pytest

from lesson_scheduler.date_utils import InvalidTimeFormatError, format_time_in_timezone
from lesson_scheduler.scheduling.slots import (
    filter_available_slots,
    find_next_available_slot,
    generate_free_slots,
    generate_time_slots,
    get_available_slots,
)
from lesson_scheduler.schemas.booking_schema import BookingStatus
from lesson_scheduler.schemas.calendar_schema import DayHours, DayOfWeek, WeeklySchedule
from lesson_scheduler.schemas.constraints_schema import build_constraints
from tests.conftest import TZ, at, make_booking


def starts(slots):
    return [format_time_in_timezone(s.start, TZ) for s in slots]


class TestGenerateFreeSlots:
    def test_one_slot_per_gap(self):
        bookings = [make_booking("bk-1", "2025-11-20", "12:00")]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        assert [(s.start, s.end) for s in slots] == [
            (at("2025-11-20", "09:00"), at("2025-11-20", "10:00")),
            (at("2025-11-20", "13:15"), at("2025-11-20", "14:15")),
        ]

    def test_slots_keep_clear_of_buffer(self):
        bookings = [make_booking("bk-1", "2025-11-20", "12:00")]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        for slot in slots:
            assert slot.end <= at("2025-11-20", "11:45") or slot.start >= at("2025-11-20", "13:15")

    def test_packed_gaps(self):
        bookings = [make_booking("bk-1", "2025-11-20", "12:00")]
        slots = generate_free_slots(
            "2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ, pack_gaps=True
        )
        assert starts(slots) == ["09:00", "10:00", "13:15", "14:15", "15:15"]
        assert all(s.duration_minutes == 60 for s in slots)

    def test_empty_day(self):
        assert starts(generate_free_slots("2025-11-20", "09:00", "17:00", 60, [], 15, timezone=TZ)) == ["09:00"]
        packed = generate_free_slots("2025-11-20", "09:00", "17:00", 60, [], 15, timezone=TZ, pack_gaps=True)
        assert len(packed) == 8

    def test_booking_at_window_start(self):
        bookings = [make_booking("bk-1", "2025-11-20", "09:00")]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        assert starts(slots) == ["10:15"]

    def test_booking_straddling_window_start(self):
        bookings = [make_booking("bk-1", "2025-11-20", "08:30")]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        assert starts(slots) == ["09:45"]

    def test_unsorted_bookings(self):
        bookings = [
            make_booking("bk-2", "2025-11-20", "14:00"),
            make_booking("bk-1", "2025-11-20", "10:00"),
        ]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        assert starts(slots) == ["11:15", "15:15"]

    def test_cancelled_booking_ignored(self):
        bookings = [make_booking("bk-1", "2025-11-20", "09:00", status=BookingStatus.CANCELLED)]
        slots = generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ)
        assert starts(slots) == ["09:00"]

    def test_fully_booked(self):
        bookings = [make_booking("bk-1", "2025-11-20", "09:00", duration=480)]
        assert generate_free_slots("2025-11-20", "09:00", "17:00", 60, bookings, 15, timezone=TZ) == []

    def test_accepts_date_object(self):
        slots = generate_free_slots(date(2025, 11, 20), "09:00", "17:00", 60, [], 15, timezone=TZ)
        assert slots[0].start == at("2025-11-20", "09:00")

    def test_non_positive_duration(self):
        with pytest.raises(ValueError, match="positive"):
            generate_free_slots("2025-11-20", "09:00", "17:00", 0, [], 15, timezone=TZ)

    def test_empty_window(self):
        with pytest.raises(ValueError, match="empty"):
            generate_free_slots("2025-11-20", "17:00", "09:00", 60, [], 15, timezone=TZ)

    def test_bad_window_time(self):
        with pytest.raises(InvalidTimeFormatError):
            generate_free_slots("2025-11-20", "9am", "17:00", 60, [], 15, timezone=TZ)


class TestGetAvailableSlots:
    def test_weekday_hours(self):
        bookings = [make_booking("bk-1", "2025-11-20", "12:00")]
        slots = get_available_slots("2025-11-20", bookings, 60, timezone=TZ, pack_gaps=False)
        assert starts(slots) == ["09:00", "13:15"]

    def test_weekend_not_worked_by_default(self):
        assert get_available_slots("2025-11-22", [], 60, timezone=TZ) == []

    def test_enabled_weekend(self):
        days = dict(WeeklySchedule().days)
        days[DayOfWeek.SATURDAY] = DayHours(start="10:00", end="16:00", enabled=True)
        schedule = WeeklySchedule(days=days)
        slots = get_available_slots("2025-11-22", [], 60, schedule=schedule, timezone=TZ, pack_gaps=False)
        assert starts(slots) == ["10:00"]

    def test_vacation_day(self):
        schedule = WeeklySchedule(vacation_days=frozenset({"2025-11-20"}))
        assert get_available_slots("2025-11-20", [], 60, schedule=schedule, timezone=TZ) == []

    def test_constraints_narrow_window(self):
        constraints = build_constraints(earliest_start_time="10:00", latest_end_time="12:00")
        slots = get_available_slots("2025-11-20", [], 60, constraints, timezone=TZ, pack_gaps=True)
        assert starts(slots) == ["10:00", "11:00"]

    def test_buffer_from_constraints(self):
        constraints = build_constraints(min_buffer_between_lessons=30)
        bookings = [make_booking("bk-1", "2025-11-20", "09:00")]
        slots = get_available_slots("2025-11-20", bookings, 60, constraints, timezone=TZ, pack_gaps=False)
        assert starts(slots) == ["10:30"]


class TestSlotGrid:
    def test_hourly_grid(self):
        slots = generate_time_slots("2025-11-20", "09:00", "12:00", 60, TZ)
        assert starts(slots) == ["09:00", "10:00", "11:00"]

    def test_partial_slot_dropped(self):
        slots = generate_time_slots("2025-11-20", "09:00", "12:00", 90, TZ)
        assert starts(slots) == ["09:00", "10:30"]

    def test_grid_keeps_wall_clock_when_clocks_go_back(self):
        # 02:00-03:00 happens twice in Sydney on 6 April 2025
        slots = generate_time_slots("2025-04-06", "00:00", "05:00", 60, "Australia/Sydney")
        assert [format_time_in_timezone(s.start, "Australia/Sydney") for s in slots] == [
            "00:00", "01:00", "02:00", "03:00", "04:00",
        ]

    def test_grid_skips_hour_lost_when_clocks_go_forward(self):
        slots = generate_time_slots("2025-10-05", "00:00", "05:00", 60, "Australia/Sydney")
        assert [format_time_in_timezone(s.start, "Australia/Sydney") for s in slots] == [
            "00:00", "01:00", "03:00", "04:00",
        ]
        assert all(s.end > s.start for s in slots)

    def test_filter_against_bookings(self):
        grid = generate_time_slots("2025-11-20", "09:00", "17:00", 60, TZ)
        bookings = [make_booking("bk-1", "2025-11-20", "10:00")]
        free = filter_available_slots(grid, bookings, 15)
        assert starts(free) == ["12:00", "13:00", "14:00", "15:00", "16:00"]

    def test_filter_ignores_pending(self):
        grid = generate_time_slots("2025-11-20", "09:00", "12:00", 60, TZ)
        bookings = [make_booking("bk-1", "2025-11-20", "10:00", status=BookingStatus.PENDING)]
        assert filter_available_slots(grid, bookings, 15) == grid


class TestNextAvailableSlot:
    def test_skips_weekend(self):
        slot = find_next_available_slot("2025-11-22", 60, [], timezone=TZ)
        assert slot is not None
        assert slot.start == at("2025-11-24", "09:00")

    def test_skips_fully_booked_day(self):
        bookings = [make_booking("bk-1", "2025-11-24", "09:00", duration=480)]
        slot = find_next_available_slot("2025-11-24", 60, bookings, timezone=TZ)
        assert slot.start == at("2025-11-25", "09:00")

    def test_not_before(self):
        slot = find_next_available_slot(
            "2025-11-24", 60, [], timezone=TZ, not_before=at("2025-11-24", "09:30")
        )
        assert slot.start == at("2025-11-24", "10:00")

    def test_nothing_within_horizon(self):
        assert find_next_available_slot("2025-11-22", 60, [], timezone=TZ, horizon_days=2) is None

    def test_zero_horizon_searches_nothing(self):
        assert find_next_available_slot("2025-11-24", 60, [], timezone=TZ, horizon_days=0) is None
