"""
Tests for core.time — Clock protocol and promotion validity windows.
"""

import pytest
from datetime import date, datetime, time, timedelta, timezone

from core.time.clock import (
    FixedClock,
    SystemClock,
    get_default_clock,
    now_utc,
    set_default_clock,
)
from core.time.temporal import (
    ALL_WEEKDAYS,
    DailyWindow,
    DateWindow,
    WeekdayMask,
    is_within,
    local_moment,
    zone_named,
)


# ── Clock Tests ──────────────────────────────────────────────

class TestSystemClock:
    def test_returns_utc_datetime(self):
        dt = SystemClock().now_utc()
        assert dt.tzinfo == timezone.utc


class TestFixedClock:
    def test_returns_fixed_time(self):
        fixed = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        assert clock.now_utc() == fixed
        assert clock.now_utc() == fixed

    def test_rejects_naive_datetime(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            FixedClock(datetime(2026, 1, 1))

    def test_advance_takes_timedelta_keywords(self):
        fixed = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        clock = FixedClock(fixed)
        clock.advance(hours=8, minutes=30)
        assert clock.now_utc() == fixed + timedelta(hours=8, minutes=30)


class TestDefaultClock:
    def test_set_and_get_default(self):
        original = get_default_clock()
        fixed = FixedClock(datetime(2026, 1, 1, tzinfo=timezone.utc))
        set_default_clock(fixed)
        try:
            assert now_utc() == datetime(2026, 1, 1, tzinfo=timezone.utc)
        finally:
            set_default_clock(original)


# ── Window Tests ─────────────────────────────────────────────

class TestDateWindow:
    def test_inclusive_bounds(self):
        window = DateWindow(start=date(2026, 3, 1), end=date(2026, 3, 31))
        assert window.contains(date(2026, 3, 1))
        assert window.contains(date(2026, 3, 31))
        assert not window.contains(date(2026, 4, 1))

    def test_start_after_end_rejected(self):
        with pytest.raises(ValueError):
            DateWindow(start=date(2026, 4, 1), end=date(2026, 3, 1))

    def test_overlaps(self):
        march = DateWindow(start=date(2026, 3, 1), end=date(2026, 3, 31))
        late = DateWindow(start=date(2026, 3, 31), end=date(2026, 4, 30))
        april = DateWindow(start=date(2026, 4, 1), end=date(2026, 4, 30))
        assert march.overlaps(late)
        assert not march.overlaps(april)


class TestDailyWindow:
    def test_same_day_range(self):
        window = DailyWindow(start=time(9, 0), end=time(13, 0))
        assert window.contains(time(9, 0))
        assert window.contains(time(13, 0))
        assert not window.contains(time(13, 1))

    def test_wraps_past_midnight(self):
        window = DailyWindow(start=time(22, 0), end=time(2, 0))
        assert window.contains(time(23, 30))
        assert window.contains(time(1, 0))
        assert not window.contains(time(12, 0))


class TestWeekdayMask:
    def test_default_allows_every_day(self):
        assert WeekdayMask().days == ALL_WEEKDAYS

    def test_from_csv_is_sunday_based(self):
        mask = WeekdayMask.from_csv("0,6")
        # Sunday and Saturday in Python numbering
        assert mask.days == frozenset({6, 5})
        assert mask.allows(date(2026, 3, 1))       # Sunday
        assert not mask.allows(date(2026, 3, 2))   # Monday

    def test_empty_csv_means_every_day(self):
        assert WeekdayMask.from_csv("").days == ALL_WEEKDAYS
        assert WeekdayMask.from_csv(None).days == ALL_WEEKDAYS

    def test_csv_round_trip_keeps_back_office_form(self):
        assert WeekdayMask.from_csv("1,2,3").to_csv() == "1,2,3"

    def test_out_of_range_rejected(self):
        with pytest.raises(ValueError):
            WeekdayMask.of([7])
        with pytest.raises(ValueError):
            WeekdayMask.from_csv("0,9")


class TestIsWithin:
    WINDOW = DateWindow(start=date(2026, 3, 1), end=date(2026, 3, 31))

    def test_all_conditions_met(self):
        moment = datetime(2026, 3, 2, 10, 0, tzinfo=timezone.utc)
        assert is_within(
            moment, dates=self.WINDOW, weekdays=WeekdayMask.of([0]),
            hours=DailyWindow(start=time(9), end=time(12)),
        )

    def test_wrong_weekday(self):
        moment = datetime(2026, 3, 3, 10, 0, tzinfo=timezone.utc)  # Tuesday
        assert not is_within(moment, dates=self.WINDOW, weekdays=WeekdayMask.of([0]))

    def test_outside_hours(self):
        moment = datetime(2026, 3, 2, 18, 0, tzinfo=timezone.utc)
        assert not is_within(
            moment, dates=self.WINDOW, weekdays=WeekdayMask(),
            hours=DailyWindow(start=time(9), end=time(12)),
        )

    def test_outside_dates(self):
        moment = datetime(2026, 4, 1, 10, 0, tzinfo=timezone.utc)
        assert not is_within(moment, dates=self.WINDOW, weekdays=WeekdayMask())


class TestStoreLocalTime:
    BUENOS_AIRES = "America/Argentina/Buenos_Aires"

    def test_local_moment_crosses_the_utc_day(self):
        utc = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)  # Monday UTC
        local = local_moment(utc, zone_named(self.BUENOS_AIRES))
        assert local == utc
        assert local.date() == date(2026, 3, 1)
        assert local.weekday() == 6
        assert local.time() == time(22, 0)

    def test_naive_moment_read_as_utc(self):
        local = local_moment(datetime(2026, 3, 2, 1, 0), zone_named(self.BUENOS_AIRES))
        assert local.hour == 22

    def test_sunday_rule_matches_local_sunday_night(self):
        utc = datetime(2026, 3, 2, 1, 0, tzinfo=timezone.utc)
        sunday_only = WeekdayMask.from_csv("0")
        window = DateWindow(start=date(2026, 3, 1), end=date(2026, 3, 31))
        assert not is_within(utc, dates=window, weekdays=sunday_only)
        assert is_within(
            local_moment(utc, zone_named(self.BUENOS_AIRES)),
            dates=window, weekdays=sunday_only,
        )

    def test_unknown_zone_rejected(self):
        with pytest.raises(ValueError, match="Unknown time zone"):
            zone_named("Mars/Olympus_Mons")
