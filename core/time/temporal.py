"""
TSC Core Time — Promotion Validity Windows
============================================
Pure value objects describing when a promotion may apply.
All checks take the evaluation instant explicitly — no hidden clock.
Windows are store-local: callers convert the UTC instant with
local_moment() before checking.

Weekdays follow Python's date.weekday(): 0 = Monday … 6 = Sunday.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timezone, tzinfo
from typing import FrozenSet, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

ALL_WEEKDAYS: FrozenSet[int] = frozenset(range(7))


# ══════════════════════════════════════════════════════════════
# DATE WINDOW — Closed interval [start, end]
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateWindow:
    """
    A closed calendar interval [start, end].

    Invariant: start <= end (enforced at construction).
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"DateWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: DateWindow) -> bool:
        return self.start <= other.end and other.start <= self.end


# ══════════════════════════════════════════════════════════════
# DAILY WINDOW — time-of-day range
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DailyWindow:
    """
    Time-of-day range [start, end], inclusive.

    A window whose end is before its start wraps past midnight
    (e.g. 22:00–02:00 for a late-night happy hour).
    """

    start: time
    end: time

    def contains(self, moment: time) -> bool:
        if self.start <= self.end:
            return self.start <= moment <= self.end
        return moment >= self.start or moment <= self.end


# ══════════════════════════════════════════════════════════════
# WEEKDAY MASK
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class WeekdayMask:
    """Subset of the seven weekdays on which a rule is allowed."""

    days: FrozenSet[int] = ALL_WEEKDAYS

    def __post_init__(self) -> None:
        days = frozenset(self.days)
        invalid = sorted(d for d in days if d not in ALL_WEEKDAYS)
        if invalid:
            raise ValueError(f"Weekdays must be in 0..6, got {invalid}.")
        object.__setattr__(self, "days", days)

    @classmethod
    def of(cls, days: Iterable[int]) -> WeekdayMask:
        return cls(days=frozenset(days))

    @classmethod
    def from_csv(cls, value: Optional[str]) -> WeekdayMask:
        """
        Parse the back-office format "0,1,2,3,4,5,6" where 0 is Sunday.

        Empty or missing input means every day.
        """
        if not value or not value.strip():
            return cls()
        sunday_based = [int(part) for part in value.split(",") if part.strip()]
        invalid = sorted(d for d in sunday_based if d not in ALL_WEEKDAYS)
        if invalid:
            raise ValueError(f"Weekdays must be in 0..6, got {invalid}.")
        # Sunday=0 → Python Monday=0
        return cls(days=frozenset((d - 1) % 7 for d in sunday_based))

    def to_csv(self) -> str:
        return ",".join(str(d) for d in sorted((d + 1) % 7 for d in self.days))

    def allows(self, day: date) -> bool:
        return day.weekday() in self.days


def is_within(
    moment: datetime,
    *,
    dates: DateWindow,
    weekdays: WeekdayMask,
    hours: Optional[DailyWindow] = None,
) -> bool:
    """Combined validity check used by promotion eligibility."""
    day = moment.date()
    if not dates.contains(day):
        return False
    if not weekdays.allows(day):
        return False
    if hours is not None and not hours.contains(moment.time()):
        return False
    return True


# ══════════════════════════════════════════════════════════════
# STORE-LOCAL TIME
# ══════════════════════════════════════════════════════════════

def zone_named(name: str) -> tzinfo:
    """IANA zone by name ("America/Argentina/Buenos_Aires", "UTC")."""
    if not name or not isinstance(name, str):
        raise ValueError(f"Unknown time zone {name!r}.")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ValueError(f"Unknown time zone {name!r}.") from exc


def local_moment(moment: datetime, zone: tzinfo) -> datetime:
    """The same instant on the store's wall clock. Naive input is UTC."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(zone)
