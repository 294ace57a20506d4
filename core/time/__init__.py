"""
TSC Core Time — Public API
============================
Explicit clock protocol and promotion validity windows.
"""

from core.time.clock import (
    Clock,
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

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "set_default_clock",
    "now_utc",
    "ALL_WEEKDAYS",
    "DailyWindow",
    "DateWindow",
    "WeekdayMask",
    "is_within",
    "local_moment",
    "zone_named",
]
