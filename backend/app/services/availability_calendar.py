"""Per-day availability for one vendor month.

Three independent sources decide a day's status:

* the vendor's weekly pattern (``days_off``, keyed by short weekday name),
* explicitly blocked dates,
* existing bookings.

Precedence is ``booked > blocked > dayoff > available``. A booking is a fact
and stays visible even when the vendor later blocks the date or marks the
weekday off; a blocked date is a more specific override than the weekly
pattern. Only ``available`` and ``booked`` days can be picked for a request.
"""

from __future__ import annotations

import calendar
import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Mapping, Optional

# Indexed by ``date.weekday()`` (Monday == 0)
WEEKDAY_KEYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

_WEEKDAY_ALIASES = {
    **{k.lower(): k for k in WEEKDAY_KEYS},
    **{calendar.day_name[i].lower(): WEEKDAY_KEYS[i] for i in range(7)},
}


class DayStatus(str, enum.Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    BLOCKED = "blocked"
    DAYOFF = "dayoff"


SELECTABLE_STATUSES = frozenset({DayStatus.AVAILABLE, DayStatus.BOOKED})


def normalize_days_off(raw: Optional[Mapping[str, Any]], strict: bool = False) -> dict[str, bool]:
    """Return a full ``{"Mon": bool, ..., "Sun": bool}`` map.

    Missing weekdays default to not-off, so a vendor who never configured the
    pattern is available every day. Keys may be short or full weekday names in
    any case. Unknown keys are ignored unless ``strict`` is set.
    """
    result = {key: False for key in WEEKDAY_KEYS}
    for name, value in (raw or {}).items():
        key = _WEEKDAY_ALIASES.get(str(name).strip().lower())
        if key is None:
            if strict:
                raise ValueError(f"Unknown weekday: {name}")
            continue
        result[key] = bool(value)
    return result


def weekday_key(day: date) -> str:
    return WEEKDAY_KEYS[day.weekday()]


def resolve_day_status(is_dayoff: bool, is_blocked: bool, booking_count: int) -> DayStatus:
    if booking_count > 0:
        return DayStatus.BOOKED
    if is_blocked:
        return DayStatus.BLOCKED
    if is_dayoff:
        return DayStatus.DAYOFF
    return DayStatus.AVAILABLE


def parse_month(value: str) -> tuple[int, int]:
    """Parse ``YYYY-MM`` into ``(year, month)``."""
    try:
        year_s, month_s = value.strip().split("-", 1)
        year, month = int(year_s), int(month_s)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid month {value!r}; expected YYYY-MM") from None
    if not 1 <= month <= 12 or not 1 <= year <= 9999:
        raise ValueError(f"Invalid month {value!r}; expected YYYY-MM")
    return year, month


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


@dataclass(frozen=True)
class CalendarDay:
    date: date
    status: DayStatus
    booking_count: int = 0

    @property
    def iso(self) -> str:
        return self.date.isoformat()

    @property
    def selectable(self) -> bool:
        return self.status in SELECTABLE_STATUSES

    def to_dict(self) -> dict:
        return {
            "date": self.iso,
            "day": self.date.day,
            "weekday": weekday_key(self.date),
            "status": self.status.value,
            "booking_count": self.booking_count,
            "selectable": self.selectable,
        }


@dataclass
class MonthCalendar:
    year: int
    month: int
    days: list[CalendarDay]
    # Blank grid cells before the 1st and after the last day (Sunday-first).
    leading_blanks: int
    trailing_blanks: int
    _by_iso: dict[str, CalendarDay] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self._by_iso = {d.iso: d for d in self.days}

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def day(self, value: date | str) -> Optional[CalendarDay]:
        iso = value.isoformat() if isinstance(value, date) else str(value)
        return self._by_iso.get(iso)

    def status_of(self, value: date | str) -> Optional[DayStatus]:
        day = self.day(value)
        return day.status if day else None

    @property
    def counts(self) -> dict[str, int]:
        counts = {status.value: 0 for status in DayStatus}
        for d in self.days:
            counts[d.status.value] += 1
        return counts

    def to_dict(self) -> dict:
        return {
            "month": self.label,
            "leading_blanks": self.leading_blanks,
            "trailing_blanks": self.trailing_blanks,
            "days": [d.to_dict() for d in self.days],
            "counts": self.counts,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MonthCalendar":
        year, month = parse_month(data["month"])
        days = [
            CalendarDay(
                date=date.fromisoformat(d["date"]),
                status=DayStatus(d["status"]),
                booking_count=int(d.get("booking_count") or 0),
            )
            for d in data["days"]
        ]
        return cls(
            year=year,
            month=month,
            days=days,
            leading_blanks=int(data["leading_blanks"]),
            trailing_blanks=int(data["trailing_blanks"]),
        )


def build_month_calendar(
    year: int,
    month: int,
    days_off: Optional[Mapping[str, Any]] = None,
    blocked_dates: Iterable[date] = (),
    booking_dates: Iterable[date] = (),
) -> MonthCalendar:
    """Merge weekly days off, blocked dates and bookings into a month.

    ``booking_dates`` may repeat a date once per booking. Inputs outside the
    month are ignored.
    """
    pattern = normalize_days_off(days_off)
    blocked = set(blocked_dates)
    bookings_per_day: dict[date, int] = {}
    for d in booking_dates:
        bookings_per_day[d] = bookings_per_day.get(d, 0) + 1

    first, last = month_bounds(year, month)
    days = []
    for n in range(1, last.day + 1):
        current = date(year, month, n)
        count = bookings_per_day.get(current, 0)
        status = resolve_day_status(
            is_dayoff=pattern[weekday_key(current)],
            is_blocked=current in blocked,
            booking_count=count,
        )
        days.append(CalendarDay(date=current, status=status, booking_count=count))

    leading = (first.weekday() + 1) % 7
    trailing = (-(leading + last.day)) % 7
    return MonthCalendar(
        year=year,
        month=month,
        days=days,
        leading_blanks=leading,
        trailing_blanks=trailing,
    )


class DateSelection:
    """Multi-date pick list for a booking request.

    Toggling a day that is not selectable (blocked, day off, or not part of
    the displayed month) leaves the selection untouched.
    """

    def __init__(self, dates: Iterable[date | str] = ()):
        self._dates: set[date] = {
            d if isinstance(d, date) else date.fromisoformat(d) for d in dates
        }

    def toggle(self, value: date | str, month: MonthCalendar) -> bool:
        """Flip membership of ``value``; return True when the set changed."""
        day = month.day(value)
        if day is None or not day.selectable:
            return False
        if day.date in self._dates:
            self._dates.discard(day.date)
        else:
            self._dates.add(day.date)
        return True

    def dates(self) -> list[date]:
        return sorted(self._dates)

    def iso_dates(self) -> list[str]:
        return [d.isoformat() for d in self.dates()]

    def clear(self) -> None:
        self._dates.clear()

    def __contains__(self, value: object) -> bool:
        if isinstance(value, str):
            value = date.fromisoformat(value)
        return value in self._dates

    def __len__(self) -> int:
        return len(self._dates)
