"""Month grid window calculations."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta


@dataclass(frozen=True)
class CalendarWindow:
    """Whole weeks (Sunday to Saturday) covering one month."""

    month_start: date
    month_end: date
    calendar_start: date
    calendar_end: date
    days_in_view: tuple[date, ...] = field(repr=False)

    def contains(self, day: date) -> bool:
        return self.calendar_start <= day <= self.calendar_end

    def to_payload(self) -> dict[str, str]:
        return {
            "monthStart": self.month_start.isoformat(),
            "monthEnd": self.month_end.isoformat(),
            "calendarStart": self.calendar_start.isoformat(),
            "calendarEnd": self.calendar_end.isoformat(),
        }


def sunday_weekday(day: date) -> int:
    """Weekday index with Sunday as 0."""

    return (day.weekday() + 1) % 7


def month_bounds(anchor: date) -> tuple[date, date]:
    start = anchor.replace(day=1)
    last_day = calendar.monthrange(anchor.year, anchor.month)[1]
    return start, anchor.replace(day=last_day)


def calendar_window(anchor: date) -> CalendarWindow:
    month_start, month_end = month_bounds(anchor)
    calendar_start = month_start - timedelta(days=sunday_weekday(month_start))
    calendar_end = month_end + timedelta(days=6 - sunday_weekday(month_end))
    span = (calendar_end - calendar_start).days + 1
    days = tuple(calendar_start + timedelta(days=offset) for offset in range(span))
    return CalendarWindow(
        month_start=month_start,
        month_end=month_end,
        calendar_start=calendar_start,
        calendar_end=calendar_end,
        days_in_view=days,
    )


def shift_month(anchor: date, delta: int) -> date:
    """Return the first day of the month ``delta`` months from ``anchor``."""

    index = anchor.year * 12 + (anchor.month - 1) + delta
    year, month = divmod(index, 12)
    return date(year, month + 1, 1)


def parse_month(value: str) -> date:
    """Parse ``YYYY-MM`` (or a full ISO date) into the first day of that month."""

    text = value.strip()
    try:
        if len(text) == 7:
            return datetime.strptime(text, "%Y-%m").date()
        return date.fromisoformat(text[:10]).replace(day=1)
    except ValueError as exc:
        raise ValueError(f"Invalid month value: {value!r}") from exc


def _parse_day(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def resolve_query_range(
    start: str | None, end: str | None, *, today: date
) -> tuple[date, date]:
    """Apply the data source defaults to a requested start/end pair."""

    start_date = _parse_day(start) or today.replace(day=1)
    end_date = _parse_day(end) or month_bounds(start_date)[1]
    if end_date < start_date:
        end_date = start_date
    return start_date, end_date


def format_month_label(anchor: date) -> str:
    return f"{calendar.month_name[anchor.month]} {anchor.year}"
