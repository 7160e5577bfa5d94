"""Coordinator owning the month, selection and filter state of a calendar."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Mapping

from .formatters import build_external_link, extract_event_details, format_event_title
from .models import (
    CalendarFilters,
    CalendarResponse,
    DeduplicatedCalendarItem,
    InstanceOption,
    ServiceFilterValue,
    ServiceInstanceSummary,
)
from .pipeline import DateBucketMap, build_instance_options, derive_events
from .utils import utc_today
from .window import CalendarWindow, calendar_window, format_month_label, shift_month

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CalendarQuery:
    """Parameters handed to the raw data source."""

    start: date
    end: date
    unmonitored: bool = False

    def to_params(self) -> dict[str, str]:
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "unmonitored": "true" if self.unmonitored else "false",
        }


CalendarFetcher = Callable[[CalendarQuery], Awaitable[CalendarResponse]]


@dataclass(slots=True)
class CalendarView:
    """Derived, render-ready state for one pass over a snapshot."""

    window: CalendarWindow
    filters: CalendarFilters
    today: date
    selected_date: date
    events: list[DeduplicatedCalendarItem]
    events_by_date: DateBucketMap
    instance_options: list[InstanceOption]
    services: Mapping[str, ServiceInstanceSummary] = field(default_factory=dict)

    @property
    def days_in_view(self) -> tuple[date, ...]:
        return self.window.days_in_view

    def events_on(self, day: date) -> list[DeduplicatedCalendarItem]:
        return self.events_by_date.get(day.isoformat(), [])

    def _event_payload(self, entry: DeduplicatedCalendarItem) -> dict[str, Any]:
        payload = entry.to_payload()
        payload["displayTitle"] = format_event_title(entry.item)
        payload["details"] = extract_event_details(entry.item)
        link = build_external_link(entry.item, self.services.get(entry.item.instance_id))
        if link:
            payload["externalLink"] = link
        return payload

    def to_payload(self) -> dict[str, Any]:
        days = []
        for day in self.days_in_view:
            days.append(
                {
                    "date": day.isoformat(),
                    "inMonth": day.month == self.window.month_start.month,
                    "isToday": day == self.today,
                    "isSelected": day == self.selected_date,
                    "events": [self._event_payload(entry) for entry in self.events_on(day)],
                }
            )
        return {
            "month": self.window.month_start.strftime("%Y-%m"),
            "monthLabel": format_month_label(self.window.month_start),
            "window": self.window.to_payload(),
            "filters": self.filters.model_dump(by_alias=True),
            "filtersActive": self.filters.is_active,
            "instanceOptions": [option.to_payload() for option in self.instance_options],
            "selectedDate": self.selected_date.isoformat(),
            "selectedEvents": [
                self._event_payload(entry) for entry in self.events_on(self.selected_date)
            ],
            "totalCount": len(self.events),
            "days": days,
        }


class CalendarViewState:
    """Single owner of the mutable calendar state.

    Filters are immutable values that get replaced through the setters.
    Derivation always runs over the latest delivered snapshot.
    """

    def __init__(
        self,
        *,
        today: Callable[[], date] = utc_today,
        current_month: date | None = None,
        filters: CalendarFilters | None = None,
    ) -> None:
        self._today = today
        anchor = current_month or today()
        self._current_month = anchor.replace(day=1)
        self._filters = filters or CalendarFilters()
        self._selected: date | None = None
        self._snapshot = CalendarResponse()
        self._loaded_query: CalendarQuery | None = None

    @property
    def current_month(self) -> date:
        return self._current_month

    @property
    def filters(self) -> CalendarFilters:
        return self._filters

    @property
    def snapshot(self) -> CalendarResponse:
        return self._snapshot

    @property
    def window(self) -> CalendarWindow:
        return calendar_window(self._current_month)

    @property
    def query(self) -> CalendarQuery:
        window = self.window
        return CalendarQuery(
            start=window.calendar_start,
            end=window.calendar_end,
            unmonitored=self._filters.include_unmonitored,
        )

    @property
    def selected_date(self) -> date:
        window = self.window
        if self._selected is not None and window.contains(self._selected):
            return self._selected
        today = self._today()
        if window.contains(today):
            return today
        return window.calendar_start

    # Filters

    def _update_filters(self, **changes: Any) -> None:
        self._filters = CalendarFilters.model_validate(
            {**self._filters.model_dump(), **changes}
        )

    def set_search_term(self, term: str) -> None:
        self._update_filters(search_term=term)

    def set_service_filter(self, service: ServiceFilterValue | str) -> None:
        self._update_filters(service_filter=service)

    def set_instance_filter(self, instance_id: str) -> None:
        self._update_filters(instance_filter=instance_id)

    def set_include_unmonitored(self, include: bool) -> None:
        self._update_filters(include_unmonitored=include)

    def reset_filters(self) -> None:
        self._filters = CalendarFilters()

    # Navigation

    def select_date(self, day: date) -> None:
        self._selected = day

    def set_month(self, anchor: date) -> None:
        self._current_month = anchor.replace(day=1)
        self._selected = None

    def previous_month(self) -> None:
        self.set_month(shift_month(self._current_month, -1))

    def next_month(self) -> None:
        self.set_month(shift_month(self._current_month, 1))

    def go_today(self) -> None:
        self.set_month(self._today())

    # Data

    @property
    def needs_fetch(self) -> bool:
        return self._loaded_query != self.query

    def receive(self, snapshot: CalendarResponse, query: CalendarQuery | None = None) -> None:
        """Store the latest delivered snapshot."""

        self._snapshot = snapshot
        self._loaded_query = query

    async def load(
        self,
        fetch: CalendarFetcher,
        *,
        services: Mapping[str, ServiceInstanceSummary] | None = None,
    ) -> CalendarView:
        """Fetch when the query window changed, then derive a fresh view."""

        if self.needs_fetch:
            query = self.query
            logger.debug("Fetching calendar for %s..%s", query.start, query.end)
            self.receive(await fetch(query), query)
        return self.derive(services=services)

    def derive(
        self, *, services: Mapping[str, ServiceInstanceSummary] | None = None
    ) -> CalendarView:
        events, events_by_date = derive_events(self._snapshot.aggregated, self._filters)
        return CalendarView(
            window=self.window,
            filters=self._filters,
            today=self._today(),
            selected_date=self.selected_date,
            events=events,
            events_by_date=events_by_date,
            instance_options=build_instance_options(self._snapshot.instances),
            services=dict(services or {}),
        )
