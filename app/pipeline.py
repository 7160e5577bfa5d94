"""Filtering, deduplication and date bucketing for aggregated calendars.

Every function here is a pure transform over in-memory sequences and
builds fresh output structures on each call.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from .identity import calendar_date, content_key
from .models import (
    ALL,
    CalendarFilters,
    CalendarItem,
    DeduplicatedCalendarItem,
    InstanceCalendar,
    InstanceOption,
    InstanceRef,
)
from .utils import date_part, parse_timestamp

SEARCH_FIELDS: tuple[str, ...] = (
    "title",
    "series_title",
    "episode_title",
    "movie_title",
    "artist_name",
    "album_title",
    "author_name",
    "book_title",
    "overview",
)

DateBucketMap = dict[str, list[DeduplicatedCalendarItem]]


def matches_service(item: CalendarItem, filters: CalendarFilters) -> bool:
    return filters.service_filter == ALL or item.service == filters.service_filter


def matches_instance(item: CalendarItem, filters: CalendarFilters) -> bool:
    return filters.instance_filter == ALL or item.instance_id == filters.instance_filter


def matches_search(item: CalendarItem, filters: CalendarFilters) -> bool:
    term = filters.normalized_search
    if not term:
        return True
    for field_name in SEARCH_FIELDS:
        value = getattr(item, field_name, None)
        if value and term in value.lower():
            return True
    return False


def filter_items(
    items: Iterable[CalendarItem], filters: CalendarFilters
) -> list[CalendarItem]:
    """Keep the raw items passing the service, instance and search stages.

    ``include_unmonitored`` is a query parameter for the data source and
    is deliberately not applied here.
    """

    return [
        item
        for item in items
        if matches_service(item, filters)
        and matches_instance(item, filters)
        and matches_search(item, filters)
    ]


def deduplicate(items: Iterable[CalendarItem]) -> list[DeduplicatedCalendarItem]:
    """Merge items sharing a content key, keeping first-seen order."""

    merged: dict[str, DeduplicatedCalendarItem] = {}
    for item in items:
        key = content_key(item)
        ref = InstanceRef(instance_id=item.instance_id, instance_name=item.instance_name)
        existing = merged.get(key)
        if existing is None:
            merged[key] = DeduplicatedCalendarItem(
                item=item.model_copy(), content_key=key, all_instances=[ref]
            )
        else:
            existing.all_instances.append(ref)
    return list(merged.values())


def _sort_key(entry: DeduplicatedCalendarItem) -> tuple[datetime, str]:
    return parse_timestamp(calendar_date(entry.item)), entry.item.title or ""


def bucket_by_date(items: Iterable[DeduplicatedCalendarItem]) -> DateBucketMap:
    """Group items by their UTC date key and order each bucket.

    Items without any usable date are left out of the map.
    """

    buckets: DateBucketMap = {}
    for entry in items:
        key = date_part(calendar_date(entry.item))
        if not key:
            continue
        buckets.setdefault(key, []).append(entry)
    for bucket in buckets.values():
        bucket.sort(key=_sort_key)
    return buckets


def derive_events(
    aggregated: Sequence[CalendarItem], filters: CalendarFilters
) -> tuple[list[DeduplicatedCalendarItem], DateBucketMap]:
    """Run filter, merge and bucket stages over one delivered snapshot."""

    merged = deduplicate(filter_items(aggregated, filters))
    return merged, bucket_by_date(merged)


def build_instance_options(
    instances: Iterable[InstanceCalendar],
) -> list[InstanceOption]:
    labels: dict[str, str] = {}
    for instance in instances:
        labels[instance.instance_id] = instance.instance_name
    return [InstanceOption(value=value, label=label) for value, label in labels.items()]


def sort_aggregated(items: Iterable[CalendarItem]) -> list[CalendarItem]:
    """Order one instance's raw items by air timestamp, then title."""

    def _key(item: CalendarItem) -> tuple[datetime, str]:
        timestamp = item.air_date_utc if item.air_date_utc is not None else item.air_date
        return parse_timestamp(timestamp), item.title or ""

    return sorted(items, key=_key)
