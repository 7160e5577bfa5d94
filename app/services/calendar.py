"""High level orchestration for multi-instance calendars."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Callable

import httpx

from ..config import Settings
from ..models import (
    CalendarFilters,
    CalendarItem,
    CalendarResponse,
    InstanceCalendar,
    ServiceInstanceSummary,
)
from ..pipeline import sort_aggregated
from ..utils import utc_today
from ..view_state import CalendarQuery, CalendarView, CalendarViewState
from .arr import ArrClient
from .instances import InstanceDirectory

logger = logging.getLogger(__name__)


class CalendarService:
    """Raw data source and per-request view coordinator for the calendar."""

    def __init__(
        self,
        settings: Settings,
        directory: InstanceDirectory,
        arr_client: ArrClient,
        *,
        today: Callable[[], date] = utc_today,
    ):
        self._settings = settings
        self._directory = directory
        self._arr = arr_client
        self._today = today
        self._semaphore = asyncio.Semaphore(settings.arr_max_concurrency)

    async def list_instances(self) -> list[ServiceInstanceSummary]:
        return await self._directory.list_instances()

    async def fetch_calendar(self, query: CalendarQuery) -> CalendarResponse:
        """Collect calendar records from every enabled instance.

        Each instance's records are ordered by air time, then concatenated in
        directory order so the first instance listed wins a merge. An instance
        that fails contributes an empty list instead of failing the whole
        response.
        """

        instances = await self._directory.list_instances(enabled_only=True)
        results = await asyncio.gather(
            *(self._fetch_instance(instance, query) for instance in instances)
        )
        aggregated: list[CalendarItem] = []
        for result in results:
            aggregated.extend(result.data)
        logger.debug(
            "Fetched %s calendar item(s) from %s instance(s)",
            len(aggregated),
            len(results),
        )
        return CalendarResponse(aggregated=aggregated, instances=results)

    async def _fetch_instance(
        self, instance: ServiceInstanceSummary, query: CalendarQuery
    ) -> InstanceCalendar:
        try:
            async with self._semaphore:
                items = await self._arr.fetch_calendar(
                    instance,
                    start=query.start,
                    end=query.end,
                    unmonitored=query.unmonitored,
                )
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning(
                "Calendar fetch failed for instance %s (%s): %s",
                instance.id,
                instance.label,
                exc,
            )
            items = []
        stamped = sort_aggregated(
            item.model_copy(
                update={"instance_id": instance.id, "instance_name": instance.label}
            )
            for item in items
        )
        return InstanceCalendar(
            instance_id=instance.id,
            instance_name=instance.label,
            service=instance.service,
            data=stamped,
        )

    async def build_view(
        self,
        *,
        month: date | None = None,
        selected: date | None = None,
        filters: CalendarFilters | None = None,
    ) -> CalendarView:
        """Fetch and derive the calendar view for one request."""

        state = CalendarViewState(today=self._today, current_month=month, filters=filters)
        if selected is not None:
            state.select_date(selected)
        instances = await self._directory.list_instances()
        services = {instance.id: instance for instance in instances}
        return await state.load(self.fetch_calendar, services=services)
