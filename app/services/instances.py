"""Directory of configured service instances."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import InstanceSeed
from ..db_models import ServiceInstance
from ..models import ServiceInstanceSummary

logger = logging.getLogger(__name__)


class InstanceDirectory:
    """Read access to stored service instances, plus config seeding."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def list_instances(
        self, *, enabled_only: bool = False
    ) -> list[ServiceInstanceSummary]:
        statement = select(ServiceInstance).order_by(ServiceInstance.label, ServiceInstance.id)
        if enabled_only:
            statement = statement.where(ServiceInstance.enabled.is_(True))
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [self._to_summary(row) for row in result.scalars()]

    async def get_instance(self, instance_id: str) -> ServiceInstanceSummary | None:
        async with self._session_factory() as session:
            record = await session.get(ServiceInstance, instance_id)
            if record is None:
                return None
            return self._to_summary(record)

    async def sync(self, seeds: Iterable[InstanceSeed]) -> int:
        """Insert or update instances declared in configuration."""

        count = 0
        async with self._session_factory() as session:
            for seed in seeds:
                record = await session.get(ServiceInstance, seed.id)
                if record is None:
                    record = ServiceInstance(id=seed.id)
                    session.add(record)
                record.label = seed.label
                record.service = seed.service
                record.base_url = seed.base_url
                record.api_key = seed.api_key
                record.enabled = seed.enabled
                count += 1
            await session.commit()
        if count:
            logger.info("Synchronised %s service instance(s) from configuration", count)
        return count

    @staticmethod
    def _to_summary(record: ServiceInstance) -> ServiceInstanceSummary:
        return ServiceInstanceSummary(
            id=record.id,
            label=record.label,
            service=record.service,  # type: ignore[arg-type]
            base_url=record.base_url,
            enabled=bool(record.enabled),
            api_key=record.api_key,
        )
