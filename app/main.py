"""Entry point for the FastAPI-powered calendar service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from datetime import date
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .config import settings
from .database import Database
from .models import CalendarFilters
from .services.arr import ArrClient
from .services.calendar import CalendarService
from .services.instances import InstanceDirectory
from .utils import utc_today
from .view_state import CalendarQuery
from .window import parse_month, resolve_query_range

logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    arr_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            timeout=httpx.Timeout(settings.arr_request_timeout, connect=5.0),
        )
    )
    database = Database(settings.database_url)
    await database.create_all()

    directory = InstanceDirectory(database.session_factory)
    await directory.sync(settings.service_instances)

    calendar_service = CalendarService(
        settings, directory, ArrClient(settings, arr_http_client)
    )

    fastapi_app.state.calendar_service = calendar_service
    fastapi_app.state.database = database

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await database.dispose()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Unified release calendar across Sonarr, Radarr, Lidarr and Readarr",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_calendar_service(app: FastAPI) -> CalendarService:
    service = getattr(app.state, "calendar_service", None)
    if not isinstance(service, CalendarService):
        raise RuntimeError("Calendar service not initialised")
    return service


def _parse_optional_date(value: str | None, *, name: str) -> date | None:
    if value is None or not value.strip():
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=400, detail=f"{name} must be an ISO date (YYYY-MM-DD)"
        ) from exc


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/healthz")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.get("/api/instances")
    async def list_instances() -> dict[str, Any]:
        service = get_calendar_service(fastapi_app)
        instances = await service.list_instances()
        return {"instances": [instance.to_payload() for instance in instances]}

    @fastapi_app.get("/api/calendar/raw")
    async def raw_calendar(
        start: str | None = None,
        end: str | None = None,
        unmonitored: bool = False,
    ) -> JSONResponse:
        service = get_calendar_service(fastapi_app)
        start_date, end_date = resolve_query_range(start, end, today=utc_today())
        query = CalendarQuery(start=start_date, end=end_date, unmonitored=unmonitored)
        response = await service.fetch_calendar(query)
        return JSONResponse(response.to_payload())

    @fastapi_app.get("/api/calendar")
    async def calendar_view(
        month: str | None = None,
        selected: str | None = None,
        search: str = Query(default=""),
        service_filter: str = Query(default="all", alias="service"),
        instance_filter: str = Query(default="all", alias="instance"),
        unmonitored: bool = False,
    ) -> JSONResponse:
        service = get_calendar_service(fastapi_app)
        try:
            anchor = parse_month(month) if month else None
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        selected_date = _parse_optional_date(selected, name="selected")
        try:
            filters = CalendarFilters(
                search_term=search,
                service_filter=service_filter,
                instance_filter=instance_filter,
                include_unmonitored=unmonitored,
            )
        except ValidationError as exc:
            raise HTTPException(
                status_code=400, detail=exc.errors(include_url=False, include_context=False)
            ) from exc

        view = await service.build_view(
            month=anchor, selected=selected_date, filters=filters
        )
        return JSONResponse(view.to_payload())


app = create_app()


if __name__ == "__main__":  # pragma: no cover - manual execution
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )
