from __future__ import annotations

from datetime import date

from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.main import register_routes
from app.models import CalendarResponse, ServiceInstanceSummary
from app.services.calendar import CalendarService
from app.view_state import CalendarQuery

INSTANCES = [
    ServiceInstanceSummary(
        id="sonarr-main",
        label="Sonarr",
        service="sonarr",
        base_url="http://sonarr:8989",
        api_key="secret",
    ),
    ServiceInstanceSummary(
        id="sonarr-anime",
        label="Sonarr Anime",
        service="sonarr",
        base_url="http://anime:8989",
        api_key="secret",
    ),
]

SNAPSHOT = {
    "instances": [
        {"instanceId": "sonarr-main", "instanceName": "Sonarr", "service": "sonarr", "data": []},
        {"instanceId": "sonarr-anime", "instanceName": "Sonarr Anime", "service": "sonarr", "data": []},
    ],
    "aggregated": [
        {
            "id": 1,
            "type": "episode",
            "service": "sonarr",
            "title": "Ghost of Tsushima",
            "seriesTitle": "Blue Eye Samurai",
            "seriesSlug": "blue-eye-samurai",
            "tmdbId": 117465,
            "seasonNumber": 2,
            "episodeNumber": 1,
            "airDateUtc": "2025-03-14T08:00:00Z",
            "instanceId": "sonarr-main",
            "instanceName": "Sonarr",
        },
        {
            "id": 44,
            "type": "episode",
            "service": "sonarr",
            "title": "Ghost of Tsushima",
            "seriesTitle": "Blue Eye Samurai",
            "tmdbId": 117465,
            "seasonNumber": 2,
            "episodeNumber": 1,
            "airDateUtc": "2025-03-14T08:00:00Z",
            "instanceId": "sonarr-anime",
            "instanceName": "Sonarr Anime",
        },
        {
            "id": 2,
            "type": "episode",
            "service": "sonarr",
            "title": "Pilot",
            "seriesTitle": "The Pitt",
            "airDateUtc": "2025-03-20T02:00:00Z",
            "instanceId": "sonarr-anime",
            "instanceName": "Sonarr Anime",
        },
    ],
}


class StubDirectory:
    async def list_instances(self, *, enabled_only: bool = False) -> list[ServiceInstanceSummary]:
        return list(INSTANCES)


class DummyCalendarService(CalendarService):
    """CalendarService serving a fixed snapshot."""

    def __init__(self) -> None:  # pragma: no cover - nothing to initialise
        # Skip super().__init__ so no upstream instance is contacted.
        self._directory = StubDirectory()  # type: ignore[assignment]
        self._today = lambda: date(2025, 3, 12)
        self.queries: list[CalendarQuery] = []

    async def fetch_calendar(self, query: CalendarQuery) -> CalendarResponse:  # type: ignore[override]
        self.queries.append(query)
        return CalendarResponse.model_validate(SNAPSHOT)


def _client() -> tuple[TestClient, DummyCalendarService]:
    app = FastAPI()
    register_routes(app)
    service = DummyCalendarService()
    app.state.calendar_service = service
    return TestClient(app), service


def test_healthcheck() -> None:
    client, _ = _client()
    with client:
        response = client.get("/healthz")

    assert response.json() == {"status": "ok"}


def test_instances_hide_api_keys() -> None:
    client, _ = _client()
    with client:
        response = client.get("/api/instances")

    assert response.status_code == 200
    instances = response.json()["instances"]
    assert [instance["id"] for instance in instances] == ["sonarr-main", "sonarr-anime"]
    assert all("apiKey" not in instance for instance in instances)


def test_raw_calendar_defaults_end_to_month_end() -> None:
    client, service = _client()
    with client:
        response = client.get(
            "/api/calendar/raw", params={"start": "2025-02-10", "unmonitored": "true"}
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["totalCount"] == 3
    assert len(payload["instances"]) == 2
    assert service.queries == [
        CalendarQuery(start=date(2025, 2, 10), end=date(2025, 2, 28), unmonitored=True)
    ]


def test_calendar_view_merges_and_buckets_events() -> None:
    """Duplicate episodes across instances collapse into one event."""

    client, service = _client()
    with client:
        response = client.get(
            "/api/calendar", params={"month": "2025-03", "selected": "2025-03-14"}
        )

    assert response.status_code == 200
    payload = response.json()
    assert payload["month"] == "2025-03"
    assert payload["monthLabel"] == "March 2025"
    assert payload["totalCount"] == 2
    assert payload["filtersActive"] is False
    assert len(payload["days"]) == 42
    assert service.queries[0].start == date(2025, 2, 23)

    [event] = payload["selectedEvents"]
    assert event["displayTitle"] == "Blue Eye Samurai - Ghost of Tsushima"
    assert [ref["instanceId"] for ref in event["allInstances"]] == [
        "sonarr-main",
        "sonarr-anime",
    ]
    assert event["details"]["episodeCode"] == "S02E01"
    assert event["externalLink"] == "http://sonarr:8989/series/blue-eye-samurai"

    today = next(day for day in payload["days"] if day["isToday"])
    assert today["date"] == "2025-03-12"


def test_calendar_view_applies_filters() -> None:
    client, _ = _client()
    with client:
        response = client.get(
            "/api/calendar",
            params={"month": "2025-03", "search": "PITT", "instance": "sonarr-anime"},
        )

    payload = response.json()
    assert payload["filtersActive"] is True
    assert payload["totalCount"] == 1
    assert payload["filters"]["instanceFilter"] == "sonarr-anime"
    assert payload["selectedDate"] == "2025-03-12"
    assert payload["selectedEvents"] == []


def test_calendar_view_rejects_invalid_input() -> None:
    client, _ = _client()
    with client:
        bad_month = client.get("/api/calendar", params={"month": "March"})
        bad_service = client.get("/api/calendar", params={"service": "plex"})
        bad_selected = client.get("/api/calendar", params={"selected": "tomorrow"})

    assert bad_month.status_code == 400
    assert bad_service.status_code == 400
    assert bad_selected.status_code == 400
