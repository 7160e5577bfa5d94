"""Pydantic models describing calendar payloads."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Discriminator,
    Field,
    Tag,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_camel

ServiceType = Literal["sonarr", "radarr", "lidarr", "readarr"]
ContentType = Literal["episode", "movie", "album", "book"]
ServiceFilterValue = Literal["all", "sonarr", "radarr", "lidarr", "readarr"]

SERVICE_TYPES: tuple[str, ...] = ("sonarr", "radarr", "lidarr", "readarr")
CONTENT_TYPES: tuple[str, ...] = ("episode", "movie", "album", "book")
ALL = "all"


class CamelModel(BaseModel):
    """Base model accepting both snake_case and camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class CalendarItem(CamelModel):
    """One upcoming release as reported by a single service instance.

    ``id`` is only unique within the reporting ``(instance_id, service)``
    pair. External identifiers are optional; which ones carry meaning
    depends on the content type.
    """

    id: str | int
    type: str
    service: str
    title: str | None = None
    overview: str | None = None
    tmdb_id: int | None = None
    imdb_id: str | None = None
    music_brainz_id: str | None = None
    goodreads_id: str | None = None
    air_date: str | None = None
    air_date_utc: str | None = None
    release_date: str | None = None
    monitored: bool | None = None
    has_file: bool | None = None
    status: str | None = None
    runtime: int | None = None
    genres: list[str] | None = None
    instance_id: str = ""
    instance_name: str = ""

    @field_validator("imdb_id", "music_brainz_id", "goodreads_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str) and not value.strip():
            return None
        return value


class EpisodeItem(CalendarItem):
    type: Literal["episode"] = "episode"
    series_title: str | None = None
    episode_title: str | None = None
    series_id: int | None = None
    series_slug: str | None = None
    episode_id: int | None = None
    season_number: int | None = None
    episode_number: int | None = None
    network: str | None = None
    series_status: str | None = None


class MovieItem(CalendarItem):
    type: Literal["movie"] = "movie"
    movie_title: str | None = None
    movie_id: int | None = None
    movie_slug: str | None = None
    studio: str | None = None


class AlbumItem(CalendarItem):
    type: Literal["album"] = "album"
    artist_name: str | None = None
    album_title: str | None = None
    album_type: str | None = None


class BookItem(CalendarItem):
    type: Literal["book"] = "book"
    author_name: str | None = None
    book_title: str | None = None


class OtherCalendarItem(CalendarItem):
    """Fallback for content types this service does not understand."""


def _item_tag(value: Any) -> str:
    if isinstance(value, dict):
        raw = value.get("type")
    else:
        raw = getattr(value, "type", None)
    return raw if raw in CONTENT_TYPES else "other"


AnyCalendarItem = Annotated[
    Union[
        Annotated[EpisodeItem, Tag("episode")],
        Annotated[MovieItem, Tag("movie")],
        Annotated[AlbumItem, Tag("album")],
        Annotated[BookItem, Tag("book")],
        Annotated[OtherCalendarItem, Tag("other")],
    ],
    Discriminator(_item_tag),
]

_ITEM_ADAPTER: TypeAdapter[CalendarItem] = TypeAdapter(AnyCalendarItem)


def parse_calendar_item(data: Any) -> CalendarItem:
    """Validate a mapping into the calendar item variant named by ``type``."""

    return _ITEM_ADAPTER.validate_python(data)


class InstanceRef(CamelModel):
    instance_id: str
    instance_name: str


class DeduplicatedCalendarItem(BaseModel):
    """A real-world release merged across every instance reporting it.

    Base fields come from the first contributing record; ``all_instances``
    lists every contribution in input order.
    """

    item: CalendarItem
    content_key: str
    all_instances: list[InstanceRef] = Field(default_factory=list)

    @property
    def instance_ids(self) -> list[str]:
        return [ref.instance_id for ref in self.all_instances]

    def to_payload(self) -> dict[str, Any]:
        payload = self.item.to_payload()
        payload["allInstances"] = [ref.to_payload() for ref in self.all_instances]
        return payload


class CalendarFilters(CamelModel):
    """Immutable filter selection applied to the aggregated feed."""

    model_config = ConfigDict(frozen=True)

    search_term: str = ""
    service_filter: ServiceFilterValue = ALL
    instance_filter: str = ALL
    include_unmonitored: bool = False

    @field_validator("search_term", mode="before")
    @classmethod
    def _none_as_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("service_filter", mode="before")
    @classmethod
    def _normalise_service(cls, value: object) -> object:
        if value is None:
            return ALL
        if isinstance(value, str):
            return value.strip().lower() or ALL
        return value

    @field_validator("instance_filter", mode="before")
    @classmethod
    def _blank_instance_as_all(cls, value: object) -> object:
        # Instance ids match exactly, so case is preserved.
        if value is None:
            return ALL
        if isinstance(value, str):
            return value.strip() or ALL
        return value

    @property
    def normalized_search(self) -> str:
        return self.search_term.strip().lower()

    @property
    def is_active(self) -> bool:
        return (
            self.service_filter != ALL
            or self.instance_filter != ALL
            or bool(self.normalized_search)
            or self.include_unmonitored
        )


class InstanceCalendar(CamelModel):
    instance_id: str
    instance_name: str
    service: ServiceType
    data: list[AnyCalendarItem] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "instanceId": self.instance_id,
            "instanceName": self.instance_name,
            "service": self.service,
            "data": [item.to_payload() for item in self.data],
        }


class CalendarResponse(CamelModel):
    """Snapshot delivered by the raw data source for one query window."""

    aggregated: list[AnyCalendarItem] = Field(default_factory=list)
    instances: list[InstanceCalendar] = Field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.aggregated)

    def to_payload(self) -> dict[str, Any]:
        return {
            "instances": [instance.to_payload() for instance in self.instances],
            "aggregated": [item.to_payload() for item in self.aggregated],
            "totalCount": self.total_count,
        }


class ServiceInstanceSummary(CamelModel):
    """Configured service instance as exposed to the calendar."""

    id: str
    label: str
    service: ServiceType
    base_url: str
    enabled: bool = True
    api_key: str | None = Field(default=None, exclude=True, repr=False)


class InstanceOption(CamelModel):
    value: str
    label: str
