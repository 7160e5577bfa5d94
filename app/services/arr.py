"""Client and normalisers for the *arr calendar endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import httpx

from ..config import Settings
from ..models import (
    AlbumItem,
    BookItem,
    CalendarItem,
    EpisodeItem,
    MovieItem,
    ServiceInstanceSummary,
)
from ..utils import first_present, to_boolean, to_number, to_string_array, to_string_value

logger = logging.getLogger(__name__)

CALENDAR_PATHS: dict[str, str] = {
    "sonarr": "/api/v3/calendar",
    "radarr": "/api/v3/calendar",
    "lidarr": "/api/v1/calendar",
    "readarr": "/api/v1/calendar",
}

INCLUDE_PARAMS: dict[str, dict[str, str]] = {
    "sonarr": {"includeSeries": "true", "includeEpisodeFile": "true"},
    "radarr": {"includeUnmonitored": "true"},
    "lidarr": {"includeUnmonitored": "true", "includeArtist": "true"},
    "readarr": {"includeUnmonitored": "true", "includeAuthor": "true"},
}


class ArrClient:
    """Thin wrapper around the calendar API of Sonarr, Radarr, Lidarr and Readarr."""

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient):
        self._settings = settings
        self._client = http_client
        self._max_retries = settings.arr_max_retries

    @staticmethod
    def _headers(instance: ServiceInstanceSummary) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if instance.api_key:
            headers["X-Api-Key"] = instance.api_key
        return headers

    async def fetch_calendar(
        self,
        instance: ServiceInstanceSummary,
        *,
        start: date,
        end: date,
        unmonitored: bool = False,
    ) -> list[CalendarItem]:
        """Return the normalised calendar records reported by ``instance``.

        Transport errors and 5xx responses are retried with a short backoff;
        the final failure is raised to the caller.
        """

        url = f"{instance.base_url.rstrip('/')}{CALENDAR_PATHS[instance.service]}"
        params = {
            "start": start.isoformat(),
            "end": end.isoformat(),
            "unmonitored": "true" if unmonitored else "false",
            **INCLUDE_PARAMS[instance.service],
        }

        attempt = 0
        while True:
            try:
                response = await self._client.get(
                    url, headers=self._headers(instance), params=params
                )
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = min(2 ** (attempt - 1), 5) * 0.5
                    logger.info(
                        "Transient error talking to %s (%s). Retrying in %.1fs",
                        instance.label,
                        exc.__class__.__name__,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                raise
            if 500 <= response.status_code < 600 and attempt < self._max_retries:
                attempt += 1
                backoff = min(2 ** (attempt - 1), 5) * 0.5
                logger.info(
                    "%s returned %s for calendar. Retrying in %.1fs",
                    instance.label,
                    response.status_code,
                    backoff,
                )
                await asyncio.sleep(backoff)
                continue
            break

        response.raise_for_status()
        payload = response.json()
        if isinstance(payload, list):
            records = payload
        elif isinstance(payload, dict) and isinstance(payload.get("records"), list):
            records = payload["records"]
        else:
            logger.warning(
                "%s returned an unexpected calendar payload (%s)",
                instance.label,
                type(payload).__name__,
            )
            records = []
        items: list[CalendarItem] = []
        for raw in records:
            if not isinstance(raw, dict):
                continue
            items.append(normalize_calendar_item(raw, instance.service))
        return items


def _fallback_id(raw: dict[str, Any]) -> str | int:
    value = first_present(
        raw.get("id"),
        raw.get("eventId"),
        raw.get("episodeId"),
        raw.get("movieId"),
        raw.get("sourceId"),
    )
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return value
    return ""


def _nested(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    return value if isinstance(value, dict) else {}


def _common_fields(raw: dict[str, Any], parent: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": _fallback_id(raw),
        "overview": to_string_value(first_present(raw.get("overview"), parent.get("overview"))),
        "genres": to_string_array(raw.get("genres")) or to_string_array(parent.get("genres")),
        "monitored": to_boolean(raw.get("monitored")),
        "has_file": to_boolean(raw.get("hasFile")),
        "status": to_string_value(first_present(raw.get("status"), parent.get("status"))),
        "runtime": to_number(first_present(raw.get("runtime"), parent.get("runtime"))),
    }


def _normalize_episode(raw: dict[str, Any]) -> EpisodeItem:
    series = _nested(raw, "series")
    series_title = to_string_value(series.get("title")) or to_string_value(raw.get("seriesTitle"))
    episode_number = to_number(raw.get("episodeNumber"))
    episode_title = to_string_value(raw.get("title"))
    if episode_title is None and episode_number is not None:
        episode_title = f"Episode {episode_number}"
    return EpisodeItem(
        **_common_fields(raw, series),
        service="sonarr",
        title=episode_title or series_title or "Untitled",
        series_title=series_title,
        episode_title=episode_title,
        series_id=to_number(first_present(raw.get("seriesId"), series.get("id"))),
        series_slug=to_string_value(first_present(series.get("titleSlug"), raw.get("titleSlug"))),
        episode_id=to_number(first_present(raw.get("episodeId"), raw.get("id"))),
        season_number=to_number(raw.get("seasonNumber")),
        episode_number=episode_number,
        tmdb_id=to_number(first_present(raw.get("tmdbId"), series.get("tmdbId"))),
        imdb_id=to_string_value(first_present(raw.get("imdbId"), series.get("imdbId"))),
        network=to_string_value(first_present(series.get("network"), raw.get("network"))),
        series_status=to_string_value(series.get("status")),
        air_date=to_string_value(raw.get("airDate")),
        air_date_utc=to_string_value(raw.get("airDateUtc")),
    )


def _normalize_movie(raw: dict[str, Any]) -> MovieItem:
    movie = _nested(raw, "movie")
    primary = first_present(
        to_string_value(raw.get("inCinemas")),
        to_string_value(raw.get("digitalRelease")),
        to_string_value(raw.get("physicalRelease")),
        to_string_value(raw.get("releaseDate")),
    )
    movie_title = to_string_value(raw.get("title")) or to_string_value(raw.get("originalTitle"))
    return MovieItem(
        **_common_fields(raw, movie),
        service="radarr",
        title=movie_title or "Untitled",
        movie_title=movie_title,
        movie_id=to_number(first_present(raw.get("movieId"), raw.get("id"))),
        movie_slug=to_string_value(first_present(movie.get("titleSlug"), raw.get("titleSlug"))),
        tmdb_id=to_number(first_present(raw.get("tmdbId"), movie.get("tmdbId"))),
        imdb_id=to_string_value(first_present(raw.get("imdbId"), movie.get("imdbId"))),
        studio=to_string_value(raw.get("studio")),
        air_date=primary,
        air_date_utc=primary,
    )


def _normalize_album(raw: dict[str, Any]) -> AlbumItem:
    artist = _nested(raw, "artist")
    album_title = to_string_value(raw.get("title"))
    release = to_string_value(raw.get("releaseDate"))
    return AlbumItem(
        **_common_fields(raw, artist),
        service="lidarr",
        title=album_title or "Untitled",
        artist_name=to_string_value(
            first_present(artist.get("artistName"), raw.get("artistName"))
        ),
        album_title=album_title,
        album_type=to_string_value(raw.get("albumType")),
        music_brainz_id=to_string_value(raw.get("foreignAlbumId")),
        release_date=release,
        air_date=release,
        air_date_utc=release,
    )


def _normalize_book(raw: dict[str, Any]) -> BookItem:
    author = _nested(raw, "author")
    book_title = to_string_value(raw.get("title"))
    release = to_string_value(raw.get("releaseDate"))
    return BookItem(
        **_common_fields(raw, author),
        service="readarr",
        title=book_title or "Untitled",
        author_name=to_string_value(
            first_present(author.get("authorName"), raw.get("authorName"))
        ),
        book_title=book_title,
        goodreads_id=to_string_value(raw.get("foreignBookId")),
        release_date=release,
        air_date=release,
        air_date_utc=release,
    )


_NORMALISERS = {
    "sonarr": _normalize_episode,
    "radarr": _normalize_movie,
    "lidarr": _normalize_album,
    "readarr": _normalize_book,
}


def normalize_calendar_item(raw: dict[str, Any], service: str) -> CalendarItem:
    """Map one upstream calendar record onto the matching item variant."""

    try:
        normaliser = _NORMALISERS[service]
    except KeyError as exc:
        raise ValueError(f"Unsupported service: {service}") from exc
    return normaliser(raw)
