"""Display helpers for calendar events."""

from __future__ import annotations

import re
from typing import Any

from .identity import album_title, book_title, calendar_date, movie_title, series_title
from .models import (
    AlbumItem,
    BookItem,
    CalendarItem,
    EpisodeItem,
    MovieItem,
    ServiceInstanceSummary,
)

_SEPARATORS_RE = re.compile(r"[_-]+")
_WHITESPACE_RE = re.compile(r"\s+")
_WORD_START_RE = re.compile(r"\b\w")


def format_episode_code(
    season_number: int | None, episode_number: int | None
) -> str | None:
    season = f"S{season_number:02d}" if isinstance(season_number, int) else ""
    episode = f"E{episode_number:02d}" if isinstance(episode_number, int) else ""
    return f"{season}{episode}" or None


def format_monitoring_label(monitored: bool | None) -> str | None:
    if monitored is None:
        return None
    return "Monitored" if monitored else "Not monitored"


def format_library_label(has_file: bool | None) -> str | None:
    if has_file is None:
        return None
    return "In library" if has_file else "Pending download"


def join_genres(genres: list[str] | None, *, limit: int = 4) -> str | None:
    if not genres:
        return None
    cleaned = [genre.strip() for genre in genres if isinstance(genre, str) and genre.strip()]
    if not cleaned:
        return None
    return ", ".join(cleaned[:limit])


def humanize_label(value: str) -> str:
    """Turn ``snake_case``/``kebab-case`` into Title Case."""

    text = _SEPARATORS_RE.sub(" ", value)
    text = _WHITESPACE_RE.sub(" ", text).strip()
    return _WORD_START_RE.sub(lambda match: match.group(0).upper(), text)


def normalize_base_url(value: str) -> str:
    return value.rstrip("/")


def build_external_link(
    item: CalendarItem, instance: ServiceInstanceSummary | None
) -> str | None:
    """Link to the item inside the instance's own web UI, when known."""

    if instance is None or not instance.base_url:
        return None
    base_url = normalize_base_url(instance.base_url)

    if isinstance(item, EpisodeItem) and (item.series_slug or item.series_id):
        return f"{base_url}/series/{item.series_slug or item.series_id}"
    if isinstance(item, MovieItem) and (item.movie_slug or item.movie_id):
        return f"{base_url}/movie/{item.movie_slug or item.movie_id}"
    if isinstance(item, AlbumItem) and item.music_brainz_id:
        return f"{base_url}/album/{item.music_brainz_id}"
    return None


def format_event_title(item: CalendarItem) -> str:
    if isinstance(item, EpisodeItem):
        series = item.series_title or "Unknown Series"
        if item.episode_title:
            return f"{series} - {item.episode_title}"
        return series
    if isinstance(item, MovieItem):
        return movie_title(item) or "Untitled"
    if isinstance(item, AlbumItem):
        album = album_title(item) or "Untitled"
        return f"{item.artist_name} - {album}" if item.artist_name else album
    if isinstance(item, BookItem):
        book = book_title(item) or "Untitled"
        return f"{item.author_name} - {book}" if item.author_name else book
    return item.title or "Untitled"


def extract_event_details(item: CalendarItem) -> dict[str, Any]:
    """Collect the detail rows shown alongside an event."""

    details: dict[str, Any] = {
        "airDate": calendar_date(item),
        "runtime": item.runtime,
        "status": humanize_label(item.status) if item.status else None,
        "monitoring": format_monitoring_label(item.monitored),
        "library": format_library_label(item.has_file),
        "genres": join_genres(item.genres),
        "serviceType": item.service,
    }
    if isinstance(item, EpisodeItem):
        details["episodeCode"] = format_episode_code(
            item.season_number, item.episode_number
        )
        details["network"] = item.network
        details["seriesTitle"] = series_title(item) or None
        if not details["status"] and item.series_status:
            details["status"] = humanize_label(item.series_status)
    elif isinstance(item, MovieItem):
        details["network"] = item.studio
    if item.tmdb_id is not None:
        kind = "movie" if isinstance(item, MovieItem) else "tv"
        details["tmdbId"] = item.tmdb_id
        details["tmdbLink"] = f"https://www.themoviedb.org/{kind}/{item.tmdb_id}"
    if item.imdb_id:
        details["imdbId"] = item.imdb_id
        details["imdbLink"] = f"https://www.imdb.com/title/{item.imdb_id}"
    if item.music_brainz_id:
        details["musicBrainzLink"] = (
            f"https://musicbrainz.org/release-group/{item.music_brainz_id}"
        )
    return {key: value for key, value in details.items() if value is not None}
