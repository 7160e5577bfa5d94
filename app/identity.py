"""Content identity resolution for calendar items.

Each content type resolves through its own priority chain: external
identifiers first, then a lower-cased composite of human readable fields.
The helpers below keep every fallback chain explicit so that resolution
order can be checked on its own.
"""

from __future__ import annotations

from .models import (
    AlbumItem,
    BookItem,
    CalendarItem,
    EpisodeItem,
    MovieItem,
)
from .utils import date_part, first_present


def movie_title(item: MovieItem) -> str:
    return first_present(item.movie_title, item.title) or ""


def series_title(item: EpisodeItem) -> str:
    return first_present(item.series_title, item.title) or ""


def album_title(item: AlbumItem) -> str:
    return first_present(item.album_title, item.title) or ""


def book_title(item: BookItem) -> str:
    return first_present(item.book_title, item.title) or ""


def air_date(item: CalendarItem) -> str | None:
    """Local air date, then UTC air date."""

    return first_present(item.air_date, item.air_date_utc)


def album_date(item: AlbumItem) -> str | None:
    """Release date, then the air date chain."""

    return first_present(item.release_date, air_date(item))


def calendar_date(item: CalendarItem) -> str | None:
    """Timestamp used to place an item on the calendar grid."""

    return first_present(item.release_date, item.air_date_utc, item.air_date)


def season_episode_code(item: EpisodeItem) -> str:
    season = item.season_number or 0
    episode = item.episode_number or 0
    return f"S{season:02d}E{episode:02d}"


def _movie_key(item: MovieItem) -> str:
    if item.tmdb_id:
        return f"movie:tmdb:{item.tmdb_id}"
    if item.imdb_id:
        return f"movie:imdb:{item.imdb_id}"
    return f"movie:title:{movie_title(item).lower()}:{date_part(air_date(item))}"


def _episode_key(item: EpisodeItem) -> str:
    code = season_episode_code(item)
    if item.tmdb_id:
        return f"episode:tmdb:{item.tmdb_id}:{code}"
    if item.imdb_id:
        return f"episode:imdb:{item.imdb_id}:{code}"
    return f"episode:title:{series_title(item).lower()}:{code}"


def _album_key(item: AlbumItem) -> str:
    if item.music_brainz_id:
        return f"album:mbid:{item.music_brainz_id}"
    artist = (item.artist_name or "").lower()
    return (
        f"album:title:{artist}:{album_title(item).lower()}"
        f":{date_part(album_date(item))}"
    )


def _book_key(item: BookItem) -> str:
    if item.goodreads_id:
        return f"book:goodreads:{item.goodreads_id}"
    author = (item.author_name or "").lower()
    return (
        f"book:title:{author}:{book_title(item).lower()}"
        f":{date_part(air_date(item))}"
    )


def content_key(item: CalendarItem) -> str:
    """Return the deduplication identity for ``item``.

    Items of unrecognised types get a key scoped to their reporting
    instance so they never merge with anything else.
    """

    if isinstance(item, MovieItem):
        return _movie_key(item)
    if isinstance(item, EpisodeItem):
        return _episode_key(item)
    if isinstance(item, AlbumItem):
        return _album_key(item)
    if isinstance(item, BookItem):
        return _book_key(item)
    return f"unknown:{item.id}:{item.instance_id}"
