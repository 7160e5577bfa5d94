from app.models import (
    AlbumItem,
    BookItem,
    CalendarFilters,
    CalendarResponse,
    DeduplicatedCalendarItem,
    EpisodeItem,
    InstanceRef,
    MovieItem,
    OtherCalendarItem,
    ServiceInstanceSummary,
    parse_calendar_item,
)


def test_parse_calendar_item_selects_variant_by_type():
    episode = parse_calendar_item(
        {
            "id": 11,
            "type": "episode",
            "service": "sonarr",
            "seriesTitle": "Andor",
            "seasonNumber": 2,
            "episodeNumber": 1,
            "airDateUtc": "2025-04-22T01:00:00Z",
            "instanceId": "sonarr-1",
            "instanceName": "Sonarr",
        }
    )
    book = parse_calendar_item(
        {"id": "b1", "type": "book", "service": "readarr", "goodreadsId": 4671}
    )

    assert isinstance(episode, EpisodeItem)
    assert episode.series_title == "Andor"
    assert episode.air_date_utc == "2025-04-22T01:00:00Z"
    assert episode.instance_id == "sonarr-1"
    assert isinstance(book, BookItem)
    assert book.goodreads_id == "4671"


def test_unknown_type_parses_as_other_item():
    item = parse_calendar_item({"id": 1, "type": "podcast", "service": "sonarr"})

    assert isinstance(item, OtherCalendarItem)
    assert item.type == "podcast"


def test_item_payload_uses_camel_case_and_drops_missing_fields():
    item = AlbumItem(
        id=3,
        service="lidarr",
        artist_name="Massive Attack",
        music_brainz_id="mbid",
        release_date="2025-05-01",
    )

    assert item.to_payload() == {
        "id": 3,
        "type": "album",
        "service": "lidarr",
        "musicBrainzId": "mbid",
        "releaseDate": "2025-05-01",
        "instanceId": "",
        "instanceName": "",
        "artistName": "Massive Attack",
    }


def test_blank_identifiers_are_treated_as_missing():
    item = MovieItem(id=1, service="radarr", imdb_id="  ")

    assert item.imdb_id is None


def test_deduplicated_payload_flattens_item_and_instances():
    entry = DeduplicatedCalendarItem(
        item=MovieItem(id=1, service="radarr", title="Alien", instance_id="a"),
        content_key="movie:title:alien:",
        all_instances=[
            InstanceRef(instance_id="a", instance_name="Radarr"),
            InstanceRef(instance_id="b", instance_name="Radarr 4K"),
        ],
    )

    payload = entry.to_payload()

    assert payload["title"] == "Alien"
    assert payload["type"] == "movie"
    assert payload["allInstances"] == [
        {"instanceId": "a", "instanceName": "Radarr"},
        {"instanceId": "b", "instanceName": "Radarr 4K"},
    ]
    assert isinstance(entry.item, MovieItem)


def test_filters_normalise_blank_and_case():
    filters = CalendarFilters.model_validate(
        {"searchTerm": None, "serviceFilter": " Sonarr ", "instanceFilter": ""}
    )

    assert filters.search_term == ""
    assert filters.service_filter == "sonarr"
    assert filters.instance_filter == "all"
    assert filters.is_active


def test_instance_filter_keeps_case_of_instance_id():
    filters = CalendarFilters(instance_filter=" Radarr-4K ")

    assert filters.instance_filter == "Radarr-4K"
    assert CalendarFilters(instance_filter="  ").instance_filter == "all"


def test_whitespace_search_does_not_activate_filters():
    assert not CalendarFilters(search_term="   ").is_active


def test_calendar_response_payload_reports_total_count():
    response = CalendarResponse.model_validate(
        {
            "aggregated": [
                {"id": 1, "type": "movie", "service": "radarr", "instanceId": "a"},
                {"id": 2, "type": "episode", "service": "sonarr", "instanceId": "b"},
            ],
            "instances": [],
        }
    )

    payload = response.to_payload()

    assert payload["totalCount"] == 2
    assert [item["type"] for item in payload["aggregated"]] == ["movie", "episode"]
    assert isinstance(response.aggregated[1], EpisodeItem)


def test_instance_summary_never_serialises_api_key():
    summary = ServiceInstanceSummary(
        id="radarr-1",
        label="Radarr",
        service="radarr",
        base_url="http://radarr:7878",
        api_key="secret",
    )

    payload = summary.to_payload()

    assert "apiKey" not in payload
    assert payload["baseUrl"] == "http://radarr:7878"
    assert summary.api_key == "secret"
