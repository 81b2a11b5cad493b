import pytest

from manga_aggregator.core.exceptions import UnknownSectionError
from manga_aggregator.frontpages import ComixFrontpage, FrontpageRegistry, get_frontpage_registry
from manga_aggregator.models import FrontpageFetchOptions

ITEM = {
    "manga_id": 123,
    "hash_id": "abc12",
    "title": "Solo Leveling",
    "slug": "solo-leveling",
    "poster": {"medium": "https://static.comix.to/m.jpg", "small": "https://static.comix.to/s.jpg"},
    "latest_chapter": 200,
    "chapter_updated_at": 1700000000,
    "rated_avg": 8.7,
    "follows_total": 1500,
    "type": "manhwa",
    "status": "finished",
    "synopsis": "Hunters.",
}


class RecordingFetch:
    def __init__(self, payload=None):
        self.payload = payload if payload is not None else {"result": {"items": [ITEM]}}
        self.urls: list[str] = []

    async def __call__(self, url: str):
        self.urls.append(url)
        return self.payload


def test_sections_and_info():
    frontpage = ComixFrontpage()
    ids = [s.id for s in frontpage.get_available_sections()]
    assert ids == ["trending", "most_followed", "latest_hot", "latest_new", "recently_added", "completed"]

    info = frontpage.get_info().to_dict()
    assert info["sourceId"] == "comix"
    assert info["sourceName"] == "Comix"
    trending = info["availableSections"][0]
    assert trending["supportsTimeFilter"] is True
    assert trending["availableTimeFilters"] == [1, 7, 30, 90, 180, 365]
    assert "availableTimeFilters" not in info["availableSections"][2]


async def test_trending_uses_days_and_defaults():
    fetch = RecordingFetch()
    frontpage = ComixFrontpage(fetch_json=fetch)

    await frontpage.fetch_section("trending", FrontpageFetchOptions(days=30))
    await frontpage.fetch_section("most_followed")

    assert fetch.urls[0].startswith("https://comix.to/api/v2/top?")
    assert "type=trending&days=30&limit=30" in fetch.urls[0]
    assert "type=follows&days=7&limit=30" in fetch.urls[1]
    for genre in (87264, 87266, 87268, 87265):
        assert f"exclude_genres[]={genre}" in fetch.urls[0]


async def test_paginated_sections_build_list_urls():
    fetch = RecordingFetch()
    frontpage = ComixFrontpage(fetch_json=fetch)
    options = FrontpageFetchOptions(page=3, limit=10)

    for section in ("latest_hot", "latest_new", "recently_added", "completed"):
        await frontpage.fetch_section(section, options)

    hot, new, added, completed = fetch.urls
    assert "scope=hot&limit=10&order[chapter_updated_at]=desc&page=3" in hot
    assert "scope=new" in new
    assert "order[created_at]=desc&limit=10&page=3" in added
    assert "statuses[]=finished" in completed
    assert all(u.startswith("https://comix.to/api/v2/manga?") for u in fetch.urls)


async def test_section_items_are_mapped():
    frontpage = ComixFrontpage(fetch_json=RecordingFetch())
    section = await frontpage.fetch_section("latest_hot")

    assert section.id == "latest_hot"
    assert section.supports_pagination is True
    manga = section.items[0]
    assert manga.id == "abc12"
    assert manga.url == "https://comix.to/title/abc12-solo-leveling"
    assert manga.cover_image == "https://static.comix.to/m.jpg"
    assert manga.latest_chapter == 200
    assert manga.last_updated_timestamp == 1700000000000
    assert manga.rating == 8.7
    assert manga.followers == "1500"
    assert manga.status == "finished"


async def test_missing_items_yield_empty_section():
    frontpage = ComixFrontpage(fetch_json=RecordingFetch({"result": {}}))
    section = await frontpage.fetch_section("completed")
    assert section.items == []


async def test_unknown_section():
    fetch = RecordingFetch()
    frontpage = ComixFrontpage(fetch_json=fetch)

    with pytest.raises(UnknownSectionError) as exc_info:
        await frontpage.fetch_section("nope")

    assert "trending" in exc_info.value.available
    assert fetch.urls == []


def test_default_mapping_fallbacks():
    manga = ComixFrontpage().map_to_frontpage_manga(
        {"id": "x1", "title": "X", "coverImage": "https://c/x.jpg", "latestChapter": 0, "followers": 5},
        "https://example.org",
    )
    assert manga.cover_image == "https://c/x.jpg"
    assert manga.followers == "5"


def test_non_string_title_is_coerced():
    frontpage = ComixFrontpage()
    manga = frontpage.map_to_frontpage_manga({**ITEM, "title": 1984}, "https://comix.to")
    assert manga.title == "1984"

    untitled = frontpage.map_to_frontpage_manga({"hash_id": "zz9"}, "https://comix.to")
    assert untitled.title == "zz9"


def test_registry_lookup_case_insensitive():
    registry = get_frontpage_registry()
    assert registry.get_frontpage("COMIX") is not None
    assert registry.get_frontpage("mangapark") is None
    assert registry.get_source_ids() == ["comix"]
    assert len(registry.get_all_frontpages()) == 1
    assert registry.get_all_frontpage_info()[0].source_id == "comix"


def test_empty_registry():
    registry = FrontpageRegistry([])
    assert registry.get_frontpage("comix") is None
    assert registry.get_all_frontpage_info() == []
