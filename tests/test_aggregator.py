import asyncio
import time

import pytest
import structlog

from manga_aggregator.core.exceptions import FetchError, UnsupportedSourceError
from manga_aggregator.models import SearchSummary, SourceSearchResult
from manga_aggregator.scrapers import ScraperRegistry
from manga_aggregator.services import SearchAggregator
from tests.helpers import FakeScraper


@pytest.fixture
def sources():
    return {
        "fast": FakeScraper("Fast"),
        "broken": FakeScraper("Broken", error=FetchError("upstream down")),
        "slow": FakeScraper("Slow", delay=5),
    }


@pytest.fixture
def aggregator(sources):
    return SearchAggregator(ScraperRegistry(sources.values()), source_timeout=0.2)


async def test_search_all_isolates_failures_and_timeouts(aggregator):
    started = time.perf_counter()
    records = await aggregator.search_all("solo")
    elapsed = time.perf_counter() - started

    by_source = {r.source: r for r in records}
    assert set(by_source) == {"Fast", "Broken", "Slow"}

    assert by_source["Fast"].error is None
    assert by_source["Fast"].results[0].title == "Fast title"
    assert by_source["Broken"].error == "upstream down"
    assert by_source["Broken"].results == []
    assert by_source["Slow"].error == "Search timed out after 0.2s"

    # Bounded by the per-source timeout, not the slow source
    assert elapsed < 1.0


async def test_search_all_passes_stripped_query(sources, aggregator):
    seen = []

    async def recording_search(query):
        seen.append(query)
        return []

    sources["fast"].search = recording_search
    await aggregator.search_all("  solo leveling  ")
    assert seen == ["solo leveling"]


async def test_search_all_binds_query_to_source_logs(sources, aggregator):
    bound = []

    async def recording_search(query):
        bound.append(structlog.contextvars.get_contextvars().get("query"))
        return []

    sources["fast"].search = recording_search
    await aggregator.search_all("solo")

    assert bound == ["solo"]
    assert "query" not in structlog.contextvars.get_contextvars()


async def test_blank_query_rejected(aggregator):
    with pytest.raises(ValueError):
        await aggregator.search_all("   ")
    with pytest.raises(ValueError):
        await aggregator.search_source("fast", "")


async def test_search_source_by_name(aggregator):
    results = await aggregator.search_source("FAST", "solo")
    assert [r.title for r in results] == ["Fast title"]


async def test_search_source_propagates_adapter_error(aggregator):
    with pytest.raises(FetchError, match="upstream down"):
        await aggregator.search_source("broken", "solo")


async def test_search_source_unknown_lists_available(aggregator):
    with pytest.raises(UnsupportedSourceError) as exc_info:
        await aggregator.search_source("nope", "solo")

    assert exc_info.value.available == ["fast", "broken", "slow"]
    assert "fast, broken, slow" in str(exc_info.value)


async def test_stream_search_yields_records_then_summary(aggregator):
    items = [item async for item in aggregator.stream_search("solo")]

    records, summary = items[:-1], items[-1]
    assert all(isinstance(r, SourceSearchResult) for r in records)
    assert {r.source for r in records} == {"Fast", "Broken", "Slow"}
    # The slow source settles last
    assert records[-1].source == "Slow"

    assert isinstance(summary, SearchSummary)
    assert summary.done is True
    assert summary.total_sources == 3
    assert summary.completed_sources == 3
    assert summary.failed_sources == 2


async def test_stream_search_close_cancels_outstanding():
    slow = FakeScraper("Slow", delay=5)
    aggregator = SearchAggregator(ScraperRegistry([FakeScraper("Fast"), slow]), source_timeout=10)

    stream = aggregator.stream_search("solo")
    first = await stream.__anext__()
    assert first.source == "Fast"

    await stream.aclose()
    await asyncio.sleep(0.05)
    assert slow.cancelled


async def test_get_chapters_by_url_and_by_name(aggregator):
    scraper, chapters = await aggregator.get_chapters("https://fast.example/title/1")
    assert scraper.get_name() == "Fast"
    assert [c.number for c in chapters] == [1, 2]

    scraper, _ = await aggregator.get_chapters("https://elsewhere.example/title/1", source="broken")
    assert scraper.get_name() == "Broken"


async def test_get_chapters_unknown_url(aggregator):
    with pytest.raises(UnsupportedSourceError, match="No scraper found"):
        await aggregator.get_chapters("https://unknown.example/title/1")


async def test_unknown_source_name_falls_back_to_url(aggregator):
    scraper = aggregator.resolve("https://fast.example/title/1", source="nope")
    assert scraper.get_name() == "Fast"


async def test_get_manga_info(aggregator):
    scraper, info = await aggregator.get_manga_info("https://fast.example/title/1")
    assert scraper.get_name() == "Fast"
    assert info.title == "Fast title"
