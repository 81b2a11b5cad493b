"""Fan-out of one query over many sources, with per-source isolation."""
import asyncio
from collections.abc import AsyncIterator

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import UnsupportedSourceError
from manga_aggregator.core.logging import get_logger, search_context
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult, SearchSummary, SourceSearchResult
from manga_aggregator.scrapers import BaseScraper, ScraperRegistry, get_registry

logger = get_logger("aggregator")


def normalize_query(query: str | None) -> str:
    """Strip a search query; blank queries are rejected with ValueError."""
    query = (query or "").strip()
    if not query:
        raise ValueError("Search query is required")
    return query


class SearchAggregator:
    def __init__(
        self,
        registry: ScraperRegistry | None = None,
        source_timeout: float | None = None,
    ):
        self.registry = registry if registry is not None else get_registry()
        self.source_timeout = settings.search_source_timeout if source_timeout is None else source_timeout

    def resolve(self, url: str | None = None, source: str | None = None) -> BaseScraper:
        """Adapter by explicit source name first, falling back to the URL host."""
        scraper = self.registry.get_scraper_by_name(source) if source else None
        if scraper is None and url:
            scraper = self.registry.get_scraper(url)
        if scraper is None:
            raise UnsupportedSourceError(source, self.registry.source_names())
        return scraper

    async def search_source(self, name: str, query: str) -> list[SearchResult]:
        """Single-source search. Adapter errors propagate unchanged."""
        query = normalize_query(query)
        scraper = self.resolve(source=name)
        return await scraper.search(query)

    async def _search_one(self, scraper: BaseScraper, query: str) -> SourceSearchResult:
        source = scraper.get_name()
        try:
            results = await asyncio.wait_for(scraper.search(query), timeout=self.source_timeout)
        except asyncio.TimeoutError:
            logger.warning("source_search_timeout", source=source, timeout=self.source_timeout)
            return SourceSearchResult(
                source=source,
                error=f"Search timed out after {self.source_timeout:g}s",
            )
        except Exception as e:
            logger.warning("source_search_failed", source=source, error=str(e))
            return SourceSearchResult(source=source, error=str(e) or type(e).__name__)

        return SourceSearchResult(source=source, results=results)

    async def search_all(self, query: str) -> list[SourceSearchResult]:
        """One record per registered source, in registry order."""
        query = normalize_query(query)
        scrapers = self.registry.get_all_scrapers()
        with search_context(query):
            records = await asyncio.gather(*(self._search_one(s, query) for s in scrapers))

        logger.info(
            "search_completed",
            query=query,
            sources=len(records),
            failed=sum(1 for r in records if r.failed),
        )
        return list(records)

    async def stream_search(self, query: str) -> AsyncIterator[SourceSearchResult | SearchSummary]:
        """
        Yield each source's record as soon as it settles, then a summary.

        Closing the iterator early cancels the searches still running.
        """
        query = normalize_query(query)
        # Tasks copy the bound context when created
        with search_context(query):
            tasks = [
                asyncio.create_task(self._search_one(s, query))
                for s in self.registry.get_all_scrapers()
            ]

        completed = failed = 0
        try:
            for next_record in asyncio.as_completed(tasks):
                record = await next_record
                completed += 1
                if record.failed:
                    failed += 1
                yield record
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        yield SearchSummary(
            total_sources=len(tasks),
            completed_sources=completed,
            failed_sources=failed,
        )

    async def get_chapters(
        self, url: str, source: str | None = None
    ) -> tuple[BaseScraper, list[ScrapedChapter]]:
        scraper = self.resolve(url, source)
        chapters = await scraper.get_chapter_list(url)
        logger.info("chapters_listed", source=scraper.get_name(), url=url, count=len(chapters))
        return scraper, chapters

    async def get_manga_info(self, url: str, source: str | None = None) -> tuple[BaseScraper, MangaInfo]:
        scraper = self.resolve(url, source)
        return scraper, await scraper.extract_manga_info(url)
