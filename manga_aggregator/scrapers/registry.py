from collections.abc import Iterable

from manga_aggregator.models import SourceInfo
from manga_aggregator.scrapers.asura import AsuraScanScraper
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.comix import ComixScraper
from manga_aggregator.scrapers.kaliscan import KaliScanScraper
from manga_aggregator.scrapers.mangapark import MangaParkScraper
from manga_aggregator.scrapers.mgeko import MgekoScraper
from manga_aggregator.scrapers.weebcentral import WeebCentralScraper
from manga_aggregator.scrapers.weebdex import WeebdexScraper

# Routing order: first can_handle match wins
DEFAULT_SCRAPERS: tuple[type[BaseScraper], ...] = (
    MangaParkScraper,
    MgekoScraper,
    AsuraScanScraper,
    WeebCentralScraper,
    ComixScraper,
    WeebdexScraper,
    KaliScanScraper,
)


class ScraperRegistry:
    """Ordered, read-only set of adapter instances."""

    def __init__(self, scrapers: Iterable[BaseScraper]):
        self._scrapers = tuple(scrapers)

        seen: set[str] = set()
        for scraper in self._scrapers:
            source_id = scraper.get_source_id()
            if source_id in seen:
                raise ValueError(f"Duplicate source id: {source_id}")
            seen.add(source_id)

    def get_scraper(self, url: str) -> BaseScraper | None:
        """Adapter for a title/chapter URL, by host."""
        for scraper in self._scrapers:
            if scraper.can_handle(url):
                return scraper
        return None

    def get_scraper_by_name(self, name: str) -> BaseScraper | None:
        wanted = name.strip().lower()
        for scraper in self._scrapers:
            if scraper.get_name().lower() == wanted or scraper.get_source_id() == wanted:
                return scraper
        return None

    def get_all_scrapers(self) -> list[BaseScraper]:
        return list(self._scrapers)

    def get_client_only_scrapers(self) -> list[BaseScraper]:
        return [s for s in self._scrapers if s.is_client_only()]

    def get_all_source_info(self) -> list[SourceInfo]:
        return [s.get_source_info() for s in self._scrapers]

    def source_names(self) -> list[str]:
        return [s.get_name().lower() for s in self._scrapers]

    async def close(self) -> None:
        for scraper in self._scrapers:
            await scraper.close()

    def __len__(self) -> int:
        return len(self._scrapers)

    def __iter__(self):
        return iter(self._scrapers)


# Global instance
_registry: ScraperRegistry | None = None


def get_registry() -> ScraperRegistry:
    """Get the process-wide registry of the shipped adapters."""
    global _registry
    if _registry is None:
        _registry = ScraperRegistry(cls() for cls in DEFAULT_SCRAPERS)
    return _registry
