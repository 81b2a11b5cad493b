from manga_aggregator.scrapers.asura import AsuraScanScraper
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.comix import ComixScraper
from manga_aggregator.scrapers.kaliscan import KaliScanScraper
from manga_aggregator.scrapers.mangapark import MangaParkScraper
from manga_aggregator.scrapers.mgeko import MgekoScraper
from manga_aggregator.scrapers.registry import DEFAULT_SCRAPERS, ScraperRegistry, get_registry
from manga_aggregator.scrapers.weebcentral import WeebCentralScraper
from manga_aggregator.scrapers.weebdex import WeebdexScraper


def get_scraper_for_url(url: str) -> BaseScraper | None:
    """Get appropriate scraper instance for URL."""
    return get_registry().get_scraper(url)


def get_scraper_by_name(name: str) -> BaseScraper | None:
    return get_registry().get_scraper_by_name(name)


def get_all_scrapers() -> list[BaseScraper]:
    return get_registry().get_all_scrapers()


def get_supported_sources() -> list[str]:
    """Lower-cased names of every registered source."""
    return get_registry().source_names()


__all__ = [
    "BaseScraper",
    "AsuraScanScraper",
    "ComixScraper",
    "KaliScanScraper",
    "MangaParkScraper",
    "MgekoScraper",
    "WeebCentralScraper",
    "WeebdexScraper",
    "DEFAULT_SCRAPERS",
    "ScraperRegistry",
    "get_registry",
    "get_scraper_for_url",
    "get_scraper_by_name",
    "get_all_scrapers",
    "get_supported_sources",
]
