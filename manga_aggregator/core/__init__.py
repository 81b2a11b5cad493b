from manga_aggregator.core.exceptions import (
    CloudflareBlockedError,
    FetchError,
    NetworkError,
    NotFoundError,
    ParseError,
    ScraperError,
    UnknownSectionError,
    UnsupportedSourceError,
)
from manga_aggregator.core.logging import setup_logging, get_logger

__all__ = [
    "CloudflareBlockedError",
    "FetchError",
    "NetworkError",
    "NotFoundError",
    "ParseError",
    "ScraperError",
    "UnknownSectionError",
    "UnsupportedSourceError",
    "setup_logging",
    "get_logger",
]
