from collections.abc import AsyncGenerator

import httpx
from fastapi import Depends

from manga_aggregator.config import settings
from manga_aggregator.scrapers import ScraperRegistry, get_registry
from manga_aggregator.services import SearchAggregator


def get_aggregator(registry: ScraperRegistry = Depends(get_registry)) -> SearchAggregator:
    return SearchAggregator(registry)


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Short-lived client for passthrough requests."""
    async with httpx.AsyncClient(timeout=settings.http_timeout, follow_redirects=True) as client:
        yield client
