import asyncio
from collections.abc import Awaitable, Callable

from manga_aggregator.core.logging import get_logger
from manga_aggregator.models import SearchResult

logger = get_logger("enrichment")

Enricher = Callable[[SearchResult], Awaitable[SearchResult | None]]


async def enrich_results(
    results: list[SearchResult],
    enricher: Enricher,
    limit: int | None = None,
) -> list[SearchResult]:
    """
    Apply a best-effort second round-trip to each search result.

    The enricher runs concurrently per result. When it raises or returns
    None the base result is kept, so enrichment never fails a search.
    """
    if limit is not None:
        results = results[:limit]

    async def _apply(result: SearchResult) -> SearchResult:
        try:
            enriched = await enricher(result)
        except Exception as e:
            logger.warning("enrichment_failed", title=result.title, url=result.url, error=str(e))
            return result
        return enriched if enriched is not None else result

    return list(await asyncio.gather(*(_apply(r) for r in results)))
