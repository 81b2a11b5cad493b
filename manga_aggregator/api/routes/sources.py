from fastapi import APIRouter, Depends, Query

from manga_aggregator.core.exceptions import UnsupportedSourceError
from manga_aggregator.scrapers import ScraperRegistry, get_registry
from manga_aggregator.services import check_all_sources_health, check_source_health

router = APIRouter()


@router.get("")
async def list_sources(registry: ScraperRegistry = Depends(get_registry)):
    """Identity of every registered source."""
    return {"sources": [info.to_dict() for info in registry.get_all_source_info()]}


@router.get("/health")
async def sources_health(
    source: str | None = Query(default=None),
    registry: ScraperRegistry = Depends(get_registry),
):
    """
    Probe one source (``?source=name``) or all of them with a test search.
    Probes hit the upstream sites, so this can take up to the health timeout.
    """
    if source:
        scraper = registry.get_scraper_by_name(source)
        if scraper is None:
            raise UnsupportedSourceError(source, registry.source_names())
        result = await check_source_health(scraper)
        return {"source": scraper.get_name(), "health": result.to_dict()}

    results = await check_all_sources_health(registry.get_all_scrapers())
    return {"sources": {name: r.to_dict() for name, r in results.items()}}
