import time

from fastapi import APIRouter, Depends
from pydantic import Field

from manga_aggregator.core.exceptions import UnsupportedSourceError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.frontpages import FrontpageRegistry, get_frontpage_registry
from manga_aggregator.models import Base, FrontpageFetchOptions

router = APIRouter()
logger = get_logger("api.frontpage")


# Schemas
class FrontpageRequest(Base):
    source: str = Field(min_length=1)
    section: str = Field(min_length=1)
    page: int | None = None
    limit: int | None = None
    days: int | None = None


# Routes
@router.get("/frontpage")
async def frontpage_sources(registry: FrontpageRegistry = Depends(get_frontpage_registry)):
    """Sources with frontpage support and their sections."""
    return {
        "sources": [info.to_dict() for info in registry.get_all_frontpage_info()],
        "sourceIds": registry.get_source_ids(),
    }


@router.post("/frontpage")
async def frontpage_section(
    data: FrontpageRequest,
    registry: FrontpageRegistry = Depends(get_frontpage_registry),
):
    frontpage = registry.get_frontpage(data.source)
    if frontpage is None:
        raise UnsupportedSourceError(data.source, registry.get_source_ids())

    options = FrontpageFetchOptions(
        page=data.page or 1,
        limit=data.limit or 30,
        days=data.days or 7,
    )
    logger.info(
        "frontpage_requested",
        source=data.source,
        section=data.section,
        page=options.page,
        limit=options.limit,
        days=options.days,
    )

    section = await frontpage.fetch_section(data.section, options)
    return {
        "source": frontpage.get_source_id(),
        "sourceName": frontpage.get_source_name(),
        "section": section.to_dict(),
        "fetchedAt": int(time.time() * 1000),
    }
