from fastapi import APIRouter, Depends
from pydantic import Field

from manga_aggregator.api.dependencies import get_aggregator
from manga_aggregator.models import Base
from manga_aggregator.services import SearchAggregator

router = APIRouter()


# Schemas
class TitleRequest(Base):
    url: str = Field(min_length=1)
    source: str | None = None


# Routes
@router.post("/chapters")
async def list_chapters(
    data: TitleRequest,
    aggregator: SearchAggregator = Depends(get_aggregator),
):
    """Chapter list of a title, resolved by source name or URL host."""
    scraper, chapters = await aggregator.get_chapters(data.url, data.source)
    return {
        "chapters": [c.to_dict() for c in chapters],
        "source": scraper.get_name(),
        "totalChapters": len(chapters),
    }


@router.post("/manga-info")
async def manga_info(
    data: TitleRequest,
    aggregator: SearchAggregator = Depends(get_aggregator),
):
    scraper, info = await aggregator.get_manga_info(data.url, data.source)
    return {**info.to_dict(), "source": scraper.get_name()}
