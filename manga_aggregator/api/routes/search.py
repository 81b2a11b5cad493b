import json

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from manga_aggregator.api.dependencies import get_aggregator
from manga_aggregator.models import Base
from manga_aggregator.services import SearchAggregator, normalize_query

router = APIRouter()

ALL_SOURCES = "all"


# Schemas
class SearchRequest(Base):
    query: str
    source: str | None = None
    stream: bool = False


# Routes
@router.post("/search")
async def search(
    data: SearchRequest,
    aggregator: SearchAggregator = Depends(get_aggregator),
):
    """
    Search one source, or every source when ``source`` is omitted or "all".

    With ``stream`` set, all-source results are sent as NDJSON: one line per
    source as it finishes, then a summary line with ``done: true``.
    """
    query = normalize_query(data.query)

    if data.source and data.source.lower() != ALL_SOURCES:
        scraper = aggregator.resolve(source=data.source)
        results = await aggregator.search_source(data.source, query)
        return {"results": [r.to_dict() for r in results], "source": scraper.get_name()}

    if data.stream:
        async def ndjson():
            async for record in aggregator.stream_search(query):
                yield json.dumps(record.to_dict()) + "\n"

        return StreamingResponse(ndjson(), media_type="application/x-ndjson")

    records = await aggregator.search_all(query)
    return {"sources": [r.to_dict() for r in records]}
