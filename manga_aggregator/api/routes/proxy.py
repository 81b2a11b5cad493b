from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse, JSONResponse

from manga_aggregator.api.dependencies import get_http_client
from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import NetworkError
from manga_aggregator.core.logging import get_logger

router = APIRouter()
logger = get_logger("api.proxy")


def allowed_host(url: str) -> str | None:
    """The allow-listed host ``url`` belongs to, if any."""
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return None
    host = (parsed.hostname or "").lower()
    for allowed in settings.proxy_allowed_hosts:
        if host == allowed or host.endswith(f".{allowed}"):
            return allowed
    return None


@router.get("/proxy/html")
async def proxy_html(
    url: str = Query(min_length=1),
    client: httpx.AsyncClient = Depends(get_http_client),
):
    """Pass an HTML page of a client-only source through to the browser."""
    host = allowed_host(url)
    if host is None:
        raise ValueError(
            f"Invalid URL - only {', '.join(settings.proxy_allowed_hosts)} URLs are allowed"
        )

    try:
        response = await client.get(
            url,
            headers={
                "User-Agent": settings.scraper_user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.5",
                "Referer": f"https://{host}/",
                "Sec-Fetch-Dest": "document",
                "Sec-Fetch-Mode": "navigate",
                "Sec-Fetch-Site": "same-origin",
                "Cache-Control": "no-cache",
            },
        )
    except httpx.HTTPError as e:
        raise NetworkError(f"Failed to proxy HTML: {e}") from e

    if response.is_error:
        logger.warning("proxy_upstream_error", url=url, status=response.status_code)
        return JSONResponse(
            {"detail": f"Failed to fetch HTML: {response.status_code}"},
            status_code=response.status_code,
        )

    return HTMLResponse(response.text, headers={"Cache-Control": "public, max-age=300"})
