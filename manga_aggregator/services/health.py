import asyncio
import time
from collections.abc import Iterable
from datetime import datetime, timezone

import httpx

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import CloudflareBlockedError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.models import SourceHealthResult, SourceStatus
from manga_aggregator.scrapers import BaseScraper
from manga_aggregator.scrapers.challenge import detect_challenge, message_indicates_challenge

logger = get_logger("health")

CLOUDFLARE_MESSAGE = "Cloudflare protection detected"


def _causes(exc: BaseException):
    seen = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        exc = exc.__cause__


def classify_failure(exc: Exception) -> tuple[SourceStatus, str]:
    """Map a failed probe to a status and message."""
    message = str(exc)

    if isinstance(exc, CloudflareBlockedError) or message_indicates_challenge(message):
        return SourceStatus.CLOUDFLARE, CLOUDFLARE_MESSAGE

    lowered = message.lower()
    if (
        any(isinstance(e, (TimeoutError, httpx.TimeoutException)) for e in _causes(exc))
        or "timeout" in lowered
        or "timed out" in lowered
    ):
        return SourceStatus.TIMEOUT, "Request timed out"

    for cause in _causes(exc):
        if isinstance(cause, httpx.HTTPStatusError) and detect_challenge(
            cause.response.text, cause.response.headers
        ):
            return SourceStatus.CLOUDFLARE, CLOUDFLARE_MESSAGE

    return SourceStatus.ERROR, message or type(exc).__name__


async def check_source_health(
    scraper: BaseScraper,
    test_query: str = "test",
    timeout: float | None = None,
) -> SourceHealthResult:
    """Probe a source with a throwaway search."""
    timeout = settings.health_check_timeout if timeout is None else timeout
    last_checked = datetime.now(timezone.utc).isoformat()
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        results = await asyncio.wait_for(scraper.search(test_query), timeout=timeout)
    except asyncio.TimeoutError:
        status, message = SourceStatus.TIMEOUT, f"Source took longer than {timeout:g}s to respond"
    except Exception as e:
        status, message = classify_failure(e)
    else:
        if isinstance(results, list):
            status, message = SourceStatus.HEALTHY, "Source is operational"
        else:
            status, message = SourceStatus.ERROR, "Unexpected response format"

    result = SourceHealthResult(
        status=status,
        message=message,
        response_time=elapsed_ms(),
        last_checked=last_checked,
    )
    logger.info(
        "source_health_checked",
        source=scraper.get_name(),
        status=result.status,
        response_time_ms=result.response_time,
    )
    return result


async def check_all_sources_health(
    scrapers: Iterable[BaseScraper],
    timeout: float | None = None,
) -> dict[str, SourceHealthResult]:
    """Probe every source concurrently; keyed by lower-cased source name."""
    scrapers = list(scrapers)
    results = await asyncio.gather(
        *(check_source_health(s, timeout=timeout) for s in scrapers)
    )
    return {s.get_name().lower(): r for s, r in zip(scrapers, results)}
