from datetime import datetime

import httpx

from manga_aggregator.core.exceptions import CloudflareBlockedError, FetchError
from manga_aggregator.models import SourceStatus
from manga_aggregator.services import check_all_sources_health, check_source_health, classify_failure
from tests.helpers import FakeScraper


class OddScraper(FakeScraper):
    async def search(self, query):
        return {"not": "a list"}


async def test_healthy_source():
    result = await check_source_health(FakeScraper("Ok"), timeout=1)
    assert result.status == SourceStatus.HEALTHY
    assert result.message == "Source is operational"
    assert result.response_time >= 0
    assert datetime.fromisoformat(result.last_checked).tzinfo is not None


async def test_slow_source_times_out():
    result = await check_source_health(FakeScraper("Slow", delay=5), timeout=0.1)
    assert result.status == SourceStatus.TIMEOUT
    assert result.message == "Source took longer than 0.1s to respond"
    assert result.response_time < 1000


async def test_unexpected_result_shape():
    result = await check_source_health(OddScraper("Odd"), timeout=1)
    assert result.status == SourceStatus.ERROR
    assert result.message == "Unexpected response format"


async def test_cloudflare_error():
    scraper = FakeScraper("Blocked", error=CloudflareBlockedError("Cloudflare challenge detected: x"))
    result = await check_source_health(scraper, timeout=1)
    assert result.status == SourceStatus.CLOUDFLARE


async def test_plain_error_keeps_message():
    scraper = FakeScraper("Broken", error=FetchError("HTTP 500: Internal Server Error"))
    result = await check_source_health(scraper, timeout=1)
    assert result.status == SourceStatus.ERROR
    assert result.message == "HTTP 500: Internal Server Error"


def test_classify_timeout_errors():
    request = httpx.Request("GET", "https://x.example")
    assert classify_failure(httpx.ReadTimeout("read", request=request))[0] == SourceStatus.TIMEOUT
    assert classify_failure(RuntimeError("operation timed out"))[0] == SourceStatus.TIMEOUT

    wrapped = FetchError("Failed to fetch")
    wrapped.__cause__ = httpx.ConnectTimeout("connect", request=request)
    assert classify_failure(wrapped)[0] == SourceStatus.TIMEOUT


def test_classify_challenge_body_on_status_error():
    request = httpx.Request("GET", "https://x.example")
    response = httpx.Response(503, text="<title>Just a moment...</title>", request=request)
    error = httpx.HTTPStatusError("HTTP 503", request=request, response=response)
    assert classify_failure(error) == (SourceStatus.CLOUDFLARE, "Cloudflare protection detected")


def test_classify_message_hints():
    assert classify_failure(RuntimeError("blocked by cf-ray 42"))[0] == SourceStatus.CLOUDFLARE
    assert classify_failure(RuntimeError("boom"))[0] == SourceStatus.ERROR


async def test_check_all_sources_keyed_by_lower_name():
    results = await check_all_sources_health(
        [FakeScraper("Alpha"), FakeScraper("Beta", error=FetchError("down"))],
        timeout=1,
    )
    assert set(results) == {"alpha", "beta"}
    assert results["alpha"].status == SourceStatus.HEALTHY
    assert results["beta"].status == SourceStatus.ERROR
