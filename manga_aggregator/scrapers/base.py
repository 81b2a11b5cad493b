import asyncio
import re
from abc import ABC, abstractmethod
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import CloudflareBlockedError, FetchError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult, SourceInfo, SourceType
from manga_aggregator.scrapers.bypass import BypassFetcher, get_bypass_fetcher
from manga_aggregator.scrapers.challenge import is_challenge_response
from manga_aggregator.scrapers.chapters import DEFAULT_URL_PATTERNS, parse_chapter_number

logger = get_logger("scraper")


class BaseScraper(ABC):
    """Base class for all site scrapers."""

    # Override in subclass
    NAME: str = "unknown"
    BASE_URL: str = ""
    HOSTS: tuple[str, ...] = ()
    SOURCE_TYPE: SourceType = "scanlator"
    CLIENT_ONLY: bool = False
    CHAPTER_URL_PATTERNS: tuple[re.Pattern[str], ...] = DEFAULT_URL_PATTERNS

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        bypass: BypassFetcher | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        user_agent: str | None = None,
    ):
        # Fixed at construction; adapters hold no request data.
        self.max_retries = settings.scraper_max_retries if max_retries is None else max_retries
        self.retry_delay = settings.scraper_retry_delay if retry_delay is None else retry_delay
        self.user_agent = user_agent or settings.scraper_user_agent
        self.result_limit = settings.search_result_limit
        self._http_client = http_client
        self._bypass = bypass

    # Identity

    def get_name(self) -> str:
        return self.NAME

    def get_base_url(self) -> str:
        return self.BASE_URL

    def get_type(self) -> SourceType:
        return self.SOURCE_TYPE

    def is_client_only(self) -> bool:
        """True when the upstream blocks server-side fetches and the client must call it."""
        return self.CLIENT_ONLY

    def get_description(self) -> str:
        return f"{self.get_name()} - {self.get_base_url()}"

    def get_source_id(self) -> str:
        return re.sub(r"\s+", "-", self.get_name().lower())

    def get_source_info(self) -> SourceInfo:
        return SourceInfo(
            id=self.get_source_id(),
            name=self.get_name(),
            base_url=self.get_base_url(),
            description=self.get_description(),
            client_only=self.is_client_only(),
            type=self.get_type(),
        )

    def can_handle(self, url: str) -> bool:
        """Match the URL host against this source's domains."""
        parsed = urlparse(url if "//" in url else f"//{url}")
        host = (parsed.hostname or "").lower()
        return any(host == h or host.endswith(f".{h}") for h in self.HOSTS)

    # Transport

    async def get_http_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=settings.http_timeout,
                follow_redirects=True,
                headers=self._get_headers(),
            )
        return self._http_client

    @property
    def bypass(self) -> BypassFetcher:
        return self._bypass or get_bypass_fetcher()

    async def close(self) -> None:
        """Clean up resources."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    def _get_headers(self) -> dict[str, str]:
        """Get request headers."""
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
            "Accept-Encoding": "gzip, deflate",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
        }

    async def delay(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    async def _get_text(self, url: str, headers: dict[str, str] | None = None) -> str:
        client = await self.get_http_client()
        response = await client.get(url, headers={**self._get_headers(), **(headers or {})})

        if is_challenge_response(response.status_code, response.text, response.headers):
            logger.warning("cloudflare_detected", source=self.NAME, url=url, status=response.status_code)
            raise CloudflareBlockedError(f"Cloudflare challenge detected: {url}")

        if response.is_error:
            raise httpx.HTTPStatusError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                request=response.request,
                response=response,
            )
        return response.text

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.debug(
            "fetch_retry",
            source=self.NAME,
            attempt=retry_state.attempt_number,
            error=str(exc),
        )

    async def fetch_with_retry(
        self,
        url: str,
        retries: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> str:
        """
        GET ``url`` with linear backoff: after attempt ``n`` fails, wait
        ``retry_delay * n``. Challenge pages are not retried.
        """
        retries = self.max_retries if retries is None else retries
        retrying = AsyncRetrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_incrementing(start=self.retry_delay, increment=self.retry_delay),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=self._log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    return await self._get_text(url, headers)
        except httpx.HTTPError as e:
            logger.error("fetch_failed", source=self.NAME, url=url, attempts=retries + 1, error=str(e))
            raise FetchError(f"Failed to fetch {url}: {e}") from e

        raise FetchError(f"Failed to fetch {url} after retries")

    async def fetch_page(self, url: str, headers: dict[str, str] | None = None) -> str:
        """
        Fetch page content.
        Tries HTTP first, hands challenge pages to the solver.
        """
        try:
            return await self.fetch_with_retry(url, headers=headers)
        except CloudflareBlockedError:
            if not settings.solver_fallback_enabled:
                raise
            logger.info("falling_back_to_solver", source=self.NAME, url=url)
            return await self.bypass.fetch_text_via_solver(url)

    async def fetch_json(self, url: str) -> Any:
        """JSON endpoint fetch through the bypass pipeline."""
        return await self.bypass.fetch_json(url)

    # Parsing helpers

    def parse_html(self, html: str) -> BeautifulSoup:
        """Parse HTML content."""
        return BeautifulSoup(html, "lxml")

    def absolute_url(self, url: str, base: str | None = None) -> str:
        """Convert relative URL to absolute."""
        base = base or self.BASE_URL
        return urljoin(base, url)

    def extract_chapter_number(self, chapter_url: str | None, chapter_text: str | None = None) -> float:
        return parse_chapter_number(chapter_url, chapter_text, self.CHAPTER_URL_PATTERNS)

    def slugify(self, text: str) -> str:
        """Convert text to URL-safe slug."""
        text = text.lower().strip()
        text = re.sub(r"[^\w\s-]", "", text)
        text = re.sub(r"[-\s]+", "-", text)
        return text[:200]

    # Contract

    @abstractmethod
    async def extract_manga_info(self, url: str) -> MangaInfo:
        """
        Resolve a title page to its title and source-local id.

        Raises NotFoundError when the page or slug cannot be resolved.
        """

    @abstractmethod
    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        """
        List chapters of a title.

        Returns chapters sorted ascending by number, one per number,
        with locked/premium and unparseable chapters left out.
        """

    @abstractmethod
    async def search(self, query: str) -> list[SearchResult]:
        """Search titles; at most ``result_limit`` results."""

    def __str__(self) -> str:
        return f"{self.NAME} ({self.BASE_URL})"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.NAME!r}, base_url={self.BASE_URL!r})"
