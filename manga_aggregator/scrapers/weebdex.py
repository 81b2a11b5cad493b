import re
from typing import Any
from urllib.parse import quote_plus, urlparse

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import FetchError, NotFoundError, ParseError
from manga_aggregator.models import MangaInfo, ScanlationGroup, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters
from manga_aggregator.scrapers.enrichment import enrich_results
from manga_aggregator.scrapers.normalize import first_present, iso_to_display, to_float, to_str


def _is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, httpx.HTTPStatusError) and exc.response.status_code == 429


class WeebdexScraper(BaseScraper):
    """weebdex.org public API."""

    NAME = "Weebdex"
    BASE_URL = "https://weebdex.org"
    API_BASE = "https://api.weebdex.org"
    COVER_BASE = "https://srv.notdelta.xyz/covers"
    HOSTS = ("weebdex.org",)
    SOURCE_TYPE = "aggregator"
    CHAPTERS_PER_PAGE = 100
    LANGUAGE = "en"
    # Seconds: first wait and cap of the 429 backoff (2, 4, 8, 10, ...)
    RATE_LIMIT_BACKOFF = (2, 10)

    async def _fetch_api(self, url: str) -> Any:
        """GET JSON, backing off exponentially while the API answers 429."""
        client = await self.get_http_client()
        first_wait, max_wait = self.RATE_LIMIT_BACKOFF
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=first_wait, min=first_wait, max=max_wait),
            retry=retry_if_exception(_is_rate_limited),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await client.get(url, headers={"Accept": "application/json"})
                    response.raise_for_status()
                    return response.json()
        except httpx.HTTPStatusError as e:
            if _is_rate_limited(e):
                raise FetchError("Rate limited: Too many requests") from e
            if e.response.status_code == 404:
                raise NotFoundError(f"Weebdex resource not found: {url}") from e
            raise FetchError(f"HTTP {e.response.status_code}: {e.response.reason_phrase}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {url}: {e}") from e
        except ValueError as e:
            raise ParseError(f"Invalid JSON from {url}: {e}") from e

        raise FetchError(f"Failed to fetch {url}")

    def _manga_id(self, url: str) -> str:
        match = re.search(r"/title/([a-z0-9]+)", urlparse(url).path, re.I)
        if not match:
            raise NotFoundError(f"Invalid Weebdex URL format: {url}")
        return match.group(1)

    async def extract_manga_info(self, url: str) -> MangaInfo:
        manga_id = self._manga_id(url)
        data = await self._fetch_api(f"{self.API_BASE}/manga/{manga_id}")
        return MangaInfo(title=data.get("title") or manga_id, id=manga_id)

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        manga_id = self._manga_id(manga_url)
        manga = await self._fetch_api(f"{self.API_BASE}/manga/{manga_id}")
        groups = {
            g["id"]: g.get("name") or g["id"]
            for g in first_present(manga, "relationships.available_groups", default=[])
            if g.get("id")
        }

        chapters = []
        page = 1
        while True:
            data = await self._fetch_api(
                f"{self.API_BASE}/manga/{manga_id}/chapters?limit={self.CHAPTERS_PER_PAGE}&page={page}"
            )
            items = data.get("data")
            if not isinstance(items, list):
                break

            for chapter in items:
                if chapter.get("language") != self.LANGUAGE:
                    continue

                group_id = first_present(chapter, "scanlation_group", "group_id")
                group = None
                if group_id in groups:
                    group = ScanlationGroup(
                        id=group_id,
                        name=groups[group_id],
                        url=f"{self.BASE_URL}/group/{group_id}",
                    )

                chapters.append(ScrapedChapter(
                    id=chapter["id"],
                    number=to_float(chapter.get("chapter"), -1.0),
                    title=chapter.get("title") or f"Chapter {chapter.get('chapter')}",
                    url=f"{self.BASE_URL}/chapter/{chapter['id']}",
                    last_updated=chapter.get("published_at"),
                    scanlation_group=group,
                ))

            limit = data.get("limit") or self.CHAPTERS_PER_PAGE
            total_pages = -(-int(data.get("total") or 0) // int(limit))
            if page >= total_pages:
                break
            page += 1
            await self.delay(settings.pagination_delay)

        return finalize_chapters(chapters)

    async def _with_latest_chapter(self, result: SearchResult) -> SearchResult:
        """Search hits carry no chapter info; read it from the first chapter page."""
        data = await self._fetch_api(
            f"{self.API_BASE}/manga/{result.id}/chapters?limit={self.CHAPTERS_PER_PAGE}&page=1"
        )
        numbers = [
            to_float(c.get("chapter"), -1.0)
            for c in data.get("data") or []
            if c.get("language") == self.LANGUAGE
        ]
        if not numbers:
            return result
        return result.model_copy(update={"latest_chapter": max(numbers)})

    async def search(self, query: str) -> list[SearchResult]:
        data = await self._fetch_api(
            f"{self.API_BASE}/manga?title={quote_plus(query)}&sort=relevance&limit={self.result_limit}"
        )

        results = []
        for manga in data.get("data") or []:
            cover_id = first_present(manga, "relationships.cover.id")
            timestamp, updated = iso_to_display(manga.get("updated_at"))
            results.append(SearchResult(
                id=manga["id"],
                title=manga.get("title") or manga["id"],
                url=f"{self.BASE_URL}/title/{manga['id']}",
                cover_image=f"{self.COVER_BASE}/{manga['id']}/{cover_id}.256.webp" if cover_id else None,
                last_updated=updated,
                last_updated_timestamp=timestamp,
                followers=to_str(first_present(manga, "relationships.stats.follows")),
            ))

        return await enrich_results(results, self._with_latest_chapter, limit=self.result_limit)
