import re
from typing import Any
from urllib.parse import quote_plus, urlparse

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.models import MangaInfo, ScanlationGroup, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters
from manga_aggregator.scrapers.normalize import epoch_to_display, first_present, to_float, to_str

logger = get_logger("scraper.comix")


class ComixScraper(BaseScraper):
    """comix.to JSON API, served behind a bot challenge."""

    NAME = "Comix"
    BASE_URL = "https://comix.to"
    API_BASE = "https://comix.to/api/v2"
    HOSTS = ("comix.to",)
    SOURCE_TYPE = "aggregator"
    CHAPTERS_PER_PAGE = 100

    def _hash_id(self, url: str) -> str:
        match = re.search(r"/(?:comic|title)/([^/]+)", urlparse(url).path)
        if not match:
            raise NotFoundError(f"Invalid Comix URL format: {url}")
        return match.group(1).split("-")[0]

    async def extract_manga_info(self, url: str) -> MangaInfo:
        hash_id = self._hash_id(url)
        data = await self.fetch_json(f"{self.API_BASE}/manga/{hash_id}")

        title = first_present(data, "result.title")
        if not title:
            raise NotFoundError(f"Comix title {hash_id} not found")
        return MangaInfo(title=title, id=hash_id)

    def _map_chapter(self, chapter: dict[str, Any], hash_id: str, slug: str) -> ScrapedChapter:
        number = to_float(chapter.get("number"), -1.0)
        chapter_id = to_str(chapter.get("chapter_id"), "")

        group = None
        group_data = chapter.get("scanlation_group")
        if group_data:
            group_slug = group_data.get("slug")
            group = ScanlationGroup(
                id=to_str(first_present(group_data, "scanlation_group_id", "slug"), "unknown"),
                name=group_data.get("name") or "Unknown",
                url=f"{self.BASE_URL}/groups/{group_slug}" if group_slug else None,
            )

        _, updated = epoch_to_display(chapter.get("updated_at"))
        return ScrapedChapter(
            id=chapter_id,
            number=number,
            title=chapter.get("name") or f"Chapter {chapter.get('number')}",
            url=f"{self.BASE_URL}/title/{hash_id}-{slug}/{chapter_id}-chapter-{chapter.get('number')}",
            last_updated=updated or None,
            scanlation_group=group,
        )

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        hash_id = self._hash_id(manga_url)
        manga = await self.fetch_json(f"{self.API_BASE}/manga/{hash_id}")
        slug = first_present(manga, "result.slug", default="")

        chapters = []
        page = 1
        while True:
            data = await self.fetch_json(
                f"{self.API_BASE}/manga/{hash_id}/chapters"
                f"?order[number]=desc&limit={self.CHAPTERS_PER_PAGE}&page={page}"
            )
            items = first_present(data, "result.items")
            if not isinstance(items, list):
                break

            chapters.extend(self._map_chapter(item, hash_id, slug) for item in items)

            last_page = first_present(data, "result.pagination.last_page", default=page)
            if page >= int(last_page):
                break
            page += 1
            await self.delay(settings.pagination_delay)

        logger.debug("chapters_fetched", hash_id=hash_id, count=len(chapters), pages=page)
        return finalize_chapters(chapters)

    async def search(self, query: str) -> list[SearchResult]:
        data = await self.fetch_json(
            f"{self.API_BASE}/manga?order[relevance]=desc&keyword={quote_plus(query)}&limit={self.result_limit}"
        )
        items = first_present(data, "result.items", default=[])
        if not isinstance(items, list):
            return []

        results = []
        for manga in items[: self.result_limit]:
            hash_id = to_str(manga.get("hash_id"))
            if not hash_id:
                continue

            title = to_str(first_present(manga, "title"), hash_id)
            slug = manga.get("slug") or self.slugify(title)
            timestamp, updated = epoch_to_display(manga.get("chapter_updated_at"))
            results.append(SearchResult(
                id=hash_id,
                title=title,
                url=f"{self.BASE_URL}/title/{hash_id}-{slug}",
                cover_image=first_present(manga, "poster.large", "poster.medium", "poster.small"),
                latest_chapter=to_float(manga.get("latest_chapter"), -1.0),
                last_updated=updated,
                last_updated_timestamp=timestamp,
                rating=to_float(manga.get("rated_avg")),
                followers=to_str(manga.get("follows_total")),
            ))
        return results
