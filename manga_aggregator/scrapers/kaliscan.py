import re
from urllib.parse import quote_plus, urlparse

from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters
from manga_aggregator.scrapers.enrichment import enrich_results
from manga_aggregator.scrapers.normalize import to_float


class KaliScanScraper(BaseScraper):
    """kaliscan.com: HTML pages plus a chapter-list fragment endpoint."""

    NAME = "KaliScan"
    BASE_URL = "https://kaliscan.com"
    HOSTS = ("kaliscan.com",)
    SOURCE_TYPE = "aggregator"
    CHAPTER_URL_PATTERNS = (
        re.compile(r"chapter[/-](\d+)(?:[-.](\d+))?", re.I),
        re.compile(r"\bch[/-](\d+)(?:[-.](\d+))?", re.I),
    )

    def _manga_key(self, url: str) -> tuple[str, str]:
        match = re.search(r"/manga/(\d+)-([^/]+)", urlparse(url).path)
        if not match:
            raise NotFoundError(f"Invalid KaliScan manga URL: {url}")
        return match.group(1), match.group(2)

    def _chaplist_url(self, manga_url: str) -> str:
        manga_id, slug = self._manga_key(manga_url)
        return f"{self.BASE_URL}/service/backend/chaplist/?manga_id={manga_id}&manga_name={quote_plus(slug)}"

    async def _fetch_chaplist(self, manga_url: str) -> str:
        return await self.fetch_page(
            self._chaplist_url(manga_url),
            headers={"Referer": manga_url, "Accept": "*/*"},
        )

    async def extract_manga_info(self, url: str) -> MangaInfo:
        manga_id, _ = self._manga_key(url)
        soup = self.parse_html(await self.fetch_page(url))

        elem = soup.select_one("h1") or soup.select_one(".title")
        title = elem.get_text(strip=True) if elem else ""
        if not title and soup.title:
            title = soup.title.get_text().split(" - ")[0].strip()
        if not title:
            raise NotFoundError(f"Could not resolve title at {url}")

        return MangaInfo(title=title, id=manga_id)

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        soup = self.parse_html(await self._fetch_chaplist(manga_url))

        chapters = []
        for item in soup.select("ul.chapter-list li, .chapter-list li"):
            link = item.select_one("a")
            href = link.get("href") if link else None
            if not href:
                continue

            ch_num = self.extract_chapter_number(href)
            title_elem = item.select_one(".chapter-title")
            update_elem = item.select_one(".chapter-update")
            item_id = re.match(r"c-(.+)", item.get("id") or "")

            chapters.append(ScrapedChapter(
                id=item_id.group(1).strip() if item_id else f"{ch_num:g}",
                number=ch_num,
                title=title_elem.get_text(strip=True) if title_elem else f"Chapter {ch_num:g}",
                url=self.absolute_url(href),
                last_updated=update_elem.get_text(strip=True) if update_elem else None,
            ))

        return finalize_chapters(chapters)

    async def _with_last_updated(self, result: SearchResult) -> SearchResult | None:
        soup = self.parse_html(await self._fetch_chaplist(result.url))
        first = soup.select_one("ul.chapter-list li, .chapter-list li")
        update = first.select_one(".chapter-update") if first else None
        if not update or not update.get_text(strip=True):
            return None
        return result.model_copy(update={"last_updated": update.get_text(strip=True)})

    async def search(self, query: str) -> list[SearchResult]:
        soup = self.parse_html(await self.fetch_page(f"{self.BASE_URL}/search?q={quote_plus(query)}"))

        results = []
        for item in soup.select(".book-item"):
            link = item.select_one('a[href*="/manga/"]')
            href = link.get("href") if link else None
            title_elem = item.select_one(".title h3") or item.select_one("h3")
            title = title_elem.get_text(strip=True) if title_elem else (link.get("title") or "").strip() if link else ""
            if not href or not title:
                continue

            try:
                manga_id, _ = self._manga_key(href)
            except NotFoundError:
                continue

            cover = item.select_one(".thumb img")
            cover_src = (cover.get("data-src") or cover.get("src")) if cover else None

            latest_elem = item.select_one(".latest-chapter")
            latest_match = re.search(r"(\d+(?:\.\d+)?)", latest_elem.get_text(strip=True)) if latest_elem else None

            rating_elem = item.select_one(".rating .score")
            rating_match = re.search(r"(\d+(?:\.\d+)?)", rating_elem.get_text(strip=True)) if rating_elem else None

            results.append(SearchResult(
                id=manga_id,
                title=title,
                url=self.absolute_url(href),
                cover_image=self.absolute_url(cover_src) if cover_src else None,
                latest_chapter=to_float(latest_match.group(1), -1.0) if latest_match else -1.0,
                rating=to_float(rating_match.group(1)) if rating_match else None,
            ))

        return await enrich_results(results, self._with_last_updated, limit=self.result_limit)
