import re
from urllib.parse import quote_plus, urlparse

from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters


class MgekoScraper(BaseScraper):
    """Scraper for mgeko.cc - No Cloudflare protection."""

    NAME = "Mgeko"
    BASE_URL = "https://www.mgeko.cc"
    HOSTS = ("mgeko.cc",)
    SOURCE_TYPE = "aggregator"
    CHAPTER_URL_PATTERNS = (
        re.compile(r"chapter[/-](\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"-ch[/-](\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"[/-](\d+)-eng-li", re.I),
    )
    COVER_BASE = "https://imgsrv4.com/avatar/288x412"

    def _manga_slug(self, url: str) -> str | None:
        match = re.search(r"/manga/([^/]+)", urlparse(url).path)
        return match.group(1) if match else None

    async def extract_manga_info(self, url: str) -> MangaInfo:
        slug = self._manga_slug(url)
        if not slug:
            raise NotFoundError(f"Not a Mgeko title URL: {url}")

        html = await self.fetch_page(url)
        soup = self.parse_html(html)

        title_elem = soup.select_one("h1.novel-title") or soup.select_one("h1")
        title = title_elem.get_text(strip=True) if title_elem else ""
        if not title and soup.title:
            title = soup.title.get_text().split(" - ")[0].strip()
        if not title:
            raise NotFoundError(f"Could not resolve title at {url}")

        return MangaInfo(title=title, id=slug)

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        chapters_url = manga_url
        if "/all-chapters" not in manga_url:
            chapters_url = manga_url.rstrip("/") + "/all-chapters"

        html = await self.fetch_page(chapters_url)
        soup = self.parse_html(html)

        chapters = []
        for elem in soup.select("ul.chapter-list li a"):
            href = elem.get("href")
            if not href:
                continue

            ch_url = self.absolute_url(href)
            title_elem = elem.select_one("strong.chapter-title")
            ch_text = title_elem.get_text(strip=True) if title_elem else ""

            ch_num = self.extract_chapter_number(ch_url, ch_text)

            date_elem = elem.select_one("time.chapter-update")
            chapters.append(ScrapedChapter(
                id=f"{ch_num:g}",
                number=ch_num,
                title=ch_text or None,
                url=ch_url,
                last_updated=date_elem.get_text(strip=True) if date_elem else None,
            ))

        return finalize_chapters(chapters)

    def _cover_url(self, src: str | None) -> str | None:
        if not src:
            return None
        if src.startswith("http"):
            return src
        return f"{self.COVER_BASE}/{src.lstrip('/')}"

    async def search(self, query: str) -> list[SearchResult]:
        html = await self.fetch_page(f"{self.BASE_URL}/search/?search={quote_plus(query)}")
        soup = self.parse_html(html)

        results = []
        for item in soup.select("ul.novel-list li.novel-item"):
            link = item.select_one('a[href*="/manga/"]')
            if not link or not link.get("href"):
                continue

            href = link["href"]
            title_elem = item.select_one("h4.novel-title")
            title = title_elem.get_text(strip=True) if title_elem else ""
            if not title:
                continue

            # Lazy-loaded covers keep a loading.gif in src
            cover = item.select_one("img")
            cover_src = None
            if cover:
                cover_src = cover.get("src")
                if not cover_src or "loading.gif" in cover_src:
                    cover_src = (
                        cover.get("data-src")
                        or cover.get("data-lazy-src")
                        or cover.get("data-original")
                    )

            latest = -1.0
            stats = item.select_one("div.novel-stats strong")
            if stats:
                match = re.search(r"Chapters?\s+(\d+(?:\.\d+)?)", stats.get_text(" ", strip=True), re.I)
                if match:
                    latest = float(match.group(1))

            updated = item.select("div.novel-stats span")

            results.append(SearchResult(
                id=self._manga_slug(href) or "",
                title=title,
                url=self.absolute_url(href),
                cover_image=self._cover_url(cover_src),
                latest_chapter=latest,
                last_updated=updated[-1].get_text(strip=True) if updated else "",
            ))

            if len(results) >= self.result_limit:
                break

        return results
