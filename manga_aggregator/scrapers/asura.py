import re
from urllib.parse import quote_plus, urlparse

from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters


class AsuraScanScraper(BaseScraper):
    """
    Scraper for asuracomic.net - Cloudflare protected.
    Blocks server-side fetches, so clients call it directly or via the HTML proxy.
    """

    NAME = "AsuraScan"
    BASE_URL = "https://asuracomic.net"
    HOSTS = ("asuracomic.net",)
    CLIENT_ONLY = True
    CHAPTER_URL_PATTERNS = (
        re.compile(r"/chapter/(\d+)(?:[.-](\d+))?", re.I),
        re.compile(r"chapter[/-](\d+)(?:[.-](\d+))?$", re.I),
    )

    # Markers of chapters behind the early-access paywall
    PREMIUM_SELECTORS = ("clipPath#clip0_568_418", 'circle[fill="#913FE2"]')

    def _get_headers(self) -> dict[str, str]:
        headers = super()._get_headers()
        headers.update({
            "Referer": f"{self.BASE_URL}/",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "same-origin",
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        })
        return headers

    def _series_slug(self, url: str) -> str | None:
        match = re.search(r"/series/([^/?]+)", urlparse(url).path)
        return match.group(1) if match else None

    async def extract_manga_info(self, url: str) -> MangaInfo:
        slug = self._series_slug(url)
        if not slug:
            raise NotFoundError(f"Not an AsuraScan series URL: {url}")

        html = await self.fetch_page(url)
        soup = self.parse_html(html)

        title = ""
        for tag in ("h1", "h2", "h3"):
            elem = soup.select_one(tag)
            if elem and elem.get_text(strip=True):
                title = elem.get_text(strip=True)
                break
        if not title and soup.title:
            title = soup.title.get_text().split(" - ")[0].split("|")[0].strip()

        # Clean up title (remove "- Asura Scans" suffix etc)
        title = re.sub(r"\s*[-–]\s*Asura\s*Scans?\s*$", "", title, flags=re.I)
        if not title:
            raise NotFoundError(f"Could not resolve title at {url}")

        return MangaInfo(title=title, id=slug)

    def _chapter_url(self, href: str) -> str:
        href = href.strip()
        if href.startswith("http"):
            return href
        if href.startswith("/"):
            return f"{self.BASE_URL}{href}"
        return f"{self.BASE_URL}/series/{href}"

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        html = await self.fetch_page(manga_url)
        soup = self.parse_html(html)

        chapters = []
        for elem in soup.select('a[href*="/chapter/"]'):
            href = elem.get("href")
            if not href:
                continue

            if any(elem.select_one(selector) for selector in self.PREMIUM_SELECTORS):
                continue

            heading = elem.select_one("h3")
            ch_text = heading.get_text(" ", strip=True) if heading else ""
            ch_url = self._chapter_url(href)
            ch_num = self.extract_chapter_number(ch_url, ch_text)

            chapters.append(ScrapedChapter(
                id=f"{ch_num:g}",
                number=ch_num,
                title=ch_text or None,
                url=ch_url,
            ))

        return finalize_chapters(chapters)

    async def search(self, query: str) -> list[SearchResult]:
        html = await self.fetch_page(f"{self.BASE_URL}/series?page=1&name={quote_plus(query)}")
        soup = self.parse_html(html)

        results = []
        for item in soup.select('a[href^="series/"]'):
            href = item.get("href")
            title_elem = item.select_one("span.font-bold")
            title = title_elem.get_text(strip=True) if title_elem else ""
            if not href or not title:
                continue

            cover = item.select_one("img")
            cover_src = (cover.get("src") or cover.get("data-src")) if cover else None

            latest = -1.0
            match = re.search(r"Chapter\s+([\d.]+)", item.get_text(" ", strip=True), re.I)
            if match:
                try:
                    latest = float(match.group(1))
                except ValueError:
                    pass

            results.append(SearchResult(
                id=self._series_slug(f"/{href}") or "",
                title=title,
                url=self._chapter_url(f"/{href}"),
                cover_image=self.absolute_url(cover_src) if cover_src else None,
                latest_chapter=latest,
            ))

            if len(results) >= self.result_limit:
                break

        return results
