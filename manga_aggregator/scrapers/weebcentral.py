import re
from urllib.parse import quote_plus, urlparse

from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters

NUMBER_RES = (
    re.compile(r"Episode\s+(\d+(?:\.\d+)?)", re.I),
    re.compile(r"Chapter\s+(\d+(?:\.\d+)?)", re.I),
    re.compile(r"(\d+(?:\.\d+)?)"),
)


class WeebCentralScraper(BaseScraper):
    """Scraper for weebcentral.com. Server-side requests are blocked upstream."""

    NAME = "WeebCentral"
    BASE_URL = "https://weebcentral.com"
    HOSTS = ("weebcentral.com",)
    SOURCE_TYPE = "aggregator"
    CLIENT_ONLY = True

    def _get_headers(self) -> dict[str, str]:
        headers = super()._get_headers()
        headers.update({
            "Referer": f"{self.BASE_URL}/",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "same-origin",
        })
        return headers

    def _series_id(self, url: str) -> str:
        match = re.search(r"/series/([^/]+)", urlparse(url).path)
        if not match:
            raise NotFoundError(f"Invalid WeebCentral series URL: {url}")
        return match.group(1)

    async def extract_manga_info(self, url: str) -> MangaInfo:
        series_id = self._series_id(url)
        soup = self.parse_html(await self.fetch_page(url))

        elem = soup.select_one("h1") or soup.select_one(".title")
        title = elem.get_text(strip=True) if elem else ""
        if not title and soup.title:
            title = soup.title.get_text().split(" - ")[0].strip()
        if not title:
            raise NotFoundError(f"Could not resolve title at {url}")

        return MangaInfo(title=title, id=series_id)

    def _number_from_text(self, text: str) -> float:
        for pattern in NUMBER_RES:
            match = pattern.search(text)
            if match:
                return float(match.group(1))
        return -1.0

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        series_id = self._series_id(manga_url)
        html = await self.fetch_page(f"{self.BASE_URL}/series/{series_id}/full-chapter-list")
        soup = self.parse_html(html)

        chapters = []
        for link in soup.select('a[href*="/chapters/"]'):
            href = link.get("href")
            if not href:
                continue

            span = link.select_one("span")
            ch_text = span.get_text(strip=True) if span else link.get_text("\n", strip=True)
            ch_text = ch_text.split("\n")[0].strip()

            time_elem = link.select_one("time")
            chapters.append(ScrapedChapter(
                id=href.rstrip("/").rsplit("/", 1)[-1],
                number=self._number_from_text(ch_text),
                title=ch_text or None,
                url=self.absolute_url(href),
                last_updated=time_elem.get("datetime") if time_elem else None,
            ))

        return finalize_chapters(chapters)

    async def search(self, query: str) -> list[SearchResult]:
        url = f"{self.BASE_URL}/search/simple?location=main&text={quote_plus(query)}"
        soup = self.parse_html(await self.fetch_page(url, headers={"HX-Request": "true"}))

        results = []
        for link in soup.select('a[href*="/series/"]'):
            href = link.get("href")
            title = link.get_text(" ", strip=True)
            if not href or not title:
                continue

            try:
                series_id = self._series_id(href)
            except NotFoundError:
                continue

            cover = link.select_one("img")
            results.append(SearchResult(
                id=series_id,
                title=title,
                url=self.absolute_url(href),
                cover_image=cover.get("src") if cover else None,
            ))

            if len(results) >= self.result_limit:
                break

        return results
