import re
from urllib.parse import quote_plus, urlparse

from manga_aggregator.core.exceptions import NotFoundError
from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper
from manga_aggregator.scrapers.chapters import finalize_chapters
from manga_aggregator.scrapers.normalize import to_float

# /title/<id>-<slug>/<chapter-id>-<kind>-<number>
CHAPTER_HREF_RE = re.compile(r"/title/\d+[^/]*/\d+-[a-z]+-\d+", re.I)
LATEST_CHAPTER_RES = (
    re.compile(r"Chapter\s+([\d.]+)", re.I),
    re.compile(r"Ch\.?\s+([\d.]+)", re.I),
    re.compile(r"Episode\s+([\d.]+)", re.I),
)


class MangaParkScraper(BaseScraper):
    """Scraper for mangapark.io / mangapark.net."""

    NAME = "MangaPark"
    BASE_URL = "https://mangapark.io"
    HOSTS = ("mangapark.io", "mangapark.net")
    SOURCE_TYPE = "aggregator"
    CHAPTER_URL_PATTERNS = (
        re.compile(r"/\d+-chapter[/-](\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"/\d+-ch[/-](\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"vol-\d+-ch-(\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"/\d+-episode[/-](\d+)(?:[-./](\d+))?", re.I),
        re.compile(r"/\d+-[a-z]+-(\d+)(?:[-./](\d+))?$", re.I),
    )

    def _title_id(self, url: str) -> str | None:
        match = re.search(r"/title/(\d+)", urlparse(url).path)
        return match.group(1) if match else None

    async def extract_manga_info(self, url: str) -> MangaInfo:
        title_id = self._title_id(url)
        if not title_id:
            raise NotFoundError(f"Not a MangaPark title URL: {url}")

        soup = self.parse_html(await self.fetch_page(url))
        elem = soup.select_one("h1") or soup.select_one(".title")
        title = elem.get_text(strip=True) if elem else ""
        if not title and soup.title:
            title = soup.title.get_text().split(" - ")[0].strip()
        if not title:
            raise NotFoundError(f"Could not resolve title at {url}")

        return MangaInfo(title=title, id=title_id)

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        soup = self.parse_html(await self.fetch_page(manga_url))

        chapters = []
        for selector in ('a[href*="/title/"]', ".chapter-item a", ".episode-item a"):
            links = soup.select(selector)
            if not links:
                continue

            for link in links:
                href = link.get("href")
                if not href or not CHAPTER_HREF_RE.search(href):
                    continue

                ch_url = self.absolute_url(href)
                # Numbers come from the URL only; link text is often "Vol.2 Ch.10"
                ch_num = self.extract_chapter_number(ch_url)
                chapters.append(ScrapedChapter(
                    id=f"{ch_num:g}",
                    number=ch_num,
                    title=link.get_text(" ", strip=True) or None,
                    url=ch_url,
                ))
            break

        return finalize_chapters(chapters)

    def _latest_chapter(self, text: str) -> float:
        for pattern in LATEST_CHAPTER_RES:
            match = pattern.search(text)
            if match:
                return to_float(match.group(1), -1.0)
        return -1.0

    async def search(self, query: str) -> list[SearchResult]:
        soup = self.parse_html(await self.fetch_page(f"{self.BASE_URL}/search?word={quote_plus(query)}"))

        results = []
        for item in soup.select("div.flex.border-b.border-b-base-200.pb-5"):
            title_link = item.select_one("h3 a")
            if not title_link or not title_link.get("href"):
                continue

            href = title_link["href"]
            chapter_links = [a for a in item.select('a[href*="/title/"]') if CHAPTER_HREF_RE.search(a.get("href", ""))]
            latest_text = chapter_links[-1].get_text(" ", strip=True) if chapter_links else ""

            cover = item.select_one("img")
            cover_src = cover.get("src") if cover else None

            time_elem = item.select_one("time[data-time]")
            timestamp = None
            last_updated = ""
            if time_elem:
                raw = to_float(time_elem.get("data-time"))
                timestamp = int(raw) if raw is not None else None
                last_updated = time_elem.get_text(strip=True)

            rating_elem = item.select_one(".text-yellow-500 span.font-bold")
            followers_elem = item.select_one('[id^="comic-follow-swap"] span.ml-1')

            results.append(SearchResult(
                id=self._title_id(href) or "",
                title=title_link.get_text(strip=True),
                url=self.absolute_url(href),
                cover_image=self.absolute_url(cover_src) if cover_src else None,
                latest_chapter=self._latest_chapter(latest_text),
                last_updated=last_updated,
                last_updated_timestamp=timestamp,
                rating=to_float(rating_elem.get_text(strip=True)) if rating_elem else None,
                followers=followers_elem.get_text(strip=True) if followers_elem else None,
            ))

            if len(results) >= self.result_limit:
                break

        return results
