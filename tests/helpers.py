import asyncio
from collections.abc import Callable

import httpx

from manga_aggregator.models import MangaInfo, ScrapedChapter, SearchResult
from manga_aggregator.scrapers.base import BaseScraper

Handler = Callable[[httpx.Request], httpx.Response]


def mock_client(handler: Handler) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by ``handler``."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


def html_response(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(status_code, text=body, headers={"content-type": "text/html; charset=utf-8"})


class FakeScraper(BaseScraper):
    """In-memory source with scripted search behaviour."""

    NAME = "Fake"
    BASE_URL = "https://fake.example"
    HOSTS = ("fake.example",)

    def __init__(self, name: str = "Fake", results=None, error: Exception | None = None, delay: float = 0, **kwargs):
        super().__init__(**kwargs)
        self.NAME = name
        self.HOSTS = (f"{name.lower()}.example",)
        self._results = results if results is not None else [
            SearchResult(id="1", title=f"{name} title", url=f"https://{name.lower()}.example/title/1")
        ]
        self._error = error
        self._delay = delay
        self.search_calls = 0
        self.cancelled = False

    async def search(self, query: str) -> list[SearchResult]:
        self.search_calls += 1
        try:
            if self._delay:
                await asyncio.sleep(self._delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self._error:
            raise self._error
        return self._results

    async def extract_manga_info(self, url: str) -> MangaInfo:
        return MangaInfo(title=f"{self.NAME} title", id="1")

    async def get_chapter_list(self, manga_url: str) -> list[ScrapedChapter]:
        return [
            ScrapedChapter(id="1", number=1, url=f"{manga_url}/chapter-1"),
            ScrapedChapter(id="2", number=2, url=f"{manga_url}/chapter-2"),
        ]
