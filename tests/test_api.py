import json

import httpx
import pytest
from fastapi.testclient import TestClient

from manga_aggregator.api.app import create_app
from manga_aggregator.api.dependencies import get_http_client
from manga_aggregator.core.exceptions import FetchError, NotFoundError
from manga_aggregator.frontpages import ComixFrontpage, FrontpageRegistry, get_frontpage_registry
from manga_aggregator.scrapers import ScraperRegistry, get_registry
from tests.helpers import FakeScraper, html_response


class FakeFrontpageFetch:
    def __init__(self):
        self.urls: list[str] = []

    async def __call__(self, url: str):
        self.urls.append(url)
        return {"result": {"items": [{"hash_id": "abc12", "title": "Solo Leveling", "slug": "solo-leveling"}]}}


@pytest.fixture
def sources():
    return [FakeScraper("Alpha"), FakeScraper("Beta", error=FetchError("upstream down"))]


@pytest.fixture
def frontpage_fetch():
    return FakeFrontpageFetch()


@pytest.fixture
def upstream_pages():
    return {}


@pytest.fixture
def client(sources, frontpage_fetch, upstream_pages):
    app = create_app()
    registry = ScraperRegistry(sources)
    frontpages = FrontpageRegistry([ComixFrontpage(fetch_json=frontpage_fetch)])

    def handler(request: httpx.Request) -> httpx.Response:
        if isinstance(upstream_pages.get("error"), Exception):
            raise upstream_pages["error"]
        body = upstream_pages.get(str(request.url))
        if body is None:
            return html_response("gone", 410)
        return html_response(body)

    async def http_client():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as c:
            yield c

    app.dependency_overrides[get_registry] = lambda: registry
    app.dependency_overrides[get_frontpage_registry] = lambda: frontpages
    app.dependency_overrides[get_http_client] = http_client
    return TestClient(app)


def test_health(client):
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/health/live").json() == {"status": "alive"}


def test_readiness_counts_registered_adapters(client):
    body = client.get("/health/ready").json()
    assert body == {"status": "ready", "checks": {"sources": 2, "frontpages": 1}}


def test_list_sources(client):
    sources = client.get("/api/sources").json()["sources"]
    assert [s["id"] for s in sources] == ["alpha", "beta"]
    assert sources[0]["baseUrl"] == "https://fake.example"
    assert sources[0]["clientOnly"] is False


def test_source_health_single_and_all(client):
    single = client.get("/api/sources/health", params={"source": "alpha"}).json()
    assert single["source"] == "Alpha"
    assert single["health"]["status"] == "healthy"
    assert single["health"]["message"] == "Source is operational"
    assert "responseTime" in single["health"]

    every = client.get("/api/sources/health").json()["sources"]
    assert every["alpha"]["status"] == "healthy"
    assert every["beta"]["status"] == "error"


def test_source_health_unknown(client):
    response = client.get("/api/sources/health", params={"source": "nope"})
    assert response.status_code == 400
    assert "alpha, beta" in response.json()["detail"]


def test_search_single_source(client):
    response = client.post("/api/search", json={"query": "solo", "source": "ALPHA"})
    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "Alpha"
    assert body["results"][0]["title"] == "Alpha title"
    assert body["results"][0]["latestChapter"] == -1


def test_search_single_source_failure_is_502(client):
    response = client.post("/api/search", json={"query": "solo", "source": "beta"})
    assert response.status_code == 502
    assert response.json() == {"detail": "upstream down"}


def test_search_all_sources(client):
    body = client.post("/api/search", json={"query": "solo", "source": "all"}).json()
    by_source = {r["source"]: r for r in body["sources"]}
    assert by_source["Alpha"]["results"][0]["title"] == "Alpha title"
    assert by_source["Beta"]["error"] == "upstream down"
    assert by_source["Beta"]["results"] == []


def test_search_stream_ndjson(client):
    response = client.post("/api/search", json={"query": "solo", "stream": True})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")

    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert {line["source"] for line in lines[:-1]} == {"Alpha", "Beta"}
    assert lines[-1] == {"done": True, "totalSources": 2, "completedSources": 2, "failedSources": 1}


def test_search_rejects_blank_query(client):
    response = client.post("/api/search", json={"query": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Search query is required"


def test_search_unknown_source_lists_available(client):
    response = client.post("/api/search", json={"query": "solo", "source": "nope"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Unsupported source 'nope'. Available sources: alpha, beta"


def test_chapters_by_url(client):
    response = client.post("/api/chapters", json={"url": "https://alpha.example/title/1"})
    body = response.json()
    assert body["source"] == "Alpha"
    assert body["totalChapters"] == 2
    assert [c["number"] for c in body["chapters"]] == [1, 2]


def test_chapters_unknown_url(client):
    response = client.post("/api/chapters", json={"url": "https://unknown.example/title/1"})
    assert response.status_code == 400
    assert response.json()["detail"].startswith("No scraper found for this URL")


def test_manga_info_by_source(client):
    response = client.post("/api/manga-info", json={"url": "https://x.example/t", "source": "beta"})
    assert response.json() == {"title": "Beta title", "id": "1", "source": "Beta"}


def test_manga_info_not_found(client, sources):
    async def missing(url):
        raise NotFoundError(f"Could not resolve title at {url}")

    sources[0].extract_manga_info = missing
    response = client.post("/api/manga-info", json={"url": "https://alpha.example/title/9"})
    assert response.status_code == 404
    assert "Could not resolve title" in response.json()["detail"]


def test_frontpage_sources(client):
    body = client.get("/api/frontpage").json()
    assert body["sourceIds"] == ["comix"]
    assert body["sources"][0]["sourceName"] == "Comix"


def test_frontpage_section(client, frontpage_fetch):
    response = client.post(
        "/api/frontpage",
        json={"source": "Comix", "section": "trending", "days": 30},
    )
    body = response.json()
    assert body["source"] == "comix"
    assert body["sourceName"] == "Comix"
    assert body["section"]["id"] == "trending"
    assert body["section"]["items"][0]["url"] == "https://comix.to/title/abc12-solo-leveling"
    assert isinstance(body["fetchedAt"], int)
    assert "days=30&limit=30" in frontpage_fetch.urls[0]


def test_frontpage_unknown_section_and_source(client):
    response = client.post("/api/frontpage", json={"source": "comix", "section": "nope"})
    assert response.status_code == 400
    assert "Available sections" in response.json()["detail"]

    response = client.post("/api/frontpage", json={"source": "mangapark", "section": "trending"})
    assert response.status_code == 400
    assert response.json()["detail"].endswith("Available sources: comix")


def test_proxy_rejects_other_hosts(client):
    response = client.get("/api/proxy/html", params={"url": "https://evil.example/page"})
    assert response.status_code == 400
    assert "asuracomic.net" in response.json()["detail"]


def test_proxy_passes_html_through(client, upstream_pages):
    upstream_pages["https://asuracomic.net/series/solo"] = "<html>solo</html>"

    response = client.get("/api/proxy/html", params={"url": "https://asuracomic.net/series/solo"})
    assert response.status_code == 200
    assert response.text == "<html>solo</html>"
    assert response.headers["cache-control"] == "public, max-age=300"


def test_proxy_relays_upstream_status(client):
    response = client.get("/api/proxy/html", params={"url": "https://weebcentral.com/series/x"})
    assert response.status_code == 410
    assert response.json() == {"detail": "Failed to fetch HTML: 410"}


def test_proxy_network_failure_is_502(client, upstream_pages):
    upstream_pages["error"] = httpx.ConnectError("connection refused")
    response = client.get("/api/proxy/html", params={"url": "https://weebcentral.com/series/x"})
    assert response.status_code == 502
