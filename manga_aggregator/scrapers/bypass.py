"""
Fetch-with-bypass primitive.

Direct fetch first; on a 403 or a challenge page the URL is handed to a
FlareSolverr-compatible solver. The cookies and user agent it returns are
cached for a short window so later calls can skip the (slow) solve.
"""
import enum
import json
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from bs4 import BeautifulSoup

from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import NetworkError, ParseError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.scrapers.challenge import detect_challenge, is_challenge_response

logger = get_logger("bypass")

JSON_ACCEPT = "application/json, text/plain, */*"


class CredentialState(str, enum.Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class SessionCredential:
    cookie_header: str
    user_agent: str
    expires_at: float


class CredentialCache:
    """
    Session credential obtained from the solver.

    Lifecycle: EMPTY until a solve stores cookies, FRESH until ``ttl`` elapses,
    then STALE (ignored) until the next solve overwrites it. Shared by every
    caller of one fetcher; last writer wins.
    """

    def __init__(self, ttl: float | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl if ttl is not None else settings.credential_ttl_seconds
        self._clock = clock
        self._credential: SessionCredential | None = None

    @property
    def state(self) -> CredentialState:
        if self._credential is None:
            return CredentialState.EMPTY
        if self._clock() < self._credential.expires_at:
            return CredentialState.FRESH
        return CredentialState.STALE

    def get(self) -> SessionCredential | None:
        if self.state is CredentialState.FRESH:
            return self._credential
        return None

    def store(self, cookies: list[dict[str, Any]], user_agent: str) -> None:
        cookie_header = "; ".join(
            f"{c['name']}={c['value']}" for c in cookies if c.get("name")
        )
        if not cookie_header:
            return
        self._credential = SessionCredential(
            cookie_header=cookie_header,
            user_agent=user_agent,
            expires_at=self._clock() + self.ttl,
        )
        logger.debug("credential_stored", cookies=len(cookies), ttl=self.ttl)

    def clear(self) -> None:
        self._credential = None


class BypassFetcher:
    """Direct fetch with challenge-solver escalation."""

    def __init__(
        self,
        solver_url: str | None = None,
        credentials: CredentialCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        user_agent: str | None = None,
        max_timeout: int | None = None,
    ):
        self.solver_url = solver_url or settings.solver_url
        self.credentials = credentials or CredentialCache()
        self.user_agent = user_agent or settings.scraper_user_agent
        self.max_timeout = max_timeout or settings.solver_max_timeout
        self._http_client = http_client

    def get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=settings.http_timeout,
                follow_redirects=True,
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def fetch_json(self, url: str) -> Any:
        """Fetch and parse JSON, escalating to the solver when challenged."""
        client = self.get_http_client()

        credential = self.credentials.get()
        if credential:
            try:
                response = await client.get(
                    url,
                    headers={
                        "User-Agent": credential.user_agent,
                        "Cookie": credential.cookie_header,
                        "Accept": JSON_ACCEPT,
                    },
                )
                if response.is_success:
                    return response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.debug("cached_credential_failed", url=url, error=str(e))

        try:
            response = await client.get(
                url,
                headers={"User-Agent": self.user_agent, "Accept": JSON_ACCEPT},
            )
        except httpx.HTTPError as e:
            logger.info("direct_fetch_failed", url=url, error=str(e))
        else:
            challenged = response.status_code == 403 or is_challenge_response(
                response.status_code, response.text, response.headers
            )
            if response.is_success and not challenged:
                try:
                    return response.json()
                except ValueError as e:
                    # Non-JSON 200 carrying challenge markers is a challenge too
                    if not detect_challenge(response.text, response.headers):
                        raise ParseError(f"Invalid JSON from {url}: {e}") from e
                    challenged = True
            if not challenged:
                raise NetworkError(f"HTTP {response.status_code}: {response.reason_phrase}")
            logger.info("challenge_detected", url=url, status=response.status_code)

        body = await self.fetch_text_via_solver(url)
        try:
            return json.loads(body)
        except ValueError as e:
            raise ParseError(f"Solver returned non-JSON body for {url}: {e}") from e

    async def fetch_text_via_solver(self, url: str) -> str:
        """Have the solver fetch ``url``; returns the page body."""
        logger.info("solver_escalation", url=url, solver=self.solver_url)
        client = self.get_http_client()

        try:
            response = await client.post(
                self.solver_url,
                json={"cmd": "request.get", "url": url, "maxTimeout": self.max_timeout},
                timeout=self.max_timeout / 1000 + 10,
            )
        except httpx.HTTPError as e:
            raise NetworkError(f"Challenge solver unreachable: {e}") from e

        if not response.is_success:
            raise NetworkError(f"Challenge solver returned HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise NetworkError(f"Challenge solver returned invalid JSON: {e}") from e

        if data.get("status") != "ok":
            raise NetworkError(f"Challenge solver failed: {data.get('message', 'unknown error')}")

        solution = data.get("solution") or {}
        cookies = solution.get("cookies") or []
        if cookies:
            self.credentials.store(cookies, solution.get("userAgent") or self.user_agent)

        return unwrap_solver_body(solution.get("response") or "")


def unwrap_solver_body(body: str) -> str:
    """The solver renders JSON inside a browser page; take the <pre> text if present."""
    if "<pre" not in body:
        return body
    pre = BeautifulSoup(body, "lxml").find("pre")
    return pre.get_text() if pre else body


# Global instance
_bypass_fetcher: BypassFetcher | None = None


def get_bypass_fetcher() -> BypassFetcher:
    """Get the process-wide bypass fetcher (and its credential cache)."""
    global _bypass_fetcher
    if _bypass_fetcher is None:
        _bypass_fetcher = BypassFetcher()
    return _bypass_fetcher


async def fetch_json_with_bypass(url: str) -> Any:
    return await get_bypass_fetcher().fetch_json(url)
