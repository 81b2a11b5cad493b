import enum
from typing import Literal

from manga_aggregator.models.base import Base
from manga_aggregator.models.series import SearchResult

SourceType = Literal["scanlator", "aggregator"]


class SourceInfo(Base):
    """Static adapter identity, not tied to a request."""

    id: str
    name: str
    base_url: str
    description: str | None = None
    client_only: bool = False
    type: SourceType


class SourceStatus(str, enum.Enum):
    HEALTHY = "healthy"
    CLOUDFLARE = "cloudflare"
    TIMEOUT = "timeout"
    ERROR = "error"


class SourceHealthResult(Base):
    status: SourceStatus
    message: str
    response_time: int | None = None  # milliseconds
    last_checked: str


class SourceSearchResult(Base):
    """Per-source record of an all-sources search."""

    source: str
    results: list[SearchResult] = []
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class SearchSummary(Base):
    done: bool = True
    total_sources: int
    completed_sources: int
    failed_sources: int
