from manga_aggregator.models.base import Base
from manga_aggregator.models.chapter import UNKNOWN_CHAPTER


class MangaInfo(Base):
    title: str
    id: str


class SearchResult(Base):
    """One matched title from one source."""

    id: str
    title: str
    url: str
    cover_image: str | None = None
    latest_chapter: float = UNKNOWN_CHAPTER
    last_updated: str = ""
    last_updated_timestamp: int | None = None  # epoch milliseconds
    rating: float | None = None
    followers: str | None = None
