import enum

from pydantic import Field

from manga_aggregator.models.base import Base
from manga_aggregator.models.series import SearchResult


class FrontpageSectionType(str, enum.Enum):
    TRENDING = "trending"
    MOST_FOLLOWED = "most_followed"
    LATEST_HOT = "latest_hot"
    LATEST_NEW = "latest_new"
    RECENTLY_ADDED = "recently_added"
    COMPLETED = "completed"


class FrontpageManga(SearchResult):
    type: str | None = None
    status: str | None = None
    synopsis: str | None = None


class FrontpageSectionConfig(Base):
    id: str
    title: str
    type: FrontpageSectionType
    supports_pagination: bool
    supports_time_filter: bool
    available_time_filters: list[int] | None = None


class FrontpageFetchOptions(Base):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=30, ge=1, le=100)
    days: int = Field(default=7, ge=1)  # time window for trending-style sections


class FrontpageSection(Base):
    id: str
    title: str
    type: FrontpageSectionType
    items: list[FrontpageManga]
    supports_pagination: bool
    supports_time_filter: bool
    available_time_filters: list[int] | None = None


class FrontpageSectionSummary(Base):
    id: str
    title: str
    type: FrontpageSectionType
    supports_time_filter: bool
    available_time_filters: list[int] | None = None


class FrontpageInfo(Base):
    source_id: str
    source_name: str
    available_sections: list[FrontpageSectionSummary]
