from manga_aggregator.models.base import Base
from manga_aggregator.models.chapter import UNKNOWN_CHAPTER, ScanlationGroup, ScrapedChapter
from manga_aggregator.models.frontpage import (
    FrontpageFetchOptions,
    FrontpageInfo,
    FrontpageManga,
    FrontpageSection,
    FrontpageSectionConfig,
    FrontpageSectionSummary,
    FrontpageSectionType,
)
from manga_aggregator.models.series import MangaInfo, SearchResult
from manga_aggregator.models.source import (
    SearchSummary,
    SourceHealthResult,
    SourceInfo,
    SourceSearchResult,
    SourceStatus,
    SourceType,
)

__all__ = [
    "Base",
    "UNKNOWN_CHAPTER",
    "ScanlationGroup",
    "ScrapedChapter",
    "FrontpageFetchOptions",
    "FrontpageInfo",
    "FrontpageManga",
    "FrontpageSection",
    "FrontpageSectionConfig",
    "FrontpageSectionSummary",
    "FrontpageSectionType",
    "MangaInfo",
    "SearchResult",
    "SearchSummary",
    "SourceHealthResult",
    "SourceInfo",
    "SourceSearchResult",
    "SourceStatus",
    "SourceType",
]
