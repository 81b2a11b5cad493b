from abc import ABC, abstractmethod
from typing import Any

from manga_aggregator.core.exceptions import UnknownSectionError
from manga_aggregator.models import (
    FrontpageFetchOptions,
    FrontpageInfo,
    FrontpageManga,
    FrontpageSection,
    FrontpageSectionConfig,
    FrontpageSectionSummary,
)
from manga_aggregator.scrapers.normalize import first_present, to_float, to_str


class BaseFrontpage(ABC):
    """Curated listings (trending, latest, ...) of one source."""

    @abstractmethod
    def get_source_id(self) -> str:
        pass

    @abstractmethod
    def get_source_name(self) -> str:
        pass

    @abstractmethod
    def get_available_sections(self) -> list[FrontpageSectionConfig]:
        pass

    @abstractmethod
    async def fetch_section(
        self,
        section_id: str,
        options: FrontpageFetchOptions | None = None,
    ) -> FrontpageSection:
        """
        Fetch one section. Omitted options default to page 1, 30 items
        and a 7-day window; ``days`` only applies to time-filtered sections.

        Raises UnknownSectionError for ids not in get_available_sections().
        """

    def get_section_config(self, section_id: str) -> FrontpageSectionConfig:
        sections = self.get_available_sections()
        for section in sections:
            if section.id == section_id:
                return section
        raise UnknownSectionError(section_id, [s.id for s in sections])

    def get_info(self) -> FrontpageInfo:
        return FrontpageInfo(
            source_id=self.get_source_id(),
            source_name=self.get_source_name(),
            available_sections=[
                FrontpageSectionSummary(
                    id=s.id,
                    title=s.title,
                    type=s.type,
                    supports_time_filter=s.supports_time_filter,
                    available_time_filters=s.available_time_filters,
                )
                for s in self.get_available_sections()
            ],
        )

    def build_section(
        self, config: FrontpageSectionConfig, items: list[FrontpageManga]
    ) -> FrontpageSection:
        return FrontpageSection(
            id=config.id,
            title=config.title,
            type=config.type,
            items=items,
            supports_pagination=config.supports_pagination,
            supports_time_filter=config.supports_time_filter,
            available_time_filters=config.available_time_filters,
        )

    def map_to_frontpage_manga(self, item: dict[str, Any], base_url: str) -> FrontpageManga:
        """Default mapping for loosely-shaped listing items."""
        item_id = to_str(first_present(item, "id", "hash_id"), "")
        return FrontpageManga(
            id=item_id,
            title=to_str(first_present(item, "title"), item_id),
            url=f"{base_url}/{first_present(item, 'slug', 'id', 'hash_id', default='')}",
            cover_image=first_present(item, "coverImage", "poster.large", "poster.medium", "poster.small"),
            latest_chapter=to_float(first_present(item, "latestChapter", "latest_chapter"), -1.0),
            last_updated=to_str(first_present(item, "lastUpdated"), ""),
            last_updated_timestamp=first_present(item, "lastUpdatedTimestamp"),
            rating=to_float(first_present(item, "rating", "rated_avg")),
            followers=to_str(first_present(item, "followers", "follows_total")),
            type=item.get("type"),
            status=item.get("status"),
            synopsis=item.get("synopsis"),
        )
