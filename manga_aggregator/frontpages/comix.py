from collections.abc import Awaitable, Callable
from typing import Any

from manga_aggregator.core.exceptions import UnknownSectionError
from manga_aggregator.core.logging import get_logger
from manga_aggregator.frontpages.base import BaseFrontpage
from manga_aggregator.models import (
    FrontpageFetchOptions,
    FrontpageManga,
    FrontpageSection,
    FrontpageSectionConfig,
    FrontpageSectionType,
)
from manga_aggregator.scrapers.bypass import get_bypass_fetcher
from manga_aggregator.scrapers.normalize import epoch_to_display, first_present

logger = get_logger("frontpage.comix")

JsonFetcher = Callable[[str], Awaitable[Any]]

TIME_FILTERS = [1, 7, 30, 90, 180, 365]


class ComixFrontpage(BaseFrontpage):
    BASE_URL = "https://comix.to"
    API_BASE = "https://comix.to/api/v2"
    # NSFW genre ids left out of every listing
    EXCLUDED_GENRES = (87264, 87266, 87268, 87265)

    SECTIONS = (
        FrontpageSectionConfig(
            id="trending",
            title="Most Recent Popular",
            type=FrontpageSectionType.TRENDING,
            supports_pagination=False,
            supports_time_filter=True,
            available_time_filters=TIME_FILTERS,
        ),
        FrontpageSectionConfig(
            id="most_followed",
            title="Most Followed New Comics",
            type=FrontpageSectionType.MOST_FOLLOWED,
            supports_pagination=False,
            supports_time_filter=True,
            available_time_filters=TIME_FILTERS,
        ),
        FrontpageSectionConfig(
            id="latest_hot",
            title="Latest Updates (Hot)",
            type=FrontpageSectionType.LATEST_HOT,
            supports_pagination=True,
            supports_time_filter=False,
        ),
        FrontpageSectionConfig(
            id="latest_new",
            title="Latest Updates (New)",
            type=FrontpageSectionType.LATEST_NEW,
            supports_pagination=True,
            supports_time_filter=False,
        ),
        FrontpageSectionConfig(
            id="recently_added",
            title="Recently Added",
            type=FrontpageSectionType.RECENTLY_ADDED,
            supports_pagination=True,
            supports_time_filter=False,
        ),
        FrontpageSectionConfig(
            id="completed",
            title="Complete Series",
            type=FrontpageSectionType.COMPLETED,
            supports_pagination=True,
            supports_time_filter=False,
        ),
    )

    def __init__(self, fetch_json: JsonFetcher | None = None):
        self._fetch_json = fetch_json

    def get_source_id(self) -> str:
        return "comix"

    def get_source_name(self) -> str:
        return "Comix"

    def get_available_sections(self) -> list[FrontpageSectionConfig]:
        return list(self.SECTIONS)

    def _exclude_genres(self) -> str:
        return "&".join(f"exclude_genres[]={g}" for g in self.EXCLUDED_GENRES)

    def build_url(self, section_id: str, options: FrontpageFetchOptions) -> str:
        page, limit, days = options.page, options.limit, options.days
        base = f"{self.API_BASE}/manga?{self._exclude_genres()}"

        if section_id == "trending":
            return f"{self.API_BASE}/top?{self._exclude_genres()}&type=trending&days={days}&limit={limit}"
        if section_id == "most_followed":
            return f"{self.API_BASE}/top?{self._exclude_genres()}&type=follows&days={days}&limit={limit}"
        if section_id == "latest_hot":
            return f"{base}&scope=hot&limit={limit}&order[chapter_updated_at]=desc&page={page}"
        if section_id == "latest_new":
            return f"{base}&scope=new&limit={limit}&order[chapter_updated_at]=desc&page={page}"
        if section_id == "recently_added":
            return f"{base}&order[created_at]=desc&limit={limit}&page={page}"
        if section_id == "completed":
            return f"{base}&statuses[]=finished&order[chapter_updated_at]=desc&limit={limit}&page={page}"

        raise UnknownSectionError(section_id, [s.id for s in self.SECTIONS])

    async def fetch_section(
        self,
        section_id: str,
        options: FrontpageFetchOptions | None = None,
    ) -> FrontpageSection:
        config = self.get_section_config(section_id)
        options = options or FrontpageFetchOptions()
        url = self.build_url(section_id, options)

        fetch_json = self._fetch_json or get_bypass_fetcher().fetch_json
        data = await fetch_json(url)

        items = first_present(data, "result.items", default=[])
        if not isinstance(items, list):
            items = []

        logger.debug("frontpage_fetched", section=section_id, items=len(items), page=options.page)
        return self.build_section(config, [self.map_to_frontpage_manga(i, self.BASE_URL) for i in items])

    def map_to_frontpage_manga(self, item: dict[str, Any], base_url: str) -> FrontpageManga:
        manga = super().map_to_frontpage_manga(item, base_url)
        timestamp, updated = epoch_to_display(item.get("chapter_updated_at"))
        return manga.model_copy(update={
            "id": item.get("hash_id") or manga.id,
            "url": f"{base_url}/title/{item.get('hash_id')}-{item.get('slug', '')}",
            "last_updated": updated,
            "last_updated_timestamp": timestamp,
        })
