from collections.abc import Iterable

from manga_aggregator.frontpages.base import BaseFrontpage
from manga_aggregator.frontpages.comix import ComixFrontpage
from manga_aggregator.models import FrontpageInfo


class FrontpageRegistry:
    def __init__(self, frontpages: Iterable[BaseFrontpage]):
        self._frontpages = tuple(frontpages)

    def get_frontpage(self, source_id: str) -> BaseFrontpage | None:
        wanted = source_id.strip().lower()
        for frontpage in self._frontpages:
            if frontpage.get_source_id().lower() == wanted:
                return frontpage
        return None

    def get_all_frontpages(self) -> list[BaseFrontpage]:
        return list(self._frontpages)

    def get_all_frontpage_info(self) -> list[FrontpageInfo]:
        return [fp.get_info() for fp in self._frontpages]

    def get_source_ids(self) -> list[str]:
        return [fp.get_source_id() for fp in self._frontpages]


# Global instance
_frontpage_registry: FrontpageRegistry | None = None


def get_frontpage_registry() -> FrontpageRegistry:
    global _frontpage_registry
    if _frontpage_registry is None:
        _frontpage_registry = FrontpageRegistry([ComixFrontpage()])
    return _frontpage_registry


__all__ = [
    "BaseFrontpage",
    "ComixFrontpage",
    "FrontpageRegistry",
    "get_frontpage_registry",
]
