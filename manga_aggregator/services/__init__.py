from manga_aggregator.services.aggregator import SearchAggregator, normalize_query
from manga_aggregator.services.health import (
    check_all_sources_health,
    check_source_health,
    classify_failure,
)

__all__ = [
    "SearchAggregator",
    "normalize_query",
    "check_all_sources_health",
    "check_source_health",
    "classify_failure",
]
