from manga_aggregator.models import SearchResult
from manga_aggregator.scrapers.enrichment import enrich_results


def _results(n: int) -> list[SearchResult]:
    return [SearchResult(id=str(i), title=f"T{i}", url=f"https://x/{i}") for i in range(n)]


async def test_enricher_updates_results():
    async def enricher(result):
        return result.model_copy(update={"latest_chapter": 10.0})

    enriched = await enrich_results(_results(3), enricher)
    assert [r.latest_chapter for r in enriched] == [10.0, 10.0, 10.0]


async def test_failed_enrichment_keeps_base_result():
    async def enricher(result):
        if result.id == "1":
            raise RuntimeError("second round-trip failed")
        if result.id == "2":
            return None
        return result.model_copy(update={"last_updated": "today"})

    enriched = await enrich_results(_results(3), enricher)
    assert [r.last_updated for r in enriched] == ["today", "", ""]
    assert [r.id for r in enriched] == ["0", "1", "2"]


async def test_limit_truncates_before_enriching():
    calls = []

    async def enricher(result):
        calls.append(result.id)
        return result

    enriched = await enrich_results(_results(8), enricher, limit=5)
    assert len(enriched) == 5
    assert sorted(calls) == ["0", "1", "2", "3", "4"]
