#!/usr/bin/env python3
"""
Live smoke check against the real upstream sites.
Run after: pip install -e .

    python scripts/check_sources.py                 # probe every source
    python scripts/check_sources.py mgeko "solo"    # search + chapters for one
"""
import asyncio
import sys


async def check_health():
    from manga_aggregator.scrapers import get_registry
    from manga_aggregator.services import check_all_sources_health

    registry = get_registry()

    print("Probing all sources...")
    print("-" * 50)

    try:
        results = await check_all_sources_health(registry.get_all_scrapers())
        for name, health in sorted(results.items()):
            mark = "✓" if health.status == "healthy" else "✗"
            print(f"{mark} {name:<12} {health.status:<10} {health.response_time}ms  {health.message}")
    finally:
        await registry.close()


async def check_source(source: str, query: str):
    from manga_aggregator.scrapers import get_registry
    from manga_aggregator.services import SearchAggregator

    registry = get_registry()
    aggregator = SearchAggregator(registry)

    print(f"Searching {source} for {query!r}...")
    print("-" * 50)

    try:
        results = await aggregator.search_source(source, query)
        print(f"✓ Results: {len(results)}")
        for result in results:
            print(f"  {result.title} (latest: {result.latest_chapter:g}) {result.url}")

        if results:
            first = results[0]
            print(f"\nListing chapters: {first.url}")
            scraper, chapters = await aggregator.get_chapters(first.url, source)
            print(f"✓ Chapters found: {len(chapters)}")
            if chapters:
                print(f"  First: {chapters[0].number:g}  Last: {chapters[-1].number:g}")

    except Exception as e:
        print(f"✗ Error: {e}")
        import traceback

        traceback.print_exc()

    finally:
        await registry.close()


async def main():
    print("=" * 50)
    print("Manga Aggregator Source Check")
    print("=" * 50)

    if len(sys.argv) >= 3:
        await check_source(sys.argv[1], sys.argv[2])
    else:
        await check_health()

    print("\n" + "=" * 50)
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
