import re
from collections.abc import Iterable, Sequence

from manga_aggregator.models import UNKNOWN_CHAPTER, ScrapedChapter

# "Chapter 12+13" / "Chapter 12 - 13": merged releases are rejected, never guessed.
CONCATENATED_RE = re.compile(r"Chapter\s+(\d+)\s*[+\-]\s*(\d+)", re.I)
TEXT_RE = re.compile(r"Chapter\s+(\d+(?:\.\d+)?)", re.I)

# Group 1 is the chapter, optional group 2 a decimal-encoded fraction ("12-5" -> 12.5).
# Fractions are literal decimal digits, so "12-10" would equal "12-1"; such
# multi-digit fractions ending in 0 are rejected like concatenated ranges.
DEFAULT_URL_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"chapter[/-](\d+)(?:[-./](\d+))?", re.I),
    re.compile(r"-ch[/-](\d+)(?:[-./](\d+))?", re.I),
)


def _from_match(match: re.Match[str]) -> float:
    main = int(match.group(1))
    fraction = match.group(2) if match.re.groups >= 2 else None
    if fraction:
        if len(fraction) > 1 and fraction.endswith("0"):
            return UNKNOWN_CHAPTER
        return main + int(fraction) / 10 ** len(fraction)
    return float(main)


def parse_chapter_number(
    url: str | None,
    text: str | None = None,
    url_patterns: Sequence[re.Pattern[str]] = DEFAULT_URL_PATTERNS,
) -> float:
    """
    Extract a chapter number, text first, then URL.

    Returns ``UNKNOWN_CHAPTER`` (-1) when nothing usable is found.
    """
    if text:
        if CONCATENATED_RE.search(text):
            return UNKNOWN_CHAPTER

        match = TEXT_RE.search(text)
        if match:
            return float(match.group(1))

    if url:
        for pattern in url_patterns:
            match = pattern.search(url)
            if match:
                return _from_match(match)

    return UNKNOWN_CHAPTER


def finalize_chapters(chapters: Iterable[ScrapedChapter]) -> list[ScrapedChapter]:
    """Drop unknown numbers, keep the first chapter seen per number, sort ascending."""
    seen: set[float] = set()
    result = []
    for chapter in chapters:
        if chapter.number < 0 or chapter.number in seen:
            continue
        seen.add(chapter.number)
        result.append(chapter)

    result.sort(key=lambda c: c.number)
    return result
