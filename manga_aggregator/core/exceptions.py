"""Error taxonomy shared by adapters, the bypass pipeline and the API layer."""


class ScraperError(Exception):
    """Base class for every error raised by the aggregation core."""


class NetworkError(ScraperError):
    """All direct and bypass fetch paths were exhausted."""


class FetchError(ScraperError):
    """Every retry of the resilient fetch wrapper failed."""


class CloudflareBlockedError(FetchError):
    """Raised when a bot-challenge page is served instead of content."""


class NotFoundError(ScraperError):
    """An adapter could not resolve a URL or slug to a title."""


class ParseError(ScraperError):
    """Upstream response did not have the expected shape."""


class UnknownSectionError(ScraperError):
    """Frontpage section id not offered by the source."""

    def __init__(self, section_id: str, available: list[str] | None = None):
        self.section_id = section_id
        self.available = available or []
        message = f"Unknown section: {section_id}"
        if self.available:
            message += f". Available sections: {', '.join(self.available)}"
        super().__init__(message)


class UnsupportedSourceError(ScraperError):
    """Named source is not registered."""

    def __init__(self, source: str | None, available: list[str]):
        self.source = source
        self.available = available
        if source:
            message = f"Unsupported source '{source}'"
        else:
            message = "No scraper found for this URL"
        super().__init__(f"{message}. Available sources: {', '.join(available)}")
