import pytest

from tests.helpers import FakeScraper


@pytest.fixture
def make_scraper():
    """Build a FakeScraper with zero retry delay."""

    def _make(name: str = "Fake", **kwargs) -> FakeScraper:
        kwargs.setdefault("retry_delay", 0)
        return FakeScraper(name, **kwargs)

    return _make
