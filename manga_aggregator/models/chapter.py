from manga_aggregator.models.base import Base

# Sole sentinel for "chapter number unknown / unparseable". 0 is a real chapter.
UNKNOWN_CHAPTER = -1.0


class ScanlationGroup(Base):
    id: str
    name: str
    url: str | None = None


class ScrapedChapter(Base):
    # Adapter-local, not guaranteed globally unique
    id: str
    number: float
    title: str | None = None
    url: str
    last_updated: str | None = None
    scanlation_group: ScanlationGroup | None = None

    def __repr__(self) -> str:
        return f"<ScrapedChapter(number={self.number}, url={self.url!r})>"
