from fastapi import APIRouter, Depends

from manga_aggregator import __version__
from manga_aggregator.frontpages import FrontpageRegistry, get_frontpage_registry
from manga_aggregator.scrapers import ScraperRegistry, get_registry

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check."""
    return {"status": "healthy", "version": __version__}


@router.get("/health/ready")
async def readiness_check(
    registry: ScraperRegistry = Depends(get_registry),
    frontpages: FrontpageRegistry = Depends(get_frontpage_registry),
):
    """
    Readiness check - adapters are registered. Upstream sites are not
    contacted here; use /api/sources/health for that.
    """
    checks = {
        "sources": len(registry),
        "frontpages": len(frontpages.get_all_frontpages()),
    }
    ready = checks["sources"] > 0

    return {
        "status": "ready" if ready else "not_ready",
        "checks": checks,
    }


@router.get("/health/live")
async def liveness_check():
    """Liveness check - app is running."""
    return {"status": "alive"}
