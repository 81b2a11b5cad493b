from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from manga_aggregator import __version__
from manga_aggregator.config import settings
from manga_aggregator.core.exceptions import (
    NotFoundError,
    ScraperError,
    UnknownSectionError,
    UnsupportedSourceError,
)
from manga_aggregator.core.logging import get_logger, setup_logging
from manga_aggregator.scrapers import get_registry
from manga_aggregator.scrapers.bypass import get_bypass_fetcher

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    # Startup
    setup_logging()
    logger.info("app_started", env=settings.app_env, solver=settings.solver_url)

    yield

    # Shutdown
    await get_registry().close()
    await get_bypass_fetcher().close()


def _error(status_code: int, exc: Exception) -> JSONResponse:
    return JSONResponse({"detail": str(exc)}, status_code=status_code)


async def bad_request_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error(400, exc)


async def not_found_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error(404, exc)


async def upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("upstream_error", path=request.url.path, error=str(exc), type=type(exc).__name__)
    return _error(502, exc)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path)
    return _error(500, exc)


def create_app() -> FastAPI:
    """Create FastAPI application."""
    app = FastAPI(
        title="Manga Aggregator API",
        description="Search, chapter lists and frontpages across many manga sources",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Errors, most specific first
    app.add_exception_handler(UnsupportedSourceError, bad_request_handler)
    app.add_exception_handler(UnknownSectionError, bad_request_handler)
    app.add_exception_handler(ValueError, bad_request_handler)
    app.add_exception_handler(NotFoundError, not_found_handler)
    app.add_exception_handler(ScraperError, upstream_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Include routers
    from manga_aggregator.api.routes import chapters, frontpage, health, proxy, search, sources

    app.include_router(health.router, tags=["Health"])
    app.include_router(sources.router, prefix="/api/sources", tags=["Sources"])
    app.include_router(search.router, prefix="/api", tags=["Search"])
    app.include_router(chapters.router, prefix="/api", tags=["Chapters"])
    app.include_router(frontpage.router, prefix="/api", tags=["Frontpage"])
    app.include_router(proxy.router, prefix="/api", tags=["Proxy"])

    return app


app = create_app()


def main() -> None:
    uvicorn.run(
        "manga_aggregator.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
