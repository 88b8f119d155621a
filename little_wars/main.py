"""
Little Wars service entry point.
FastAPI app exposing per-session engines and the external resolver endpoint.
"""

import sys
from contextlib import asynccontextmanager
from pathlib import Path

# Add parent directory to path so imports work when running directly
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).parent.parent))

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from little_wars.config import settings
from little_wars.core.exceptions import CallerError, GameError
from little_wars.core.logger import get_logger, init_logging
from little_wars.core.scheduler import SessionJanitor
from little_wars.routers import api

# Initialize logging first
init_logging(
    level=settings.logging.level,
    log_to_file=settings.logging.log_to_file,
    formatter=settings.logging.formatter,
    log_file_path=settings.paths.get_log_path(),
)
logger = get_logger("main")

janitor = SessionJanitor(api.registry, interval_seconds=settings.server.session_cleanup_interval)


# ==================== Application Setup ====================


@asynccontextmanager
async def lifespan(app: FastAPI):
    janitor.start()
    yield
    janitor.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.server.name,
        docs_url="/docs" if settings.server.debug else None,
        redoc_url=None,
        lifespan=lifespan,
    )

    if api.RATE_LIMIT_AVAILABLE:
        app.state.limiter = api.limiter
        app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.add_exception_handler(GameError, game_error_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    # CORS middleware (for development)
    if settings.server.debug:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(api.router, prefix="/api")

    return app


# ==================== Exception Handlers ====================


async def game_error_handler(request: Request, exc: GameError):
    """Engine errors become JSON responses; caller errors are expected traffic."""
    if isinstance(exc, CallerError):
        logger.info(f"Rejected {request.url.path}: {exc.message}")
    else:
        logger.error(f"Engine error on {request.url.path}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": type(exc).__name__, "detail": exc.message},
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions gracefully."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.server.debug else None,
        },
    )


app = create_app()

logger.info(f"Application '{settings.server.name}' initialized")
logger.info(f"Resolver mode: {settings.resolver.mode}, strategy: {settings.resolver.strategy}")


# ==================== Main Entry Point ====================

if __name__ == "__main__":
    logger.info(f"Starting server on {settings.server.host}:{settings.server.port}")
    uvicorn.run(
        "little_wars.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.debug,
    )
