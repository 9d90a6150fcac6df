"""FastAPI application entry point.

Store Finder API - store listings, search, reviews and favourites.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from http import HTTPStatus
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefinder.routes import api_router
from storefinder.schemas import ErrorResponse
from storefinder.services.editing import NotStoreOwnerError
from storefinder.services.photos import PhotoTypeError
from storefinder.settings import get_settings
from storefinder.stores.postgres import init_db, close_db, ping_db
from storefinder.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Startup
    try:
        await init_db()
        await ping_db()
        logger.info("Postgres connected")
    except Exception:
        logger.exception("Postgres init failed")

    # Redis only backs the read-model cache; run without it if unavailable
    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed")
        await close_redis()

    yield

    # Shutdown
    await close_redis()
    await close_db()


def _error(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.of(code, message),
    )


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Store listings, search, reviews and favourites",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Notice"],
    )

    @app.exception_handler(NotStoreOwnerError)
    async def not_owner_handler(request: Request, exc: NotStoreOwnerError) -> JSONResponse:
        """Non-owner tried to edit a store."""
        return _error(403, "NOT_STORE_OWNER", str(exc))

    @app.exception_handler(PhotoTypeError)
    async def photo_type_handler(request: Request, exc: PhotoTypeError) -> JSONResponse:
        """Upload rejected because it is not an image."""
        return _error(400, "INVALID_FILE_TYPE", str(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        """HTTP errors in the same envelope as every other error.

        Routes raise with an ErrorResponse body as detail; anything else
        (unknown path, wrong method) is wrapped using the status name.
        """
        if isinstance(exc.detail, dict) and "error" in exc.detail:
            content = exc.detail
        else:
            content = ErrorResponse.of(HTTPStatus(exc.status_code).name, str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return _error(500, "INTERNAL_ERROR", str(exc) if settings.debug else "Internal server error")

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    # Resized store photos
    app.mount(
        "/uploads",
        StaticFiles(directory=settings.uploads_dir, check_dir=False),
        name="uploads",
    )

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "storefinder.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
