from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from vortex.api.router import api_router
from vortex.config import get_settings
from vortex.core.exceptions import DigestError, SettingsNotFoundError, SettingsValidationError
from vortex.core.logging import get_logger, setup_logging
from vortex.core.rate_limit import limiter, rate_limit_exceeded_handler
from vortex.core.scheduler import start_scheduler, stop_scheduler
from vortex.storage import get_digest_store

logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    # Startup
    setup_logging()
    store = get_digest_store()
    await start_scheduler()
    yield
    # Shutdown
    await stop_scheduler()
    await store.close()


app = FastAPI(
    title="Vortex Digest",
    description="Scheduled AI news digests with push delivery",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/api/docs" if settings.debug else None,
    redoc_url="/api/redoc" if settings.debug else None,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.base_url, "http://localhost:8081"],  # Expo dev server
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(SettingsValidationError)
async def settings_validation_handler(request: Request, exc: SettingsValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(SettingsNotFoundError)
async def settings_not_found_handler(request: Request, exc: SettingsNotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "error": str(exc)},
    )


@app.exception_handler(DigestError)
async def digest_error_handler(request: Request, exc: DigestError) -> JSONResponse:
    """Anything else from the digest pipeline that escaped a request handler."""
    logger.bind(path=request.url.path, error_type=type(exc).__name__, error=str(exc)).error(
        "request_failed"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(exc)},
    )


# Include API routes
app.include_router(api_router)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers."""
    return {"status": "healthy"}
