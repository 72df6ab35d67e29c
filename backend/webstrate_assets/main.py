"""FastAPI application entry point."""
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from webstrate_assets.api import api_router
from webstrate_assets.config import get_settings
from webstrate_assets.context import AssetContext
from webstrate_assets.database import init_db
from webstrate_assets.exceptions import AssetError
from webstrate_assets.utils.logging import logger, setup_logging
from webstrate_assets.utils.rate_limiter import limiter

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    app.state.assets = AssetContext.from_settings(settings)
    logger.info("Storing assets in {}", app.state.assets.storage.base_dir)

    yield

    # Shutdown
    await app.state.assets.close()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Versioned, deduplicated assets of collaborative documents",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(AssetError)
async def asset_error_handler(request: Request, exc: AssetError):
    if exc.status_code >= 500:
        logger.error("{} {}: {}", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    logger.error("Upstream call failed during {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": "Upstream service unavailable"})


# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


# Health check endpoint
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}
