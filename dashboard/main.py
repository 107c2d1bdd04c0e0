"""Main FastAPI application entry point for the token quota dashboard."""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

# Load environment variables from .env file
load_dotenv()

from dashboard.config import get_config, ConfigurationError
from dashboard.errors import AnalyticsError
from dashboard.logger import setup_logger
from dashboard.routes.analytics import router as analytics_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    try:
        config = get_config()
    except ConfigurationError as e:
        setup_logger("dashboard").error(f"Configuration error: {e}")
        raise

    app_logger = setup_logger("dashboard", config.log_level)
    app_logger.info(
        f"Configuration loaded: store backend '{config.store_backend}' "
        f"in region {config.aws_region}"
    )

    yield


# Initialize FastAPI app
app = FastAPI(
    title="Token Quota Dashboard",
    description="Usage analytics and quota tracking for the admin dashboard",
    version=VERSION,
    lifespan=lifespan,
)

# Add proxy headers middleware (for ALB/reverse proxy HTTPS handling)
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])


@app.exception_handler(AnalyticsError)
async def analytics_error_handler(request: Request, exc: AnalyticsError) -> JSONResponse:
    """Render analytics errors as ``{error, message}`` with their status."""
    if exc.status_code >= 500:
        logger.error(
            "Analytics request failed",
            extra={"path": request.url.path, "error_code": exc.code, "error": exc.message},
        )
    else:
        logger.info(
            "Rejected analytics request",
            extra={"path": request.url.path, "error_code": exc.code},
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(analytics_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for ECS."""
    return {"status": "healthy", "version": VERSION}
