"""
Main Backend FastAPI application.
"""
import logging
import sys
import re
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__
from .core.config import settings
from .api.v1.subscription import router as subscription_router
from .api.v1.free_plays import router as free_plays_router
from .api.v1.paywall import router as paywall_router
from .api.v1.onboarding import router as onboarding_router
from .api.v1.webhooks import router as webhooks_router
from .dependencies.rate_limit import limiter

log_level = logging.DEBUG if settings.debug else logging.INFO

logging.basicConfig(
    level=log_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    stream=sys.stdout
)

logging.getLogger("uvicorn.access").setLevel(logging.WARNING)  # Reduce access log noise
logging.getLogger("uvicorn.error").setLevel(logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)  # Supabase client request logs

logger = logging.getLogger(__name__)


class ReverseProxyMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle reverse proxy headers.

    Fixes HTTPS redirects when FastAPI is behind a reverse proxy.
    """
    async def dispatch(self, request: Request, call_next):
        forwarded_proto = request.headers.get('x-forwarded-proto')
        if forwarded_proto:
            request.scope['scheme'] = forwarded_proto

        forwarded_host = request.headers.get('x-forwarded-host')
        if forwarded_host:
            request.scope['server'] = (forwarded_host, None)

        return await call_next(request)


def is_origin_allowed(origin: str) -> bool:
    """
    Check if origin is allowed via static list or dynamic patterns.
    """
    if not origin:
        return False

    if origin in settings.effective_cors_origins:
        return True

    for pattern in settings.cors_origin_patterns:
        if re.match(pattern, origin):
            return True

    return False


class DynamicCORSMiddleware(BaseHTTPMiddleware):
    """
    CORS middleware that supports dynamic origin patterns (preview deployments).
    """
    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")

        # Handle preflight requests
        if request.method == "OPTIONS":
            if origin and is_origin_allowed(origin):
                response = Response(status_code=200)
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
                response.headers["Access-Control-Allow-Headers"] = (
                    "Content-Type, Authorization, X-Admin-Key, X-API-Key, X-Requested-With"
                )
                response.headers["Access-Control-Allow-Credentials"] = "true"
                response.headers["Access-Control-Max-Age"] = "600"
                return response

        response = await call_next(request)

        if origin and is_origin_allowed(origin):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Credentials"] = "true"
            response.headers["Access-Control-Expose-Headers"] = "Content-Type"

        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.project_name} ({settings.environment})...")

    missing = [
        name for name, value in [
            ("DMG_API_TOKEN", settings.dmg_api_token),
            ("WHATSAPP_WEBHOOK_SECRET", settings.whatsapp_webhook_secret or settings.zapi_client_token),
        ] if not value
    ]
    for name in missing:
        logger.warning(f"{name} is not configured; the matching webhook accepts unauthenticated calls")

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


def create_application() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title=settings.project_name,
        description="Paywall, subscription and onboarding API for the Agapefy prayer app",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(DynamicCORSMiddleware)
    # Starlette runs the last-added middleware first: proxy headers apply before CORS
    app.add_middleware(ReverseProxyMiddleware)

    logger.info(f"CORS configured with {len(settings.effective_cors_origins)} static origins")

    if settings.is_production_environment:
        app.add_middleware(
            TrustedHostMiddleware,
            allowed_hosts=[
                "localhost",
                "127.0.0.1",
                "agapefy.com",
                "www.agapefy.com",
                "*.agapefy.com",
            ]
        )

    # Rate limiting for public webhook routes
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    app.include_router(subscription_router, prefix=settings.api_prefix)
    app.include_router(free_plays_router, prefix=settings.api_prefix)
    app.include_router(paywall_router, prefix=settings.api_prefix)
    app.include_router(onboarding_router, prefix=settings.api_prefix)
    app.include_router(webhooks_router, prefix=settings.api_prefix)

    return app


# Create the FastAPI app instance
app = create_application()


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Agapefy API",
        "version": __version__,
        "status": "running",
        "docs": "/docs" if settings.debug else "disabled",
        "features": ["subscription_status", "paywall", "free_plays", "onboarding", "webhooks"]
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "agapefy-api",
        "environment": settings.environment,
        "debug": settings.debug,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("agapefy_api.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
