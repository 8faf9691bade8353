"""
Django ASGI application wrapped in Starlette.

Starlette owns the process lifespan: the shared service bundle (rate
limiter, cache store, OpenDota client) is built on startup and closed on
shutdown, and `/health` is served without going through Django.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from django.conf import settings
from django.core.asgi import get_asgi_application
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.routing import BaseRoute, Mount, Route

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

# --- Set up Django environment
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.local")
import django

django.setup()

from apps.core.container import aclose_services, build_services, set_services  # noqa: E402
from apps.core.views import health_check  # noqa: E402

SHUTDOWN_TIMEOUT = 10.0

logger = structlog.get_logger(__name__)

django_app = get_asgi_application()


# --- Centralized Lifespan Manager ---
@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncIterator[None]:
    """
    Builds the shared services on startup and releases their connections on shutdown.
    This is triggered by the ASGI server (e.g., Uvicorn).
    """
    logger.info("🚀 ASGI application starting up...")
    services = build_services()
    set_services(services)
    logger.info("✅ Application startup complete. Ready to serve requests.", cache=services.cache.describe())
    yield
    logger.info("🛑 ASGI application shutting down...")
    try:
        async with asyncio.timeout(SHUTDOWN_TIMEOUT):
            await aclose_services()
    except TimeoutError:
        logger.warning("Shutdown timed out, forcing exit", timeout_s=SHUTDOWN_TIMEOUT)
    logger.info("✅ ASGI application shutdown complete.")


# --- Application Factory Functions ---
def create_middleware() -> list[Middleware]:
    """Create middleware stack based on settings."""
    return [
        Middleware(
            CORSMiddleware,
            allow_origins=getattr(settings, "CORS_ALLOWED_ORIGINS", ["*"]),
            allow_methods=["GET", "HEAD", "OPTIONS"],
            allow_headers=["*"],
        ),
    ]


def create_routes() -> list[BaseRoute]:
    """Create application routes."""
    return [
        Route("/health", endpoint=health_check, methods=["GET", "HEAD"]),
        Mount("/", app=django_app),
    ]


# --- Main Application Instance ---
application = Starlette(
    debug=settings.DEBUG,
    routes=create_routes(),
    middleware=create_middleware(),
    lifespan=lifespan,
)
