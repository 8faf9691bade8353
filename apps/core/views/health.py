# apps/core/views/health.py

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from django.conf import settings
from django.utils import timezone
from starlette.responses import JSONResponse

from apps.core.container import get_services

if TYPE_CHECKING:
    from starlette.requests import Request

    from apps.core.container import Services

HEALTH_PROBE_KEY = "health:probe"

# --------------------------------------------------------------------------- helpers


async def _check_cache(services: Services) -> dict[str, Any]:
    """Round-trips a key; a memory-only store still answers but is reported degraded."""
    cache = services.cache
    probe = f"ok:{time.time()}"
    await cache.set(HEALTH_PROBE_KEY, probe, 10)
    ok = await cache.get(HEALTH_PROBE_KEY) == probe
    await cache.delete(HEALTH_PROBE_KEY)
    info = cache.describe()
    if not ok:
        return {"status": "unhealthy", "error": "Cache round-trip check failed", **info}
    return {"status": "degraded" if info["degraded"] else "healthy", **info}


def _check_rate_limit(services: Services) -> dict[str, Any]:
    used, limit, resets_in_s = services.limiter.status()
    return {
        "status": "throttled" if used >= limit else "healthy",
        "used": used,
        "limit": limit,
        "resets_in_s": round(resets_in_s, 2),
    }


# --------------------------------------------------------------------------- view
async def health_check(request: Request) -> JSONResponse:
    """
    Health endpoint.
    • `?check=basic`  → liveness-only.
    """
    start_view = time.perf_counter()
    base_payload = {
        "timestamp": timezone.now().isoformat(),
        "version": getattr(settings, "APP_VERSION", "unknown"),
        "environment": getattr(settings, "ENVIRONMENT", "unknown"),
    }

    if request.query_params.get("check") == "basic":
        return JSONResponse({"status": "ok", **base_payload})

    services = get_services()
    checks = {
        "cache": await _check_cache(services),
        "rate_limit": _check_rate_limit(services),
    }

    # Degraded and throttled still serve requests.
    overall_healthy = all(v["status"] != "unhealthy" for v in checks.values())
    response = {
        "status": "healthy" if overall_healthy else "unhealthy",
        "checks": checks,
        "response_time_ms": round((time.perf_counter() - start_view) * 1000, 2),
        **base_payload,
    }
    return JSONResponse(response, status_code=200 if overall_healthy else 503)
