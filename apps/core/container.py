"""
Composition root for the data-access core.

One ``Services`` bundle per process: the rate limiter is shared by every
request, so is the cache store and its connect lock. The ASGI lifespan
installs the bundle; anything running without it (management shell, tests)
gets one built lazily from settings.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from django.conf import settings

from apps.analytics.insights import InsightEngine
from apps.core.services.opendota_client import OpenDotaClient
from apps.core.services.rate_limiter import RateLimiter
from common.cache_utils import CacheStore

log = structlog.get_logger(__name__).bind(component="Services")


@dataclass(slots=True)
class Services:
    limiter: RateLimiter
    cache: CacheStore
    client: OpenDotaClient
    insights: InsightEngine

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.cache.aclose()


def build_services() -> Services:
    api = settings.OPENDOTA_CONFIG
    cache_cfg = settings.CACHE_CONFIG

    limiter = RateLimiter(api.RATE_LIMIT, api.RATE_WINDOW_S)
    client = OpenDotaClient(
        limiter,
        base_url=api.BASE_URL,
        timeout_s=api.TIMEOUT_S,
        api_key=api.API_KEY,
    )
    cache = CacheStore(
        cache_cfg.REDIS_URL,
        connect_timeout_s=cache_cfg.CONNECT_TIMEOUT_S,
        key_prefix=cache_cfg.KEY_PREFIX,
    )
    log.info("Services built", base_url=api.BASE_URL, rate_limit=api.RATE_LIMIT, redis=cache_cfg.REDIS_URL)
    return Services(limiter=limiter, cache=cache, client=client, insights=InsightEngine())


_services: Services | None = None


def get_services() -> Services:
    global _services  # noqa: PLW0603
    if _services is None:
        _services = build_services()
    return _services


def set_services(services: Services | None) -> None:
    global _services  # noqa: PLW0603
    _services = services


def reset_services() -> None:
    set_services(None)


async def aclose_services() -> None:
    global _services  # noqa: PLW0603
    if _services is not None:
        await _services.aclose()
        _services = None
