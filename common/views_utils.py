# common/views_utils.py
# ======================================================================
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Self

import orjson
import structlog
from django.http import Http404, HttpRequest, HttpResponse
from django.views import View

from apps.core.container import get_services
from apps.core.errors import InvalidInput, UpstreamError

from .cache_utils import build_cache_key as _build_cache_key

if TYPE_CHECKING:
    from apps.core.container import Services

log = structlog.get_logger(__name__).bind(component="ViewsUtils")

STALE_KEY_PREFIX = "stale:"
# A copy of every payload outlives its fresh TTL so an upstream outage can be masked.
STALE_TTL = 60 * 60 * 24
STALE_WARNING = "Using cached data due to API error"


# ------------------------------------------------------------------ orjson helpers
def _orjson_default(obj: Any) -> Any:
    """
    Custom serializer for types orjson doesn't handle.

    Pydantic models are dumped in JSON mode, objects exposing `to_json()` use
    that; anything else raises TypeError so orjson can report it.
    """
    if hasattr(obj, "model_dump"):
        return obj.model_dump(mode="json")
    if hasattr(obj, "to_json"):
        return obj.to_json()
    msg = f"{type(obj).__name__} is not JSON serialisable"
    raise TypeError(msg)


def to_jsonable(data: Any) -> Any:
    """Normalise dataclasses and models to plain JSON types, as a cache round trip would."""
    return orjson.loads(orjson.dumps(data, default=_orjson_default, option=orjson.OPT_NON_STR_KEYS))


class OrjsonResponse(HttpResponse):
    """
    A high-performance JSON response using `orjson`.

    Data are encoded as UTF-8 bytes; `content_type` is set to
    `application/json` automatically.
    """

    def __init__(self, data: Any, *, status: int = 200, **kw: Any) -> None:
        opts = orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS
        content = orjson.dumps(data, default=_orjson_default, option=opts)
        kw.setdefault("content_type", "application/json")
        super().__init__(content=content, status=status, **kw)


def error_response(message: str, *, status: int) -> OrjsonResponse:
    return OrjsonResponse({"success": False, "error": message}, status=status)


# ------------------------------------------------------------------ pagination
@dataclass(slots=True, frozen=True)
class Page:
    """
    Simple value-object for pagination.

    Attributes
    ----------
    number : 1-based page index
    size   : page size in rows
    offset : upstream offset, computed automatically
    """

    number: int
    size: int
    offset: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "offset", (self.number - 1) * self.size)

    # factory --------------------------------------------------------
    @classmethod
    def from_request(
        cls,
        req: HttpRequest,
        /,
        *,
        max_size: int = 100,
        default_size: int = 20,
    ) -> Self:
        """
        Parse `page` and `limit` query params into a Page instance,
        applying defaults & bounds.
        """
        try:
            page_num = int(req.GET.get("page", 1))
        except (TypeError, ValueError):
            page_num = 1
        page_num = max(page_num, 1)

        try:
            raw_size = int(req.GET.get("limit", default_size))
        except (TypeError, ValueError):
            raw_size = default_size
        page_size = max(1, min(raw_size, max_size))

        return cls(page_num, page_size)


# ------------------------------------------------------------------ BaseAsyncView
class BaseAsyncView(View):
    """
    Base-class for *async* Django CBVs with

        • Centralised error handling (400 / 404 / 502 / 500)
        • orjson responses
        • `nocache=true`  → bypass cache
        • `reset=true`    → refresh cache
        • `X-Cache-Status` header (HIT | MISS | REFRESH | BYPASS | STALE)
    """

    META_CACHE_PARAMS: set[str] = {"reset", "nocache"}

    # ───────────────────────────── dispatch ──────────────────────────
    async def dispatch(self, request: HttpRequest, *args: Any, **kw: Any):  # type: ignore[override]
        self.request = request

        handler = getattr(self, request.method.lower(), None)
        if handler is None:
            return await self.http_method_not_allowed(request, *args, **kw)

        try:
            response = await handler(request, *args, **kw)
        except InvalidInput as exc:
            log.info("Invalid input", path=request.path, err=str(exc))
            response = error_response(str(exc), status=400)
        except Http404 as exc:
            log.info("Resource not found", path=request.path, err=str(exc))
            response = error_response(str(exc) or "Not found.", status=404)
        except UpstreamError as exc:
            log.warning("Upstream error", path=request.path, status=exc.status, upstream_path=exc.path)
            response = error_response(str(exc), status=502)
        except Exception as exc:
            log.exception("Unhandled API error", path=request.path, exc_info=exc)
            response = error_response("An internal server error occurred.", status=500)

        cache_status = getattr(request, "_cache_status", None)
        if cache_status:
            response["X-Cache-Status"] = cache_status
        return response

    async def http_method_not_allowed(self, request: HttpRequest, *a: Any, **k: Any) -> HttpResponse:
        log.warning("Method Not Allowed", method=request.method, path=request.path)
        return error_response(f'Method "{request.method}" not allowed.', status=405)

    @property
    def services(self) -> Services:
        return get_services()

    # ─────────────────────── request-parsing helpers ─────────────────
    @staticmethod
    def get_page(request: HttpRequest) -> Page:
        return Page.from_request(request)

    @staticmethod
    def get_bool_param(request: HttpRequest, key: str, *, default: bool = False) -> bool:
        val = request.GET.get(key)
        if val is None:
            return default
        return val.lower() in {"1", "true", "yes", "on"}

    @staticmethod
    def get_int_param(
        request: HttpRequest,
        key: str,
        /,
        *,
        default: int | None,
        min_val: int | None = None,
        max_val: int | None = None,
    ) -> int | None:
        raw = request.GET.get(key)
        if raw is None:
            return default
        try:
            val = int(raw)
        except (TypeError, ValueError):
            return default
        if min_val is not None:
            val = max(val, min_val)
        if max_val is not None:
            val = min(val, max_val)
        return val


class BaseAppView(BaseAsyncView, ABC):
    """
    Base class for the API's read views.

    It standardizes the GET lifecycle:
    1. `_get_params` validates path and query parameters.
    2. A fresh cached payload is returned as-is (`cached: true`).
    3. Otherwise `_produce_payload` builds it and both the fresh and the
       long-lived stale copy are written.
    4. An `UpstreamError` during production is masked by the stale copy
       when one exists (`stale: true` plus a warning); otherwise it
       propagates to `dispatch`.
    """

    CACHE_PREFIX: str = ""
    CACHE_TTL: int = 300

    @abstractmethod
    def _get_params(self, request: HttpRequest, **kwargs) -> dict[str, Any]:
        """Subclasses return every parameter that shapes the payload."""
        raise NotImplementedError

    @abstractmethod
    async def _produce_payload(self, params: dict[str, Any]) -> Any:
        """Subclasses build the payload from fresh upstream data."""
        raise NotImplementedError

    def _cache_key(self, params: dict[str, Any]) -> str:
        params = dict(params)
        ident = params.pop("account_id", None) or params.pop("match_id", None)
        prefix = f"{self.CACHE_PREFIX}{ident}" if ident is not None else self.CACHE_PREFIX
        return _build_cache_key(prefix, **params)

    async def get(self, request: HttpRequest, **kwargs) -> OrjsonResponse:
        params = self._get_params(request, **kwargs)
        cache = self.services.cache
        key = self._cache_key(params)
        stale_key = f"{STALE_KEY_PREFIX}{key}"
        want_bypass = self.get_bool_param(request, "nocache")
        want_reset = self.get_bool_param(request, "reset")

        if want_reset:
            log.info("Cache reset requested", key=key)
            await cache.delete(key)
        elif not want_bypass:
            cached = await cache.get(key)
            if cached is not None:
                request._cache_status = "HIT"
                return OrjsonResponse({"success": True, "data": cached, "cached": True})

        try:
            data = to_jsonable(await self._produce_payload(params))
        except UpstreamError as exc:
            stale = await cache.get(stale_key)
            if stale is None:
                raise
            log.warning("Serving stale data", key=key, status=exc.status, err=str(exc))
            request._cache_status = "STALE"
            return OrjsonResponse(
                {"success": True, "data": stale, "cached": True, "stale": True, "warning": STALE_WARNING},
            )

        if want_bypass:
            request._cache_status = "BYPASS"
        else:
            await cache.set(key, data, self.CACHE_TTL)
            await cache.set(stale_key, data, STALE_TTL)
            request._cache_status = "REFRESH" if want_reset else "MISS"
        return OrjsonResponse({"success": True, "data": data, "cached": False})
