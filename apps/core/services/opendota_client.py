"""
Async OpenDota client.

Every call validates its identifiers, takes one token from the shared
``RateLimiter``, issues exactly one GET, and turns the JSON body into typed
records. Failures surface as ``UpstreamError``; nothing here retries.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Self

import httpx
import orjson
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from apps.core.conf import DEFAULT_TIMEOUT_S, OPENDOTA_BASE_URL, USER_AGENTS, PlayerQuery
from apps.core.errors import InvalidInput, UpstreamError
from apps.core.schemas import (
    Hero,
    LiveGame,
    MatchDetail,
    MatchRecord,
    PeerStats,
    PlayerHeroStats,
    PlayerProfile,
    ProPlayer,
)
from common.parsers_utils import normalize_account_id, parse_match_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from apps.core.services.rate_limiter import RateLimiter

log = structlog.get_logger(__name__).bind(component="OpenDotaClient")

type QueryParams = Sequence[tuple[str, str | int]]

_list_adapters: dict[type[BaseModel], TypeAdapter[Any]] = {}


def _list_adapter(model: type[BaseModel]) -> TypeAdapter[Any]:
    adapter = _list_adapters.get(model)
    if adapter is None:
        adapter = _list_adapters[model] = TypeAdapter(list[model])  # type: ignore[valid-type]
    return adapter


class OpenDotaClient:
    def __init__(
        self,
        limiter: RateLimiter,
        *,
        base_url: str = OPENDOTA_BASE_URL,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        api_key: str | None = None,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.limiter = limiter
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._api_key = api_key
        self._session = session
        self._session_created = False

    # ------------------------------------------------------------- context
    async def __aenter__(self) -> Self:
        self._ensure_session()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._session_created and self._session is not None:
            await self._session.aclose()
            self._session = None
            self._session_created = False

    def _ensure_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(
                timeout=self._timeout_s,
                follow_redirects=True,
                headers={"User-Agent": random.choice(USER_AGENTS)},
            )
            self._session_created = True
        return self._session

    # ------------------------------------------------------------- players
    async def get_player_profile(self, steam_id: str | int) -> PlayerProfile:
        account_id = normalize_account_id(steam_id)
        path = f"/players/{account_id}"
        return self._parse_one(PlayerProfile, await self._get(path), path)

    async def get_player_matches(
        self,
        steam_id: str | int,
        *,
        limit: int | None = None,
        offset: int | None = None,
        hero_id: int | None = None,
        project: Iterable[str] | None = None,
    ) -> list[MatchRecord]:
        account_id = normalize_account_id(steam_id)
        try:
            query = PlayerQuery(limit=limit, offset=offset, hero_id=hero_id, project=tuple(project or ()))
        except ValidationError as exc:
            raise InvalidInput(str(exc)) from exc
        path = f"/players/{account_id}/matches"
        return self._parse_many(MatchRecord, await self._get(path, query.as_params()), path)

    async def get_player_recent_matches(self, steam_id: str | int) -> list[MatchRecord]:
        account_id = normalize_account_id(steam_id)
        path = f"/players/{account_id}/recentMatches"
        return self._parse_many(MatchRecord, await self._get(path), path)

    async def get_player_heroes(self, steam_id: str | int) -> list[PlayerHeroStats]:
        account_id = normalize_account_id(steam_id)
        path = f"/players/{account_id}/heroes"
        return self._parse_many(PlayerHeroStats, await self._get(path), path)

    async def get_player_peers(self, steam_id: str | int) -> list[PeerStats]:
        account_id = normalize_account_id(steam_id)
        path = f"/players/{account_id}/peers"
        return self._parse_many(PeerStats, await self._get(path), path)

    # ------------------------------------------------------------- matches
    async def get_match(self, match_id: str | int) -> MatchDetail:
        mid = parse_match_id(match_id)
        path = f"/matches/{mid}"
        return self._parse_one(MatchDetail, await self._get(path), path)

    # ------------------------------------------------------------- catalog
    async def get_heroes(self) -> list[Hero]:
        path = "/heroes"
        return self._parse_many(Hero, await self._get(path), path)

    async def get_live_games(self) -> list[LiveGame]:
        path = "/live"
        return self._parse_many(LiveGame, await self._get(path), path)

    async def get_pro_players(self) -> list[ProPlayer]:
        path = "/proPlayers"
        return self._parse_many(ProPlayer, await self._get(path), path)

    # ------------------------------------------------------------- internals
    async def _get(self, path: str, params: QueryParams | None = None) -> Any:
        # The token is spent even when the request fails.
        await self.limiter.acquire()
        session = self._ensure_session()

        query: list[tuple[str, str | int]] = list(params or ())
        if self._api_key:
            query.append(("api_key", self._api_key))

        try:
            resp = await session.get(
                f"{self._base_url}{path}",
                params=query,
                headers={"User-Agent": random.choice(USER_AGENTS)},
            )
        except httpx.HTTPError as exc:
            log.warning("OpenDota request failed", path=path, err=str(exc) or type(exc).__name__)
            raise UpstreamError(None, str(exc) or type(exc).__name__, path=path) from exc

        if not resp.is_success:
            log.warning("OpenDota returned error status", path=path, status=resp.status_code)
            raise UpstreamError(resp.status_code, resp.reason_phrase, path=path)

        try:
            return orjson.loads(resp.content)
        except orjson.JSONDecodeError as exc:
            raise UpstreamError(resp.status_code, "unexpected payload", path=path) from exc

    @staticmethod
    def _parse_one[M: BaseModel](model: type[M], payload: Any, path: str) -> M:
        if not isinstance(payload, dict) or "error" in payload:
            raise UpstreamError(200, "unexpected payload", path=path)
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            log.warning("Payload shape mismatch", path=path, errors=exc.error_count())
            raise UpstreamError(200, "unexpected payload", path=path) from exc

    @staticmethod
    def _parse_many[M: BaseModel](model: type[M], payload: Any, path: str) -> list[M]:
        if not isinstance(payload, list):
            raise UpstreamError(200, "unexpected payload", path=path)
        try:
            return _list_adapter(model).validate_python(payload)
        except ValidationError as exc:
            log.warning("Payload shape mismatch", path=path, errors=exc.error_count())
            raise UpstreamError(200, "unexpected payload", path=path) from exc
