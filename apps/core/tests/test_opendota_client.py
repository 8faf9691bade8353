import httpx
import orjson
import pytest

from apps.core.errors import InvalidInput, UpstreamError
from apps.core.services.opendota_client import OpenDotaClient
from apps.core.services.rate_limiter import RateLimiter

BASE = "https://opendota.test/api"


def make_client(handler, *, api_key=None, limit=60):
    limiter = RateLimiter(limit, 60.0)
    session = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OpenDotaClient(limiter, base_url=BASE, api_key=api_key, session=session), limiter


def json_response(payload, status=200):
    return httpx.Response(status, content=orjson.dumps(payload), headers={"content-type": "application/json"})


async def test_profile_is_parsed_and_nulls_use_defaults():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return json_response(
            {
                "profile": {"account_id": 22202, "personaname": "player", "plus": None},
                "rank_tier": 80,
                "leaderboard_rank": None,
                "mmr_estimate": {"estimate": 6120},
            },
        )

    client, limiter = make_client(handler)
    profile = await client.get_player_profile("76561197960287930")

    assert seen == ["/api/players/22202"]
    assert profile.account_id == 22202
    assert profile.estimated_mmr == 6120
    assert profile.leaderboard_rank is None
    assert limiter.status().used == 1


async def test_player_matches_sends_query_and_api_key():
    captured = {}

    def handler(request):
        captured["params"] = request.url.params
        return json_response(
            [
                {"match_id": 1, "player_slot": 0, "hero_id": 1, "radiant_win": True, "kills": 10, "deaths": 0},
                {"match_id": 2, "player_slot": 130, "hero_id": 2, "radiant_win": True, "gold_per_min": None},
            ],
        )

    client, _ = make_client(handler, api_key="secret")
    matches = await client.get_player_matches(22202, limit=2, hero_id=14, project=("hero_id", "lane_role"))

    params = captured["params"]
    assert params["limit"] == "2"
    assert params["hero_id"] == "14"
    assert params.get_list("project") == ["hero_id", "lane_role"]
    assert params["api_key"] == "secret"
    assert [m.won for m in matches] == [True, False]
    assert matches[0].kda == 10.0
    assert matches[1].gold_per_min == 0


async def test_invalid_ids_fail_before_spending_quota():
    def handler(request):
        pytest.fail("no request expected")

    client, limiter = make_client(handler)
    with pytest.raises(InvalidInput):
        await client.get_player_profile("not-a-steam-id")
    with pytest.raises(InvalidInput):
        await client.get_match("12ab")
    with pytest.raises(InvalidInput):
        await client.get_player_matches(22202, limit=0)
    assert limiter.status().used == 0


async def test_error_status_raises_upstream_error():
    client, limiter = make_client(lambda request: httpx.Response(503))

    with pytest.raises(UpstreamError) as info:
        await client.get_heroes()

    assert info.value.status == 503
    assert info.value.path == "/heroes"
    assert limiter.status().used == 1


async def test_transport_failure_has_no_status():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client, _ = make_client(handler)
    with pytest.raises(UpstreamError) as info:
        await client.get_live_games()
    assert info.value.status is None


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, content=b"<html>maintenance</html>"),
        json_response({"error": "Not Found"}),
        json_response(["unexpected", "list"]),
        json_response({"profile": {"personaname": "missing id"}}),
    ],
)
async def test_malformed_payloads_raise_upstream_error(response):
    client, _ = make_client(lambda request: response)
    with pytest.raises(UpstreamError, match="unexpected payload"):
        await client.get_player_profile(22202)


async def test_live_game_aliases_and_lookup():
    def handler(request):
        return json_response(
            [
                {
                    "match_id": 77,
                    "server_steam_id": "90112233445566",
                    "leagueid": 15000,
                    "players": [{"account_id": 22202, "hero_id": 8}, {"account_id": None}],
                },
            ],
        )

    client, _ = make_client(handler)
    [game] = await client.get_live_games()
    assert game.league_id == 15000
    assert game.has_player(22202)
    assert game.player(22202).hero_id == 8


async def test_aclose_leaves_injected_session_open():
    client, _ = make_client(lambda request: json_response([]))
    session = client._session
    await client.aclose()
    assert not session.is_closed
    await session.aclose()


async def test_owned_session_is_closed_on_exit():
    limiter = RateLimiter(60, 60.0)
    async with OpenDotaClient(limiter, base_url=BASE) as client:
        session = client._session
        assert session is not None
    assert session.is_closed
