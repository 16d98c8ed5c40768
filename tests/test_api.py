import pytest
from httpx import ASGITransport, AsyncClient

from fantasyxi.api import create_app

from tests.factories import CONTEXT, FAST_SETTINGS, balanced_pool


@pytest.fixture
async def client():
    app = create_app(settings=FAST_SETTINGS)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


def _payload(players=None, **options) -> dict:
    return {
        "context": CONTEXT.model_dump(mode="json"),
        "players": [player.model_dump(mode="json") for player in (players or balanced_pool())],
        "options": options,
    }


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_rules_listing(client):
    resp = await client.get("/rules")
    assert resp.status_code == 200
    classic = next(item for item in resp.json() if item["name"] == "classic")
    assert classic["squad_size"] == 11
    assert classic["role_bounds"]["WK"] == {"min": 1, "max": 4}
    assert {"name": "balanced", "shape": "1-4-2-4"} in classic["common_shapes"]


async def test_presets_listing(client):
    resp = await client.get("/presets")
    assert resp.status_code == 200
    assert len(resp.json()) == 11

    resp = await client.get("/presets", params={"risk_level": "high"})
    assert {item["preset_id"] for item in resp.json()} == {
        "high-differentials",
        "risky-picks-grand-leagues",
        "differential-gems",
    }

    resp = await client.get("/presets", params={"tag": "grand-league", "risk_level": "high"})
    assert [item["preset_id"] for item in resp.json()] == [
        "high-differentials",
        "risky-picks-grand-leagues",
        "differential-gems",
    ]
    resp = await client.get("/presets", params={"tag": "wickets"})
    assert [item["preset_id"] for item in resp.json()] == ["bowlers-paradise-low-scoring"]


async def test_score_players(client):
    body = _payload()
    del body["options"]
    resp = await client.post("/players/score", json=body)
    assert resp.status_code == 200
    players = resp.json()["players"]
    assert len(players) == 24
    for player in players:
        assert 0.0 <= player["predicted_points"] <= 100.0
        assert 0.0 <= player["confidence"] <= 1.0


async def test_generate_lineups(client):
    resp = await client.post("/lineups", json=_payload(lineup_count=3, seed=7))
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["lineups"]) == 3
    assert data["stats"]["lineup_count"] == 3
    assert data["failures"] == []
    for lineup in data["lineups"]:
        assert len(lineup["players"]) == 11
        assert lineup["total_credits"] <= 100.0
        assert sum(player["is_captain"] for player in lineup["players"]) == 1
        assert sum(player["is_vice_captain"] for player in lineup["players"]) == 1
    assert data["player_usage"][0]["count"] >= 1


async def test_infeasible_pool_returns_422(client):
    players = [player for player in balanced_pool() if player.role.value != "WK"]
    resp = await client.post("/lineups", json=_payload(players, lineup_count=2))
    assert resp.status_code == 422
    body = resp.json()
    assert body["error_code"] == "INFEASIBLE_POOL"
    assert "Keeper" in body["details"]["roles"]


async def test_unknown_rules_or_preset_rejected(client):
    body = _payload(lineup_count=1)
    body["rules"] = "test-match"
    resp = await client.post("/lineups", json=body)
    assert resp.status_code == 400

    resp = await client.post("/lineups", json=_payload(lineup_count=1, preset_id="moon-ball"))
    assert resp.status_code == 400


async def test_request_validation_errors(client):
    resp = await client.post("/lineups", json=_payload(lineup_count=99))
    assert resp.status_code == 422
    resp = await client.post("/lineups", json=_payload(filters={"height": {"min": 1}}))
    assert resp.status_code == 422


async def test_role_split_lineups(client):
    resp = await client.post("/lineups", json=_payload(lineup_count=2, role_shape="1-4-3-3", team_split=[6, 5], seed=3))
    assert resp.status_code == 200
    for lineup in resp.json()["lineups"]:
        assert lineup["role_counts"] == {"WK": 1, "BAT": 4, "AR": 3, "BWL": 3}
        teams = [player["team"] for player in lineup["players"]]
        assert teams.count("India") == 6
        assert teams.count("Australia") == 5

    resp = await client.post("/lineups", json=_payload(lineup_count=1, role_shape="0-5-3-3"))
    assert resp.status_code == 400
    resp = await client.post("/lineups", json=_payload(lineup_count=1, team_split=[9, 2]))
    assert resp.status_code == 400
