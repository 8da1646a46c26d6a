import random
import time

import pytest

fastapi = pytest.importorskip("fastapi")
pytest.importorskip("httpx")
from fastapi.testclient import TestClient

from scattergories.backend.api import create_app
from scattergories.backend.categories import load_category_pool
from scattergories.backend.config import load_settings
from scattergories.backend.store import InMemoryGameStore


def _app(monkeypatch, **kwargs) -> fastapi.FastAPI:
    monkeypatch.setenv("SCATTERGORIES_ROUND_SECONDS", "30")
    monkeypatch.delenv("SCATTERGORIES_MIN_TEAM_SIZE", raising=False)
    monkeypatch.delenv("SCATTERGORIES_MAX_TEAM_SIZE", raising=False)
    settings = load_settings()
    pool = load_category_pool()
    store = InMemoryGameStore(settings=settings, category_pool=pool, rng_factory=lambda: random.Random(21))
    return create_app(store=store, settings=settings, category_pool=pool, **kwargs)


@pytest.fixture()
def client(monkeypatch) -> TestClient:
    return TestClient(_app(monkeypatch, run_clock=False))


def _create_match(client: TestClient, participants: int = 6) -> str:
    lobby_id = client.post("/api/lobbies", json={}).json()["lobby_id"]
    for index in range(participants):
        client.post(f"/api/lobbies/{lobby_id}/participants", json={"name": f"Player {index}"})
    assert client.post(f"/api/lobbies/{lobby_id}/teams").status_code == 200
    response = client.post(f"/api/lobbies/{lobby_id}/match")
    assert response.status_code == 200
    return response.json()["match_id"]


def _state(client: TestClient, match_id: str) -> dict:
    return client.get(f"/api/matches/{match_id}").json()["state"]


def _act(client: TestClient, match_id: str, action: dict) -> dict:
    response = client.post(f"/api/matches/{match_id}/actions", json={"action": action})
    assert response.status_code == 200
    return response.json()


def test_list_categories_filters_examples_by_letter(client: TestClient) -> None:
    response = client.get("/api/categories", params={"letter": "P"})

    assert response.status_code == 200
    categories = response.json()
    assert len(categories) == 24
    linux = next(entry for entry in categories if entry["name"] == "Linux Commands")
    assert linux["examples"] == ["pwd", "ping", "ps", "passwd", "printenv", "pkill"]


def test_lobby_flow_edits_participants_and_generates_teams(client: TestClient) -> None:
    lobby_id = client.post("/api/lobbies", json={}).json()["lobby_id"]
    for name in ("Ada", "Grace", "Linus", "Guido"):
        client.post(f"/api/lobbies/{lobby_id}/participants", json={"name": name})

    removed = client.delete(f"/api/lobbies/{lobby_id}/participants/3").json()
    generated = client.post(f"/api/lobbies/{lobby_id}/teams")
    again = client.post(f"/api/lobbies/{lobby_id}/teams")
    reset = client.delete(f"/api/lobbies/{lobby_id}/teams").json()

    assert removed["state"]["participants"] == ["Ada", "Grace", "Linus"]
    assert generated.status_code == 200
    assert len(generated.json()["state"]["teams"]) == 1
    assert again.status_code == 409
    assert reset["state"]["teams"] is None


def test_generate_teams_conflicts_below_minimum(client: TestClient) -> None:
    lobby_id = client.post("/api/lobbies", json={}).json()["lobby_id"]
    client.post(f"/api/lobbies/{lobby_id}/participants", json={"name": "Ada"})

    assert client.post(f"/api/lobbies/{lobby_id}/teams").status_code == 409
    assert client.post(f"/api/lobbies/{lobby_id}/match").status_code == 409


def test_create_lobby_rejects_inconsistent_bounds(client: TestClient) -> None:
    response = client.post("/api/lobbies", json={"min_team_size": 5, "max_team_size": 2})

    assert response.status_code == 422


def test_unknown_ids_return_404(client: TestClient) -> None:
    assert client.get("/api/lobbies/missing").status_code == 404
    assert client.post("/api/lobbies/missing/teams").status_code == 404
    assert client.get("/api/matches/missing").status_code == 404
    assert client.post("/api/matches/missing/actions", json={"action": {"type": "TICK"}}).status_code == 404


def test_full_turn_through_actions(client: TestClient) -> None:
    match_id = _create_match(client)

    started = _act(client, match_id, {"type": "START_TURN"})
    categories = started["state"]["turn"]["activeCategories"]
    for category in categories[:5]:
        _act(client, match_id, {"type": "SET_DRAFT", "category": category, "text": "Pineapple"})
        _act(client, match_id, {"type": "SUBMIT", "category": category})
    ended = _act(client, match_id, {"type": "END_TURN"})

    assert ended["state"]["roster"][0]["roundScores"] == [5]
    assert ended["state"]["roster"][0]["score"] == 5
    assert ended["state"]["currentTeamIndex"] == 1
    assert [event["kind"] for event in ended["events"]] == ["turn_completed", "turn_finalized"]


def test_starting_second_turn_returns_conflict(client: TestClient) -> None:
    match_id = _create_match(client)
    _act(client, match_id, {"type": "START_TURN"})

    response = client.post(f"/api/matches/{match_id}/actions", json={"action": {"type": "START_TURN"}})

    assert response.status_code == 409
    assert _state(client, match_id)["version"] == 2


def test_websocket_receives_state_on_connect_and_after_action(client: TestClient) -> None:
    with client:
        match_id = _create_match(client)

        with client.websocket_connect(f"/ws/matches/{match_id}") as websocket:
            initial = websocket.receive_json()
            _act(client, match_id, {"type": "START_TURN"})
            update = websocket.receive_json()

    assert initial["type"] == "state.full"
    assert initial["state"]["turn"]["phase"] == "idle"
    assert update["state"]["turn"]["phase"] == "active"


def test_websocket_rejects_unknown_match(client: TestClient) -> None:
    with pytest.raises(Exception):
        with client.websocket_connect("/ws/matches/missing"):
            pass


def test_server_clock_runs_turn_to_expiry(monkeypatch) -> None:
    app = _app(monkeypatch, clock_interval=0.05)

    with TestClient(app) as client:
        match_id = _create_match(client)
        _act(client, match_id, {"type": "START_TURN", "durationSeconds": 2})
        time.sleep(0.6)
        state = _state(client, match_id)
        running = app.state.turn_clocks.is_running(match_id)

    assert state["turn"]["phase"] == "expired"
    assert state["turn"]["timeRemaining"] == 0
    assert running is False


def test_next_turn_gets_a_fresh_clock(monkeypatch) -> None:
    app = _app(monkeypatch, clock_interval=0.5)

    with TestClient(app) as client:
        match_id = _create_match(client)
        _act(client, match_id, {"type": "START_TURN"})
        time.sleep(0.35)
        _act(client, match_id, {"type": "END_TURN"})
        _act(client, match_id, {"type": "START_TURN"})
        time.sleep(0.3)
        state = _state(client, match_id)

    assert state["currentTeamIndex"] == 1
    assert state["turnNumber"] == 2
    assert state["turn"]["timeRemaining"] == 30


def test_pause_stops_the_server_clock(monkeypatch) -> None:
    app = _app(monkeypatch, clock_interval=0.05)

    with TestClient(app) as client:
        match_id = _create_match(client)
        _act(client, match_id, {"type": "START_TURN"})
        paused = _act(client, match_id, {"type": "PAUSE"})
        running = app.state.turn_clocks.is_running(match_id)
        time.sleep(0.3)
        state = _state(client, match_id)

    assert running is False
    assert state["turn"]["phase"] == "paused"
    assert state["turn"]["timeRemaining"] == paused["state"]["turn"]["timeRemaining"]


def test_shutdown_stops_running_clocks(monkeypatch) -> None:
    app = _app(monkeypatch, clock_interval=60)

    with TestClient(app) as client:
        match_id = _create_match(client)
        _act(client, match_id, {"type": "START_TURN"})
        started = app.state.turn_clocks.is_running(match_id)

    assert started is True
    assert app.state.turn_clocks.is_running(match_id) is False
