"""Tests for the FastAPI TicTacTouch interface."""

from __future__ import annotations

import time

import pytest
from fastapi.testclient import TestClient

from conftest import FakeScheduler, ScriptedPolicy
from tictactouch import ui
from tictactouch.config import Settings
from tictactouch.engine import timer_scheduler
from tictactouch.store import MemoryStore
from tictactouch.ui import app, build_session


client = TestClient(app)


@pytest.fixture
def session(scheduler):
    session = build_session(
        Settings(data_file=None),
        store=MemoryStore(),
        scheduler=scheduler,
        policy=ScriptedPolicy([3, 4, 4, 5]),
    )
    ui.install_session(session)
    return session


def test_create_game_and_first_move(session, scheduler: FakeScheduler):
    response = client.post("/api/game")
    assert response.status_code == 200
    payload = response.json()
    assert payload["currentPlayer"] == "X"
    assert payload["state"] == "in_progress"
    assert payload["board"] == [""] * 9
    assert payload["moveLog"] == []
    assert payload["difficulty"] == "medium"
    assert payload["difficultyName"] == "Medium"

    move_response = client.post("/api/game/move", json={"cellIndex": 0})
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["board"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["opponentPending"] is True
    assert state["lastMove"] == {"player": "X", "cellIndex": 0}

    scheduler.run_all()
    follow_up = client.get("/api/game").json()
    assert follow_up["currentPlayer"] == "X"
    assert follow_up["opponentPending"] is False
    assert follow_up["board"][3] == "O"
    assert follow_up["moveLog"][-1] == {"player": "O", "cellIndex": 3}


def test_invalid_move_rejected(session, scheduler):
    client.post("/api/game")
    assert client.post("/api/game/move", json={"cellIndex": 0}).status_code == 200
    scheduler.run_all()

    duplicate_move = client.post("/api/game/move", json={"cellIndex": 0})
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_move_while_opponent_thinking_rejected(session):
    client.post("/api/game")
    client.post("/api/game/move", json={"cellIndex": 0})
    response = client.post("/api/game/move", json={"cellIndex": 1})
    assert response.status_code == 400


def test_move_before_game_rejected(session):
    response = client.post("/api/game/move", json={"cellIndex": 0})
    assert response.status_code == 400


def test_out_of_range_cell_fails_validation(session):
    client.post("/api/game")
    assert client.post("/api/game/move", json={"cellIndex": 9}).status_code == 422


def test_win_is_reported_with_line_and_stats(session, scheduler):
    client.post("/api/game")
    for cell in (0, 1):
        client.post("/api/game/move", json={"cellIndex": cell})
        scheduler.run_all()
    final = client.post("/api/game/move", json={"cellIndex": 2}).json()

    assert final["state"] == "finished"
    assert final["winner"] == "X"
    assert final["tied"] is False
    assert final["winLine"] == [0, 1, 2]
    assert final["moveCount"] == 5

    stats = client.get("/api/stats").json()
    assert stats["totalWins"] == 1
    assert stats["perfectGames"] == 1
    assert stats["winPercentage"] == 100.0
    assert stats["difficultyStats"]["medium"]["wins"] == 1
    assert stats["difficultyStats"]["medium"]["displayName"] == "Medium"
    assert session.store.load("gameStats")["totalWins"] == 1


def test_new_game_discards_pending_reply(session, scheduler):
    first = client.post("/api/game").json()["sessionId"]
    client.post("/api/game/move", json={"cellIndex": 0})
    second = client.post("/api/game").json()

    assert second["sessionId"] == first + 1
    assert scheduler.pending == []
    assert second["board"] == [""] * 9
    assert second["moveLog"] == []


def test_difficulty_update_is_persisted(session):
    response = client.put("/api/difficulty", json={"difficulty": "hard"})
    assert response.status_code == 200
    assert session.store.load("difficulty") == "hard"

    state = client.post("/api/game").json()
    assert state["difficulty"] == "hard"

    state = client.post("/api/game", json={"difficulty": "optimus"}).json()
    assert state["difficulty"] == "optimus"
    assert state["difficultyName"] == "Optimus"


def test_rejects_unknown_difficulty(session):
    response = client.put("/api/difficulty", json={"difficulty": "impossible"})
    assert response.status_code == 422


def test_stats_reset(session, scheduler):
    client.post("/api/game")
    for cell in (0, 1, 2):
        client.post("/api/game/move", json={"cellIndex": cell})
        scheduler.run_all()
    assert client.get("/api/stats").json()["gamesPlayed"] == 1

    reset = client.delete("/api/stats").json()
    assert reset["gamesPlayed"] == 0
    assert reset["averageGameTimeFormatted"] == "0s"


def test_profile_update(session):
    assert client.get("/api/profile").json()["displayName"] == "Player"
    response = client.put(
        "/api/profile",
        json={"name": "Robin", "playStyle": "chill", "hasCompletedOnboarding": True},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["displayName"] == "Robin"
    assert body["playStyle"] == "chill"
    assert session.store.load("playerProfile")["name"] == "Robin"


def test_preferences_update(session):
    assert client.get("/api/preferences").json() == {
        "theme": "dark",
        "difficulty": "medium",
        "soundEnabled": True,
    }
    body = client.put("/api/preferences", json={"soundEnabled": False}).json()
    assert body["soundEnabled"] is False
    assert body["theme"] == "dark"
    assert session.store.load("soundEnabled") is False


def test_move_log_matches_board_with_real_timer():
    session = build_session(
        Settings(data_file=None, think_delay=0.01),
        store=MemoryStore(),
        scheduler=timer_scheduler,
        policy=ScriptedPolicy([4]),
    )
    ui.install_session(session)
    client.post("/api/game")
    client.post("/api/game/move", json={"cellIndex": 0})

    deadline = time.monotonic() + 2.0
    state = client.get("/api/game").json()
    while state["opponentPending"] and time.monotonic() < deadline:
        time.sleep(0.01)
        state = client.get("/api/game").json()

    assert state["opponentPending"] is False
    assert state["board"][4] == "O"
    assert len(state["moveLog"]) == state["moveCount"] == 2
    assert state["lastMove"] == {"player": "O", "cellIndex": 4}
