"""FastAPI adapter that exposes the TicTacTouch engine to a front end."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from functools import partial
from typing import Dict, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from .ai import Difficulty, HeuristicAI, OpponentPolicy
from .config import Settings
from .engine import GameEngine, Scheduler, timer_scheduler
from .models import PlayerProfile, Preferences, Theme
from .stats import GameStats, StatsAggregator
from .store import (
    JsonFileStore,
    MemoryStore,
    Store,
    load_preferences,
    load_profile,
    load_stats,
    save_preferences,
    save_profile,
    save_stats,
)


logger = logging.getLogger(__name__)


@dataclass
class PlayerSession:
    """Everything one installation needs: engine, store and saved settings."""

    engine: GameEngine
    store: Store
    profile: PlayerProfile
    preferences: Preferences
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


def build_session(
    settings: Optional[Settings] = None,
    store: Optional[Store] = None,
    scheduler: Optional[Scheduler] = timer_scheduler,
    policy: Optional[OpponentPolicy] = None,
) -> PlayerSession:
    """Load saved state from ``store`` and wire up an engine around it."""

    settings = settings or Settings.from_env()
    if store is None:
        store = (
            JsonFileStore(settings.data_file) if settings.data_file else MemoryStore()
        )

    preferences = load_preferences(store)
    aggregator = StatsAggregator(load_stats(store), on_change=partial(save_stats, store))
    engine = GameEngine(
        policy=policy or HeuristicAI(tiered=settings.tiered_ai),
        aggregator=aggregator,
        scheduler=scheduler,
        think_delay=settings.think_delay,
        difficulty=preferences.difficulty,
    )
    return PlayerSession(
        engine=engine,
        store=store,
        profile=load_profile(store),
        preferences=preferences,
    )


SESSION: Optional[PlayerSession] = None
_SESSION_LOCK = threading.Lock()

app = FastAPI(title="TicTacTouch", description="Tic-tac-toe against the computer")


def install_session(session: PlayerSession) -> None:
    global SESSION
    with _SESSION_LOCK:
        SESSION = session


def _get_session() -> PlayerSession:
    global SESSION
    with _SESSION_LOCK:
        if SESSION is None:
            SESSION = build_session()
        return SESSION


class NewGameRequest(BaseModel):
    """Request payload for starting a new game."""

    difficulty: Optional[Difficulty] = Field(
        default=None, description="Difficulty for this and later games"
    )


class MoveRequest(BaseModel):
    """Request payload for the human's move."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


class DifficultyRequest(BaseModel):
    difficulty: Difficulty


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    theme: Optional[Theme] = None
    sound_enabled: Optional[bool] = Field(default=None, alias="soundEnabled")


def _serialize_game(session: PlayerSession) -> Dict[str, object]:
    snap = session.engine.snapshot()
    outcome = snap.outcome
    moves = [{"player": mark.value, "cellIndex": index} for index, mark in snap.moves]
    state: Dict[str, object] = {
        "sessionId": snap.session_id,
        "state": snap.state.value,
        "board": [c.value for c in snap.board],
        "currentPlayer": snap.turn.value,
        "winner": outcome.winner.value if outcome and outcome.winner else None,
        "tied": bool(outcome and outcome.tied),
        "winLine": list(snap.win_line) if snap.win_line else None,
        "difficulty": snap.difficulty.value,
        "difficultyName": snap.difficulty.display_name,
        "opponentPending": snap.opponent_pending,
        "moveCount": snap.move_count,
        "moveLog": moves,
    }
    if moves:
        state["lastMove"] = moves[-1]
    return state


def _serialize_stats(stats: GameStats) -> Dict[str, object]:
    payload = stats.model_dump(mode="json", by_alias=True)
    payload["winPercentage"] = round(stats.win_percentage, 1)
    payload["averageGameTime"] = stats.average_game_time
    payload["averageGameTimeFormatted"] = stats.average_game_time_formatted
    for difficulty, bucket in stats.difficulty_stats.items():
        entry = payload["difficultyStats"][difficulty.value]
        entry["displayName"] = difficulty.display_name
        entry["winPercentage"] = round(bucket.win_percentage, 1)
    return payload


def _serialize_profile(profile: PlayerProfile) -> Dict[str, object]:
    payload = profile.model_dump(mode="json", by_alias=True)
    payload["displayName"] = profile.display_name
    return payload


def _set_difficulty(session: PlayerSession, difficulty: Difficulty) -> None:
    session.engine.set_difficulty(difficulty)
    session.preferences.difficulty = difficulty
    save_preferences(session.store, session.preferences)


@app.post("/api/game")
def create_game(request: Optional[NewGameRequest] = None) -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        if request is not None and request.difficulty is not None:
            _set_difficulty(session, request.difficulty)
        session.engine.start_game()
    return _serialize_game(session)


@app.get("/api/game")
def get_game() -> Dict[str, object]:
    return _serialize_game(_get_session())


@app.post("/api/game/move")
def make_move(request: MoveRequest) -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        try:
            session.engine.submit_move(request.cell_index)
        except ValueError as exc:
            logger.debug("Rejected move %d: %s", request.cell_index, exc)
            raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _serialize_game(session)


@app.put("/api/difficulty")
def update_difficulty(request: DifficultyRequest) -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        _set_difficulty(session, request.difficulty)
    return {"difficulty": request.difficulty.value}


@app.get("/api/stats")
def get_stats() -> Dict[str, object]:
    return _serialize_stats(_get_session().engine.stats)


@app.delete("/api/stats")
def reset_stats() -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        stats = session.engine.aggregator.reset()
    return _serialize_stats(stats)


@app.get("/api/profile")
def get_profile() -> Dict[str, object]:
    return _serialize_profile(_get_session().profile)


@app.put("/api/profile")
def update_profile(profile: PlayerProfile) -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        session.profile = profile
        save_profile(session.store, profile)
    return _serialize_profile(profile)


@app.get("/api/preferences")
def get_preferences() -> Dict[str, object]:
    return _get_session().preferences.model_dump(mode="json", by_alias=True)


@app.put("/api/preferences")
def update_preferences(update: PreferencesUpdate) -> Dict[str, object]:
    session = _get_session()
    with session.lock:
        prefs = session.preferences
        if update.theme is not None:
            prefs.theme = update.theme
        if update.sound_enabled is not None:
            prefs.sound_enabled = update.sound_enabled
        save_preferences(session.store, prefs)
        return prefs.model_dump(mode="json", by_alias=True)
