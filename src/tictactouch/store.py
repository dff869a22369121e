"""Key-value persistence for stats, profile and preferences.

Values are plain JSON-compatible objects. The engine never sees the storage
format; it only goes through :func:`load_stats` / :func:`save_stats` and
friends.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from pydantic import ValidationError

from .ai import Difficulty
from .models import PlayerProfile, Preferences, Theme
from .stats import GameStats


logger = logging.getLogger(__name__)

STATS_KEY = "gameStats"
PROFILE_KEY = "playerProfile"
THEME_KEY = "theme"
DIFFICULTY_KEY = "difficulty"
SOUND_KEY = "soundEnabled"


class Store(Protocol):
    def load(self, key: str) -> Optional[Any]: ...

    def save(self, key: str, value: Any) -> None: ...


class MemoryStore:
    """Dictionary-backed store, handy for tests and ephemeral sessions."""

    def __init__(self, data: Optional[Dict[str, Any]] = None) -> None:
        self.data: Dict[str, Any] = dict(data or {})

    def load(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    def save(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonFileStore:
    """All keys in one JSON object on disk, rewritten atomically on save."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = self._read()

    def _read(self) -> Dict[str, Any]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable store %s: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Ignoring store %s: top level is not an object", self.path)
            return {}
        return raw

    def load(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data.get(key)

    def save(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._write()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", text=True
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
            os.replace(temp_path, self.path)
        finally:
            if os.path.exists(temp_path):
                os.remove(temp_path)


# ---------- typed accessors ----------


def _safe_save(store: Store, key: str, value: Any) -> None:
    try:
        store.save(key, value)
    except OSError as exc:
        logger.warning("Could not save %r: %s", key, exc)


def load_stats(store: Store) -> GameStats:
    raw = store.load(STATS_KEY)
    if raw is None:
        return GameStats()
    try:
        return GameStats.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Discarding invalid saved stats: %s", exc)
        return GameStats()


def save_stats(store: Store, stats: GameStats) -> None:
    _safe_save(store, STATS_KEY, stats.model_dump(mode="json", by_alias=True))


def load_profile(store: Store) -> PlayerProfile:
    raw = store.load(PROFILE_KEY)
    if raw is None:
        return PlayerProfile()
    try:
        return PlayerProfile.model_validate(raw)
    except ValidationError as exc:
        logger.warning("Discarding invalid saved profile: %s", exc)
        return PlayerProfile()


def save_profile(store: Store, profile: PlayerProfile) -> None:
    _safe_save(store, PROFILE_KEY, profile.model_dump(mode="json", by_alias=True))


def load_preferences(store: Store) -> Preferences:
    prefs = Preferences()
    theme = store.load(THEME_KEY)
    if isinstance(theme, str) and theme in {t.value for t in Theme}:
        prefs.theme = Theme(theme)
    difficulty = store.load(DIFFICULTY_KEY)
    if isinstance(difficulty, str) and difficulty in {d.value for d in Difficulty}:
        prefs.difficulty = Difficulty(difficulty)
    sound = store.load(SOUND_KEY)
    if isinstance(sound, bool):
        prefs.sound_enabled = sound
    return prefs


def save_preferences(store: Store, prefs: Preferences) -> None:
    _safe_save(store, THEME_KEY, prefs.theme.value)
    _safe_save(store, DIFFICULTY_KEY, prefs.difficulty.value)
    _safe_save(store, SOUND_KEY, prefs.sound_enabled)
