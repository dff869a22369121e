"""Cumulative player statistics and the end-of-game bookkeeping."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .ai import Difficulty
from .game import COMPUTER, HUMAN, CellMark


logger = logging.getLogger(__name__)

# Three human moves and two replies is the quickest possible win.
PERFECT_GAME_MOVES = 5


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return part / whole * 100.0


def format_seconds(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    return f"{seconds // 60}m {seconds % 60}s"


class DifficultyStats(BaseModel):
    """Counters for games played on one difficulty tier."""

    model_config = ConfigDict(populate_by_name=True)

    games_played: int = Field(default=0, ge=0, alias="gamesPlayed")
    wins: int = Field(default=0, ge=0)
    losses: int = Field(default=0, ge=0)
    ties: int = Field(default=0, ge=0)
    fastest_win: int = Field(default=0, ge=0, alias="fastestWin")

    @property
    def win_percentage(self) -> float:
        return _percentage(self.wins, self.games_played)


class GameStats(BaseModel):
    """Totals, streaks and timings across every game on this installation.

    ``fastest_win`` uses ``0`` for "no win yet". Times are whole seconds.
    Field aliases follow the camelCase names the stats were first stored
    under, so older saves keep loading.
    """

    model_config = ConfigDict(populate_by_name=True)

    win_streak: int = Field(default=0, ge=0, alias="winStreak")
    best_streak: int = Field(default=0, ge=0, alias="bestStreak")
    fastest_win: int = Field(default=0, ge=0, alias="fastestWin")
    total_wins: int = Field(default=0, ge=0, alias="totalWins")
    total_losses: int = Field(default=0, ge=0, alias="totalLosses")
    total_ties: int = Field(default=0, ge=0, alias="totalTies")
    games_played: int = Field(default=0, ge=0, alias="gamesPlayed")
    total_play_time: int = Field(default=0, ge=0, alias="totalPlayTime")
    perfect_games: int = Field(default=0, ge=0, alias="perfectGames")
    difficulty_stats: Dict[Difficulty, DifficultyStats] = Field(
        default_factory=dict, alias="difficultyStats"
    )

    @property
    def win_percentage(self) -> float:
        return _percentage(self.total_wins, self.games_played)

    @property
    def average_game_time(self) -> int:
        if self.games_played <= 0:
            return 0
        return self.total_play_time // self.games_played

    @property
    def average_game_time_formatted(self) -> str:
        return format_seconds(self.average_game_time)

    def for_difficulty(self, difficulty: Difficulty) -> DifficultyStats:
        return self.difficulty_stats.get(difficulty, DifficultyStats())


def _faster(current: int, candidate: int) -> int:
    if current == 0 or candidate < current:
        return candidate
    return current


class StatsAggregator:
    """Sole writer of :class:`GameStats`.

    ``on_change`` is called with a copy of the stats after every mutation.
    It is how the stats reach a store; errors it raises are logged and
    otherwise ignored.
    """

    def __init__(
        self,
        stats: Optional[GameStats] = None,
        on_change: Optional[Callable[[GameStats], None]] = None,
    ) -> None:
        self._stats = stats.model_copy(deep=True) if stats else GameStats()
        self._on_change = on_change

    @property
    def stats(self) -> GameStats:
        return self._stats.model_copy(deep=True)

    def record_game_end(
        self,
        winner: Optional[CellMark],
        duration_seconds: int,
        total_moves: int,
        difficulty: Difficulty,
    ) -> GameStats:
        """Fold one finished game into the totals.

        ``winner`` is ``None`` for a tie. Returns the updated snapshot.
        """
        if duration_seconds < 0:
            raise ValueError("Game duration cannot be negative")

        if not (winner is None or winner is HUMAN or winner is COMPUTER):
            raise ValueError(f"Unexpected winner {winner!r}")

        stats = self._stats
        bucket = stats.difficulty_stats.setdefault(difficulty, DifficultyStats())

        if winner is HUMAN:
            stats.total_wins += 1
            stats.win_streak += 1
            stats.best_streak = max(stats.best_streak, stats.win_streak)
            stats.fastest_win = _faster(stats.fastest_win, duration_seconds)
            if total_moves == PERFECT_GAME_MOVES:
                stats.perfect_games += 1
            bucket.wins += 1
            bucket.fastest_win = _faster(bucket.fastest_win, duration_seconds)
        elif winner is COMPUTER:
            stats.total_losses += 1
            stats.win_streak = 0
            bucket.losses += 1
        else:
            stats.total_ties += 1
            bucket.ties += 1

        stats.games_played += 1
        stats.total_play_time += duration_seconds
        bucket.games_played += 1

        logger.info(
            "Recorded %s on %s in %ds (%d moves); streak %d, best %d",
            "tie" if winner is None else f"win for {winner.value}",
            difficulty.value,
            duration_seconds,
            total_moves,
            stats.win_streak,
            stats.best_streak,
        )
        self._changed()
        return self.stats

    def reset(self) -> GameStats:
        self._stats = GameStats()
        logger.info("Statistics reset")
        self._changed()
        return self.stats

    def _changed(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.stats)
        except Exception:
            logger.exception("Could not persist statistics")
