"""Turn sequencing for a single human-versus-computer game."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Iterable, List, Optional, Protocol, Tuple

from .ai import Difficulty, HeuristicAI, OpponentPolicy
from .game import (
    COMPUTER,
    HUMAN,
    Board,
    CellMark,
    InvalidMove,
    Line,
    WinResult,
    evaluate,
)
from .stats import GameStats, StatsAggregator


logger = logging.getLogger(__name__)

DEFAULT_THINK_DELAY = 0.5


class EngineState(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


@dataclass(frozen=True)
class GameOutcome:
    """How a finished game ended. ``winner`` is ``None`` for a tie."""

    winner: Optional[CellMark]
    line: Optional[Line] = None

    @property
    def tied(self) -> bool:
        return self.winner is None


class GameListener:
    """Receives engine events. Sound, haptics and animation hook in here.

    Subclasses override what they need; the defaults do nothing.
    """

    def on_game_start(self, session_id: int) -> None:
        pass

    def on_move(self, index: int, mark: CellMark) -> None:
        pass

    def on_game_end(self, outcome: GameOutcome) -> None:
        pass


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def timer_scheduler(delay: float, callback: Callable[[], None]) -> threading.Timer:
    """Run ``callback`` on a daemon thread after ``delay`` seconds."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class GameSnapshot:
    board: Tuple[CellMark, ...]
    state: EngineState
    turn: CellMark
    outcome: Optional[GameOutcome]
    difficulty: Difficulty
    session_id: int
    opponent_pending: bool
    move_count: int
    moves: Tuple[Tuple[int, CellMark], ...] = ()

    @property
    def win_line(self) -> Optional[Line]:
        return self.outcome.line if self.outcome else None


class GameEngine:
    """State machine for one game at a time: idle, in progress, finished.

    The human always plays ``X`` and moves first. After an accepted human move
    that does not end the game, the turn passes to ``O`` and the opponent's
    reply is handed to ``scheduler``. Until it fires, observers see
    ``opponent_pending``. Every reply is tagged with the session id it was
    scheduled for and is dropped if a new game has started since.

    Without a scheduler, or when the scheduler itself fails, the reply is
    applied before ``submit_move`` returns.

    Rejected calls raise :class:`~tictactouch.game.InvalidMove` (or one of its
    subclasses) and leave the game exactly as it was.
    """

    def __init__(
        self,
        policy: Optional[OpponentPolicy] = None,
        aggregator: Optional[StatsAggregator] = None,
        listeners: Iterable[GameListener] = (),
        scheduler: Optional[Scheduler] = None,
        think_delay: float = DEFAULT_THINK_DELAY,
        clock: Callable[[], float] = time.monotonic,
        difficulty: Difficulty = Difficulty.MEDIUM,
    ) -> None:
        self.policy: OpponentPolicy = policy or HeuristicAI()
        self.aggregator = aggregator or StatsAggregator()
        self.listeners: List[GameListener] = list(listeners)
        self.scheduler = scheduler
        self.think_delay = max(0.0, think_delay)
        self._clock = clock

        self._lock = threading.RLock()
        self._board = Board()
        self._state = EngineState.IDLE
        self._turn = HUMAN
        self._outcome: Optional[GameOutcome] = None
        self._difficulty = difficulty
        self._game_difficulty = difficulty
        self._session_id = 0
        self._started_at = 0.0
        self._pending: Optional[Cancellable] = None
        self._moves: List[Tuple[int, CellMark]] = []

    # ---- read-only accessors ----

    @property
    def board(self) -> Tuple[CellMark, ...]:
        return self._board.cells

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def turn(self) -> CellMark:
        return self._turn

    @property
    def outcome(self) -> Optional[GameOutcome]:
        return self._outcome

    @property
    def winner(self) -> Optional[CellMark]:
        """``X`` or ``O`` once someone has won, else ``None`` (also for a tie)."""
        return self._outcome.winner if self._outcome else None

    @property
    def win_line(self) -> Optional[Line]:
        return self._outcome.line if self._outcome else None

    @property
    def difficulty(self) -> Difficulty:
        """Difficulty for the next game; the running game keeps its own."""
        return self._difficulty

    @property
    def session_id(self) -> int:
        return self._session_id

    @property
    def opponent_pending(self) -> bool:
        return self._state is EngineState.IN_PROGRESS and self._turn is COMPUTER

    @property
    def stats(self) -> GameStats:
        return self.aggregator.stats

    def snapshot(self) -> GameSnapshot:
        with self._lock:
            return GameSnapshot(
                board=self._board.cells,
                state=self._state,
                turn=self._turn,
                outcome=self._outcome,
                difficulty=self._game_difficulty
                if self._state is not EngineState.IDLE
                else self._difficulty,
                session_id=self._session_id,
                opponent_pending=self.opponent_pending,
                move_count=self._board.move_count(),
                moves=tuple(self._moves),
            )

    # ---- inbound calls ----

    def set_difficulty(self, difficulty: Difficulty) -> None:
        with self._lock:
            self._difficulty = Difficulty(difficulty)
            logger.info("Difficulty set to %s", self._difficulty.value)

    def start_game(self) -> int:
        """Begin a fresh game and return its session id.

        Allowed in any state. A game still in progress is abandoned without
        touching the statistics, and its pending opponent move is cancelled.
        """
        with self._lock:
            if self._state is EngineState.IN_PROGRESS:
                logger.info("Abandoning game %d", self._session_id)
            self._cancel_pending()

            self._session_id += 1
            self._board = Board()
            self._state = EngineState.IN_PROGRESS
            self._moves = []
            self._turn = HUMAN
            self._outcome = None
            self._game_difficulty = self._difficulty
            self._started_at = self._clock()

            logger.info(
                "Game %d started on %s", self._session_id, self._game_difficulty.value
            )
            self._emit("on_game_start", self._session_id)
            return self._session_id

    def submit_move(self, index: int) -> None:
        """Place the human's mark on ``index`` and let the opponent reply."""
        with self._lock:
            if self._state is not EngineState.IN_PROGRESS:
                raise InvalidMove("No game in progress")
            if self._turn is not HUMAN:
                raise InvalidMove("Waiting for the opponent to move")

            if self._apply(index, HUMAN):
                return

            self._turn = COMPUTER
            session_id = self._session_id
            if self.scheduler is None:
                self._play_opponent()
                return

            try:
                handle = self.scheduler(
                    self.think_delay, partial(self.complete_opponent_turn, session_id)
                )
            except Exception:
                logger.exception(
                    "Could not schedule the reply for game %d; playing it now",
                    session_id,
                )
                if self.opponent_pending and session_id == self._session_id:
                    self._play_opponent()
                return
            # A scheduler may run the callback before returning
            if self.opponent_pending and session_id == self._session_id:
                self._pending = handle

    def complete_opponent_turn(self, session_id: int) -> bool:
        """Apply the deferred opponent move scheduled for ``session_id``.

        Returns ``False`` without touching anything when the move is stale.
        """
        with self._lock:
            if session_id != self._session_id:
                logger.debug(
                    "Dropping opponent move for game %d; game %d is current",
                    session_id,
                    self._session_id,
                )
                return False
            if not self.opponent_pending:
                return False
            self._pending = None
            self._play_opponent()
            return True

    # ---- internals ----

    def _play_opponent(self) -> None:
        index = self.policy.choose(self._board.copy(), self._game_difficulty)
        if not self._apply(index, COMPUTER):
            self._turn = HUMAN

    def _apply(self, index: int, mark: CellMark) -> bool:
        """Place ``mark`` and settle the game. Returns ``True`` once it is over."""
        self._board.set(index, mark)
        self._moves.append((index, mark))
        logger.debug("Game %d: %s -> %d", self._session_id, mark.value, index)
        self._emit("on_move", index, mark)

        result = evaluate(self._board)
        if result is None and not self._board.is_full():
            return False
        self._finish(result)
        return True

    def _finish(self, result: Optional[WinResult]) -> None:
        self._state = EngineState.FINISHED
        self._outcome = GameOutcome(
            winner=result.winner if result else None,
            line=result.line if result else None,
        )
        duration = max(0, int(self._clock() - self._started_at))
        moves = self._board.move_count()
        logger.info(
            "Game %d finished: %s after %d moves",
            self._session_id,
            "tie" if self._outcome.tied else f"{self._outcome.winner.value} wins",
            moves,
        )
        logger.debug("Final board for game %d:\n%s", self._session_id, self._board)
        self.aggregator.record_game_end(
            self._outcome.winner, duration, moves, self._game_difficulty
        )
        self._emit("on_game_end", self._outcome)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _emit(self, event: str, *args: object) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, event)(*args)
            except Exception:
                logger.exception("Listener %r failed on %s", listener, event)
