"""Shared fakes for engine and API tests."""

from __future__ import annotations

from typing import Callable, Iterable, List, Tuple

import pytest

from tictactouch.engine import GameListener


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHandle:
    def __init__(self, callback: Callable[[], None]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects deferred callbacks so tests decide when they run."""

    def __init__(self) -> None:
        self.calls: List[Tuple[float, FakeHandle]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.calls.append((delay, handle))
        return handle

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for _, h in self.calls if not h.cancelled]

    def run_all(self) -> None:
        """Fire every callback that has not been cancelled, including stale ones."""
        for handle in self.pending:
            handle.callback()
        self.calls.clear()


class ScriptedPolicy:
    """Opponent that plays a fixed list of cells in order."""

    def __init__(self, moves: Iterable[int]) -> None:
        self.moves = list(moves)
        self.seen = []

    def choose(self, board, difficulty):
        self.seen.append(difficulty)
        return self.moves.pop(0)


class RecordingListener(GameListener):
    def __init__(self) -> None:
        self.events = []

    def on_game_start(self, session_id):
        self.events.append(("start", session_id))

    def on_move(self, index, mark):
        self.events.append(("move", index, mark))

    def on_game_end(self, outcome):
        self.events.append(("end", outcome))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()
