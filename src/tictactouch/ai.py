"""Opponent move selection for TicTacTouch."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Protocol, Tuple

from .game import COMPUTER, Board, CellMark, evaluate


logger = logging.getLogger(__name__)

CENTER = 4
CORNERS: Tuple[int, ...] = (0, 2, 6, 8)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    OPTIMUS = "optimus"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


# Chance of overlooking the win-now and block rules, used only in tiered mode.
MISTAKE_RATES: Dict[Difficulty, float] = {
    Difficulty.EASY: 0.5,
    Difficulty.MEDIUM: 0.25,
    Difficulty.HARD: 0.0,
    Difficulty.OPTIMUS: 0.0,
}


class NoLegalMove(RuntimeError):
    """The opponent was asked to move on a full board."""


class OpponentPolicy(Protocol):
    def choose(self, board: Board, difficulty: Difficulty) -> int: ...


@dataclass
class HeuristicAI:
    """Win, block, centre, corner, then random.

    With ``tiered`` left off every difficulty plays the same way. Turning it on
    lets the easier tiers miss tactics and hands Optimus to a full search.
    """

    player: CellMark = COMPUTER
    tiered: bool = False
    rng: random.Random = field(default_factory=random.Random, repr=False)
    _search: Optional["MinimaxAI"] = field(default=None, init=False, repr=False)

    def choose(self, board: Board, difficulty: Difficulty = Difficulty.MEDIUM) -> int:
        empty = board.empty_cells()
        if not empty:
            raise NoLegalMove("No empty cells left on the board")

        if self.tiered:
            if difficulty is Difficulty.OPTIMUS:
                if self._search is None:
                    self._search = MinimaxAI(player=self.player)
                return self._search.choose(board)
            skip_tactics = self.rng.random() < MISTAKE_RATES[difficulty]
        else:
            skip_tactics = False

        if not skip_tactics:
            move = self._completing_move(board, empty, self.player)
            if move is not None:
                return move
            move = self._completing_move(board, empty, self.player.opponent)
            if move is not None:
                return move

        if board.get(CENTER) is CellMark.EMPTY:
            return CENTER
        for corner in CORNERS:
            if board.get(corner) is CellMark.EMPTY:
                return corner
        return self.rng.choice(empty)

    @staticmethod
    def _completing_move(
        board: Board, empty: List[int], mark: CellMark
    ) -> Optional[int]:
        for index in empty:
            trial = board.copy()
            trial.set(index, mark)
            result = evaluate(trial)
            if result is not None and result.winner is mark:
                return index
        return None


@dataclass
class MinimaxAI:
    """Alpha-beta search over the full game tree with a transposition table.

    The 3x3 tree is small enough to search to the end, so this player never
    loses. Shorter wins score higher and later losses score higher.
    """

    player: CellMark = COMPUTER
    _tt: Dict[Tuple[Tuple[CellMark, ...], bool], float] = field(
        default_factory=dict, repr=False
    )

    def choose(self, board: Board) -> int:
        moves = board.empty_cells()
        if not moves:
            raise NoLegalMove("No empty cells left on the board")

        best_move = moves[0]
        best_score = -math.inf
        for move in self._ordered(moves):
            child = board.copy()
            child.set(move, self.player)
            score = self._minimax(child, -math.inf, math.inf, False)
            if score > best_score:
                best_score, best_move = score, move
        logger.debug("Minimax picked %d (score %.1f)", best_move, best_score)
        return best_move

    def _minimax(
        self, board: Board, alpha: float, beta: float, maximizing: bool
    ) -> float:
        result = evaluate(board)
        moves = board.empty_cells()
        if result is not None:
            # One point per empty cell rewards quick wins and slow losses
            sign = 1.0 if result.winner is self.player else -1.0
            return sign * (10.0 + len(moves))
        if not moves:
            return 0.0

        key = (board.cells, maximizing)
        cached = self._tt.get(key)
        if cached is not None:
            return cached

        alpha0, beta0 = alpha, beta
        mark = self.player if maximizing else self.player.opponent
        if maximizing:
            value = -math.inf
            for move in self._ordered(moves):
                child = board.copy()
                child.set(move, mark)
                value = max(value, self._minimax(child, alpha, beta, False))
                alpha = max(alpha, value)
                if alpha >= beta:
                    break
        else:
            value = math.inf
            for move in self._ordered(moves):
                child = board.copy()
                child.set(move, mark)
                value = min(value, self._minimax(child, alpha, beta, True))
                beta = min(beta, value)
                if alpha >= beta:
                    break

        # Cut-off bounds depend on the window; only exact values are cached
        if alpha0 < value < beta0:
            self._tt[key] = value
        return value

    @staticmethod
    def _ordered(moves: List[int]) -> List[int]:
        # centre > corner > edge
        return sorted(
            moves, key=lambda m: 2 if m == CENTER else (1 if m in CORNERS else 0),
            reverse=True,
        )
