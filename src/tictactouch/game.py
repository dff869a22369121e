"""Board model and win detection for TicTacTouch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Tuple


class CellMark(str, Enum):
    """Occupancy of a single cell. ``X`` is the human, ``O`` the opponent."""

    EMPTY = ""
    X = "X"
    O = "O"

    @property
    def opponent(self) -> "CellMark":
        if self is CellMark.X:
            return CellMark.O
        if self is CellMark.O:
            return CellMark.X
        raise ValueError("An empty cell has no opponent")


HUMAN = CellMark.X
COMPUTER = CellMark.O

BOARD_SIZE = 9

Line = Tuple[int, int, int]

# Rows, then columns, then diagonals. The order decides which line is
# reported when a board is won more than once.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class InvalidMove(ValueError):
    """A move was rejected: wrong turn, finished game, or a bad cell."""


class OutOfRange(InvalidMove):
    """Cell index outside 0-8."""


class CellOccupied(InvalidMove):
    """Target cell already holds a mark."""


@dataclass(frozen=True)
class WinResult:
    line: Line
    winner: CellMark


class Board:
    """Nine cells in row-major order; ``set`` is the only way to add a mark."""

    def __init__(self, cells: Optional[Iterable[CellMark]] = None) -> None:
        self._cells: List[CellMark] = (
            list(cells) if cells is not None else [CellMark.EMPTY] * BOARD_SIZE
        )
        if len(self._cells) != BOARD_SIZE:
            raise ValueError(f"Expected {BOARD_SIZE} cells, got {len(self._cells)}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Board):
            return NotImplemented
        return self._cells == other._cells

    def __repr__(self) -> str:
        return f"Board({''.join(c.value or '.' for c in self._cells)!r})"

    @staticmethod
    def _check_index(index: int) -> None:
        if not isinstance(index, int) or not 0 <= index < BOARD_SIZE:
            raise OutOfRange(f"Cell index {index!r} is outside 0-{BOARD_SIZE - 1}")

    @classmethod
    def from_marks(cls, marks: str) -> "Board":
        """Build a board from a 9-character string such as ``"XX.OO...."``.

        ``X`` and ``O`` are marks; any other character is an empty cell.
        """
        if len(marks) != BOARD_SIZE:
            raise ValueError(f"Expected {BOARD_SIZE} cells, got {len(marks)}")
        lookup = {"X": CellMark.X, "O": CellMark.O}
        return cls([lookup.get(c, CellMark.EMPTY) for c in marks.upper()])

    @property
    def cells(self) -> Tuple[CellMark, ...]:
        return tuple(self._cells)

    def get(self, index: int) -> CellMark:
        self._check_index(index)
        return self._cells[index]

    def set(self, index: int, mark: CellMark) -> None:
        self._check_index(index)
        if mark is CellMark.EMPTY:
            raise ValueError("Cannot clear a cell during a game")
        if self._cells[index] is not CellMark.EMPTY:
            raise CellOccupied(f"Cell {index} is already taken")
        self._cells[index] = mark

    def is_full(self) -> bool:
        return all(c is not CellMark.EMPTY for c in self._cells)

    def reset(self) -> None:
        self._cells[:] = [CellMark.EMPTY] * BOARD_SIZE

    def empty_cells(self) -> List[int]:
        return [i for i, c in enumerate(self._cells) if c is CellMark.EMPTY]

    def move_count(self) -> int:
        return BOARD_SIZE - len(self.empty_cells())

    def copy(self) -> "Board":
        return Board(self._cells.copy())

    def __str__(self) -> str:
        rows = []
        for r in range(3):
            rows.append(
                "".join(c.value or "." for c in self._cells[r * 3 : r * 3 + 3])
            )
        return "\n".join(rows)


def evaluate(board: Board) -> Optional[WinResult]:
    """Return the first fully marked line on ``board``, or ``None``."""
    cells = board.cells
    for a, b, c in WINNING_LINES:
        v = cells[a]
        if v is not CellMark.EMPTY and v == cells[b] == cells[c]:
            return WinResult(line=(a, b, c), winner=v)
    return None
