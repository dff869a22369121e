"""TicTacTouch package exposing the game engine, opponent AI, and the web adapter."""

from .ai import Difficulty, HeuristicAI, MinimaxAI
from .engine import GameEngine, GameListener, GameOutcome
from .game import Board, CellMark, evaluate
from .stats import GameStats, StatsAggregator
from .ui import app

__all__ = [
    "Board",
    "CellMark",
    "Difficulty",
    "GameEngine",
    "GameListener",
    "GameOutcome",
    "GameStats",
    "HeuristicAI",
    "MinimaxAI",
    "StatsAggregator",
    "app",
    "evaluate",
]
