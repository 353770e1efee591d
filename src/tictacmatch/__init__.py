"""Tic-tac-toe match engine, computer opponents, and the web application."""

from .ai import Difficulty, Strategy, choose_move
from .game import MatchConfig, MatchEngine, MatchType
from .ui import app

__all__ = [
    "Difficulty",
    "MatchConfig",
    "MatchEngine",
    "MatchType",
    "Strategy",
    "app",
    "choose_move",
]
