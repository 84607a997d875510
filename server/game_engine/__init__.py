"""
Game engine package.
"""
from .board import Board
from .rules import RuleEngine, PlaceResult

__all__ = [
    "Board",
    "RuleEngine",
    "PlaceResult",
]
