"""Reversi rules: board, squares, and the turn-keeping engine."""

from reversiarena.reversi.board import Board, Color, Move, Score, Square
from reversiarena.reversi.engine import (
    PASS,
    Engine,
    IllegalMoveError,
    IllegalPassError,
    MoveError,
)

__all__ = [
    "Board",
    "Color",
    "Engine",
    "IllegalMoveError",
    "IllegalPassError",
    "Move",
    "MoveError",
    "PASS",
    "Score",
    "Square",
]
