"""Shared test fixtures for reversiarena."""

import pytest

from reversiarena.reversi.board import SIZE, Board, Color
from reversiarena.reversi.engine import Engine


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def board():
    return Board()


@pytest.fixture
def engine():
    return Engine()


@pytest.fixture
def arrange():
    """Replace a board's stones with a crafted position (trace cleared)."""

    def _arrange(board: Board, black=(), white=()) -> Board:
        for r in range(SIZE):
            for c in range(SIZE):
                board[r, c].clear()
        for pos in black:
            board[pos].place(Color.BLACK, 0)
        for pos in white:
            board[pos].place(Color.WHITE, 0)
        board._trace = []
        board._dirty = True
        return board

    return _arrange
