"""Reversi engine — whose turn it is, on top of a Board.

Positions are cell indices (row * 8 + col); ``PASS`` (-1) is the pass
sentinel. Every accepted ply, pass included, hands the turn to the other
color and advances the step counter by one.
"""

from __future__ import annotations

from reversiarena.reversi.board import (
    CELLS,
    SIZE,
    Board,
    Color,
    Move,
    Score,
    notation,
    to_index,
    to_position,
)

__all__ = [
    "PASS",
    "PASS_ACTION",
    "Engine",
    "MoveError",
    "IllegalMoveError",
    "IllegalPassError",
]

PASS = -1

# Slot of the pass action in a legal-action mask
PASS_ACTION = CELLS


class MoveError(Exception):
    """Raised by Engine.move for a ply the mover may not make."""

    def __init__(self, color: Color, position: int, details: str = ""):
        self.color = color
        self.position = position
        self.details = details
        super().__init__(f"{color.value} cannot play {describe(position)}: {details}")


class IllegalMoveError(MoveError):
    """Cell is occupied, off the board, or sandwiches nothing."""


class IllegalPassError(MoveError):
    """Pass while a placement exists, or a placement when only a pass is allowed."""


def describe(position: int) -> str:
    if position == PASS:
        return "pass"
    if 0 <= position < CELLS:
        return notation(*to_position(position))
    return f"#{position}"


class Engine:
    """Turn wrapper around a single Board. Not meant to be shared across threads."""

    def __init__(self, board: Board | None = None) -> None:
        self._board = board if board is not None else Board()
        trace = self._board.trace
        self._turn = trace[-1].color.opponent if trace else Color.BLACK

    # ------------------------------------------------------------------
    # Read-throughs
    # ------------------------------------------------------------------

    @property
    def board(self) -> Board:
        return self._board

    @property
    def turn(self) -> Color:
        return self._turn

    @property
    def is_black_turn(self) -> bool:
        return self._turn is Color.BLACK

    @property
    def is_white_turn(self) -> bool:
        return self._turn is Color.WHITE

    @property
    def step(self) -> int:
        return len(self._board.trace)

    @property
    def last_move(self) -> Move | None:
        trace = self._board.trace
        return trace[-1] if trace else None

    @property
    def score(self) -> Score:
        return self._board.score

    @property
    def is_end(self) -> bool:
        return self._board.score.is_end

    @property
    def black_can_move(self) -> bool:
        return self._board.score.black_can_move

    @property
    def white_can_move(self) -> bool:
        return self._board.score.white_can_move

    @property
    def turn_enable(self) -> bool:
        """True if the mover has at least one legal placement."""
        return self._board.score.can_move(self._turn)

    @property
    def black_win(self) -> bool:
        return self._board.score.winner is Color.BLACK

    @property
    def white_win(self) -> bool:
        return self._board.score.winner is Color.WHITE

    # ------------------------------------------------------------------
    # Legality
    # ------------------------------------------------------------------

    def enable(self, position: int) -> bool:
        """Can the mover play ``position`` (a cell index or PASS) right now?"""
        if self.is_end:
            return False
        if position == PASS:
            return not self.turn_enable
        if not 0 <= position < CELLS:
            return False
        return self._board.legal(*to_position(position), self._turn)

    def legal_moves(self) -> list[int]:
        """Cell indices the mover may play, in row-major order."""
        return [i for i in range(CELLS) if self.enable(i)]

    def legal_mask(self) -> list[bool]:
        """One flag per cell plus a final flag for pass."""
        mask = [self.enable(i) for i in range(CELLS)]
        mask.append(self.enable(PASS))
        return mask

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def move(self, position: int) -> list[int]:
        """Play ``position`` for the mover and hand the turn over.

        Returns the indices of the flipped stones (empty for a pass).
        Raises IllegalMoveError / IllegalPassError without touching the
        board if the ply is not allowed.
        """
        color = self._turn
        if self.is_end:
            raise IllegalMoveError(color, position, "the game is over")

        if position == PASS:
            if self.turn_enable:
                raise IllegalPassError(color, position, "a legal placement exists")
            self._board.move(None, color)
            self._turn = color.opponent
            return []

        if not 0 <= position < CELLS:
            raise IllegalMoveError(color, position, "not a board cell")
        if not self.turn_enable:
            raise IllegalPassError(color, position, "no legal placement, must pass")
        row, col = to_position(position)
        if not self._board[row, col].is_empty:
            raise IllegalMoveError(color, position, "cell is occupied")
        if not self._board.legal(row, col, color):
            raise IllegalMoveError(color, position, "no stones to flip")

        flipped = self._board.move((row, col), color)
        self._turn = color.opponent
        return [to_index(r, c) for r, c in flipped]

    def retract(self, color: Color | None = None) -> int:
        """Undo the last round for ``color`` (default: the side to move).

        Removes ``color``'s last ply and, if the opponent has replied, that
        reply; ``color`` is on move afterwards. Returns plies removed.
        """
        color = self._turn if color is None else color
        removed = self._board.retract_last_round(color)
        if removed:
            self._turn = color
        assert self._turn is (Color.BLACK if self.step % 2 == 0 else Color.WHITE)
        return removed

    def reset(self) -> None:
        self._board.reset()
        self._turn = Color.BLACK

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict:
        """Serializable read-only view for render and inference collaborators."""
        board = self._board
        score = board.score
        last = self.last_move
        cells = []
        movable = []
        for r in range(SIZE):
            cells.append([board[r, c].color.mark if board[r, c].color else "" for c in range(SIZE)])
            movable.append([
                "".join(color.mark for color in Color if color in board.movable(r, c))
                for c in range(SIZE)
            ])
        return {
            "board": cells,
            "movable": movable,
            "turn": self._turn.value,
            "step": self.step,
            "last_move": str(last) if last is not None else None,
            "piece_counts": {"B": score.black, "W": score.white},
            "can_move": {"black": score.black_can_move, "white": score.white_can_move},
            "terminal": score.is_end,
        }

    def __str__(self) -> str:
        return f"turn = {self._turn.value}\n{self._board}"
