"""Reversi board — squares, move trace, and the cached aggregate.

The board owns an 8×8 grid of squares and the ordered trace of plies
played since the last full reset. Stone counts and per-side movability
live in an aggregate that is invalidated on every mutation and rebuilt
by a full board pass on the next read.

Not safe for concurrent callers: a board belongs to a single engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = [
    "SIZE",
    "CELLS",
    "Color",
    "Square",
    "Move",
    "Score",
    "Board",
    "to_index",
    "to_position",
    "in_bounds",
    "notation",
    "parse_notation",
]

SIZE = 8
CELLS = SIZE * SIZE

COLUMN_NAMES = "abcdefgh"
ROW_NAMES = "12345678"

# Eight directions: (row_delta, col_delta)
_DIRECTIONS = [
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
]


class Color(Enum):
    BLACK = "black"
    WHITE = "white"

    @property
    def opponent(self) -> Color:
        return Color.WHITE if self is Color.BLACK else Color.BLACK

    @property
    def mark(self) -> str:
        return "B" if self is Color.BLACK else "W"


# ------------------------------------------------------------------
# Index / notation helpers
# ------------------------------------------------------------------

def to_index(row: int, col: int) -> int:
    return row * SIZE + col


def to_position(index: int) -> tuple[int, int]:
    return divmod(index, SIZE)


def in_bounds(row: int, col: int) -> bool:
    return 0 <= row < SIZE and 0 <= col < SIZE


def notation(row: int, col: int) -> str:
    """Return the algebraic name of a cell, e.g. (2, 4) -> "e3"."""
    return f"{COLUMN_NAMES[col]}{ROW_NAMES[row]}"


def parse_notation(text: str) -> tuple[int, int]:
    """Inverse of notation(). Raises ValueError on anything else."""
    text = text.strip().lower()
    if len(text) != 2 or text[0] not in COLUMN_NAMES or text[1] not in ROW_NAMES:
        raise ValueError(f"Not a board cell: {text!r}")
    return ROW_NAMES.index(text[1]), COLUMN_NAMES.index(text[0])


# ------------------------------------------------------------------
# Value types
# ------------------------------------------------------------------

class Square:
    """One cell: empty, or holding a stone of one color."""

    __slots__ = ("color", "placed_at_step")

    def __init__(self) -> None:
        self.color: Color | None = None
        self.placed_at_step: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.color is None

    def place(self, color: Color, step: int) -> None:
        assert self.color is None, "place() on an occupied square"
        self.color = color
        self.placed_at_step = step

    def flip(self) -> None:
        assert self.color is not None, "flip() on an empty square"
        self.color = self.color.opponent

    def clear(self) -> None:
        self.color = None
        self.placed_at_step = None

    def __str__(self) -> str:
        if self.color is Color.BLACK:
            return "●"
        if self.color is Color.WHITE:
            return "○"
        return "・"

    def __repr__(self) -> str:
        return f"Square({self.color}, placed_at_step={self.placed_at_step})"


@dataclass(frozen=True)
class Move:
    """One ply of the trace. ``position`` is None for a pass."""

    position: tuple[int, int] | None
    color: Color

    @property
    def is_pass(self) -> bool:
        return self.position is None

    def __str__(self) -> str:
        if self.position is None:
            return "pass"
        return notation(*self.position)


@dataclass(frozen=True)
class Score:
    """Stone counts and per-side movability."""

    black: int
    white: int
    black_can_move: bool
    white_can_move: bool

    @property
    def empty(self) -> int:
        return CELLS - self.black - self.white

    @property
    def is_end(self) -> bool:
        return not (self.black_can_move or self.white_can_move)

    def can_move(self, color: Color) -> bool:
        return self.black_can_move if color is Color.BLACK else self.white_can_move

    def count(self, color: Color) -> int:
        return self.black if color is Color.BLACK else self.white

    @property
    def winner(self) -> Color | None:
        """Color with more stones, None on equal counts."""
        if self.black > self.white:
            return Color.BLACK
        if self.white > self.black:
            return Color.WHITE
        return None


# ------------------------------------------------------------------
# Board
# ------------------------------------------------------------------

class Board:
    """Fixed 8×8 Reversi board with a replayable move trace."""

    def __init__(self) -> None:
        self._squares = [[Square() for _ in range(SIZE)] for _ in range(SIZE)]
        self._trace: list[Move] = []
        self._dirty = True
        self._score = Score(0, 0, False, False)
        self._movable: list[list[frozenset[Color]]] = [
            [frozenset()] * SIZE for _ in range(SIZE)
        ]
        self.reset()

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def __getitem__(self, position: tuple[int, int]) -> Square:
        row, col = position
        return self._squares[row][col]

    def square(self, index: int) -> Square:
        return self[to_position(index)]

    @property
    def trace(self) -> tuple[Move, ...]:
        return tuple(self._trace)

    @property
    def score(self) -> Score:
        """Aggregate counts and movability, rebuilt in full when dirty."""
        if self._dirty:
            self._recompute()
        return self._score

    def movable(self, row: int, col: int) -> frozenset[Color]:
        """Colors that may legally play at (row, col). Empty for occupied cells."""
        if self._dirty:
            self._recompute()
        return self._movable[row][col]

    def legal(self, row: int, col: int, color: Color) -> bool:
        if not in_bounds(row, col):
            return False
        return color in self.movable(row, col)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def move(self, position: tuple[int, int] | None, color: Color) -> list[tuple[int, int]]:
        """Apply one ply and return the flipped cells.

        The caller must already have checked legality. A ``None``
        position records a pass without touching any square.
        """
        if position is None:
            self._trace.append(Move(None, color))
            return []

        row, col = position
        assert self.legal(row, col, color), f"{color.value} cannot play {notation(row, col)}"

        self._trace.append(Move((row, col), color))
        self._squares[row][col].place(color, len(self._trace))
        flipped: list[tuple[int, int]] = []
        for dr, dc in _DIRECTIONS:
            run = self._sandwiched_run(row, col, dr, dc, color)
            for r, c in run:
                self._squares[r][c].flip()
            flipped.extend(run)
        self._dirty = True
        return flipped

    def retract_last_round(self, color: Color) -> int:
        """Undo ``color``'s last ply and any opponent ply played after it.

        Plies strictly alternate (passes are recorded), so at most two
        entries are removed. The remaining trace is replayed from the
        opening position. Returns the number of plies removed; 0 when
        ``color`` has not played since the last reset.
        """
        for i in range(len(self._trace) - 1, -1, -1):
            if self._trace[i].color is color:
                break
        else:
            return 0

        removed = len(self._trace) - i
        assert removed in (1, 2), f"trace does not alternate: {self._trace[i:]}"
        del self._trace[i:]
        self.reset(replay=True)
        return removed

    def reset(self, replay: bool = False) -> None:
        """Clear the board and seed the four centre stones.

        With ``replay`` the current trace is played back over the fresh
        board; otherwise the trace is discarded.
        """
        captured = self._trace if replay else []
        self._trace = []
        for row in self._squares:
            for square in row:
                square.clear()

        half = SIZE // 2 - 1
        self._squares[half][half].place(Color.BLACK, 0)
        self._squares[half][half + 1].place(Color.WHITE, 0)
        self._squares[half + 1][half].place(Color.WHITE, 0)
        self._squares[half + 1][half + 1].place(Color.BLACK, 0)
        self._dirty = True

        for entry in captured:
            self.move(entry.position, entry.color)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _sandwiched_run(
        self, row: int, col: int, dr: int, dc: int, color: Color
    ) -> list[tuple[int, int]]:
        """Opposite-color run next to (row, col) that ends on ``color``.

        Returns an empty list when the run is empty, leaves the board, or
        stops on an empty square.
        """
        opposite = color.opponent
        run: list[tuple[int, int]] = []
        r, c = row + dr, col + dc
        while in_bounds(r, c) and self._squares[r][c].color is opposite:
            run.append((r, c))
            r += dr
            c += dc
        if run and in_bounds(r, c) and self._squares[r][c].color is color:
            return run
        return []

    def _enables(self, row: int, col: int, color: Color) -> bool:
        return any(
            self._sandwiched_run(row, col, dr, dc, color) for dr, dc in _DIRECTIONS
        )

    def _recompute(self) -> None:
        # Always a full pass: one flip can change legality anywhere along its lines.
        black = white = 0
        black_can_move = white_can_move = False
        for r in range(SIZE):
            for c in range(SIZE):
                square = self._squares[r][c]
                if square.color is Color.BLACK:
                    black += 1
                    self._movable[r][c] = frozenset()
                elif square.color is Color.WHITE:
                    white += 1
                    self._movable[r][c] = frozenset()
                else:
                    movers = frozenset(
                        color for color in Color if self._enables(r, c, color)
                    )
                    self._movable[r][c] = movers
                    black_can_move = black_can_move or Color.BLACK in movers
                    white_can_move = white_can_move or Color.WHITE in movers
        self._score = Score(black, white, black_can_move, white_can_move)
        self._dirty = False

    def __str__(self) -> str:
        score = self.score
        lines = [
            f"Score = {score.black} : {score.white} "
            f"(black_can_move={score.black_can_move}, white_can_move={score.white_can_move})",
            "  " + " ".join(COLUMN_NAMES),
        ]
        for r in range(SIZE):
            lines.append(ROW_NAMES[r] + " " + "".join(str(s) for s in self._squares[r]))
        return "\n".join(lines)
