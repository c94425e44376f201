"""
Game basics: marks, players, results and the board.
Notes:
- The board is stored as two 9-bit masks, one per mark. The pair is also
  the board's hash key, so positions can index the agent's table directly.
- Crosses always move first.
- Boards are values: play() returns the successor position.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvariantViolation
from .moves import N_MOVES, ROWS, Move, MoveSet

ROW_COLUMN_PATTERNS = [
    [0, 1, 2], [3, 4, 5], [6, 7, 8],
    [0, 3, 6], [1, 4, 7], [2, 5, 8],
]
DIAGONAL_PATTERNS = [[0, 4, 8], [2, 4, 6]]


def _mask(pattern) -> int:
    out = 0
    for i in pattern:
        out |= 1 << i
    return out


ROW_MASKS = [_mask(p) for p in ROW_COLUMN_PATTERNS[:3]]
COLUMN_MASKS = [_mask(p) for p in ROW_COLUMN_PATTERNS[3:]]
DIAGONAL_MASKS = [_mask(p) for p in DIAGONAL_PATTERNS]
FULL_MASK = (1 << N_MOVES) - 1


class Mark(str, Enum):
    CROSS = "X"
    NAUGHT = "O"
    BLANK = "."


class Player(str, Enum):
    CROSSES = "crosses"
    NAUGHTS = "naughts"

    @property
    def mark(self) -> Mark:
        return _PLAYER_MARKS[self]

    def opponent(self) -> "Player":
        return Player.NAUGHTS if self is Player.CROSSES else Player.CROSSES


_PLAYER_MARKS = {Player.CROSSES: Mark.CROSS, Player.NAUGHTS: Mark.NAUGHT}


class WinReason(str, Enum):
    ROW_OR_COLUMN = "row_or_column"
    DIAGONAL = "diagonal"
    RESIGNATION = "resignation"


@dataclass(frozen=True)
class GameResult:
    winner: Optional[Player] = None
    reason: Optional[WinReason] = None

    def __post_init__(self) -> None:
        if (self.winner is None) != (self.reason is None):
            raise ValueError("A win needs both a winner and a reason")

    @classmethod
    def draw(cls) -> "GameResult":
        return cls()

    @classmethod
    def win(cls, winner: Player, reason: WinReason) -> "GameResult":
        return cls(winner, reason)

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    def __str__(self) -> str:
        if self.winner is None:
            return "Draw"
        return f"Win(winner={self.winner.value}, reason={self.reason.value})"


@dataclass(frozen=True)
class Board:
    crosses: int = 0
    naughts: int = 0

    def __post_init__(self) -> None:
        if self.crosses & self.naughts:
            raise ValueError("A cell cannot hold both marks")

    @classmethod
    def empty(cls) -> "Board":
        return cls()

    @classmethod
    def from_string(cls, text: str) -> "Board":
        """Parse a 9-char board string: 0=blank, 1=cross, 2=naught."""
        raw = text.strip()
        if len(raw) != N_MOVES or any(c not in "012" for c in raw):
            raise ValueError("Invalid board string. Must be 9 chars of 0/1/2.")
        crosses = naughts = 0
        for i, c in enumerate(raw):
            if c == "1":
                crosses |= 1 << i
            elif c == "2":
                naughts |= 1 << i
        return cls(crosses, naughts)

    def serialize(self) -> str:
        digits = {Mark.BLANK: "0", Mark.CROSS: "1", Mark.NAUGHT: "2"}
        return "".join(digits[self[m]] for m in Move.all())

    def _mark_bits(self, mark: Mark) -> int:
        return self.crosses if mark is Mark.CROSS else self.naughts

    def _bits(self, player: Player) -> int:
        return self._mark_bits(player.mark)

    def __getitem__(self, move: Move) -> Mark:
        bit = 1 << move.index
        if self.crosses & bit:
            return Mark.CROSS
        if self.naughts & bit:
            return Mark.NAUGHT
        return Mark.BLANK

    def legal_moves(self) -> MoveSet:
        return MoveSet(FULL_MASK & ~(self.crosses | self.naughts))

    def play(self, move: Move, player: Player) -> "Board":
        if self[move] is not Mark.BLANK:
            raise InvariantViolation(f"Cell {move} is already occupied")
        bit = 1 << move.index
        if player.mark is Mark.CROSS:
            return Board(self.crosses | bit, self.naughts)
        return Board(self.crosses, self.naughts | bit)

    def has_row(self, player: Player) -> bool:
        bits = self._bits(player)
        return any(bits & m == m for m in ROW_MASKS)

    def has_column(self, player: Player) -> bool:
        bits = self._bits(player)
        return any(bits & m == m for m in COLUMN_MASKS)

    def has_diagonal(self, player: Player) -> bool:
        bits = self._bits(player)
        return any(bits & m == m for m in DIAGONAL_MASKS)

    def is_full(self) -> bool:
        return (self.crosses | self.naughts) == FULL_MASK

    def to_move(self) -> Player:
        x = bin(self.crosses).count("1")
        o = bin(self.naughts).count("1")
        return Player.CROSSES if x == o else Player.NAUGHTS

    def result(self, last_mover: Player) -> Optional[GameResult]:
        """Result of the game given who just moved, or None if it continues."""
        if self.has_row(last_mover) or self.has_column(last_mover):
            return GameResult.win(last_mover, WinReason.ROW_OR_COLUMN)
        if self.has_diagonal(last_mover):
            return GameResult.win(last_mover, WinReason.DIAGONAL)
        if self.is_full():
            return GameResult.draw()
        return None

    def __str__(self) -> str:
        lines = ["  1 2 3"]
        for r in range(3):
            cells = " ".join(self[Move(3 * r + c)].value for c in range(3))
            lines.append(f"{ROWS[r]} {cells}")
        return "\n".join(lines)
