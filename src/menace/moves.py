"""
Moves and move sets for Tic-Tac-Toe.
Notes:
- A move is a cell index 0..8, row-major: index = 3 * row + column.
- Text form is a row letter a-c followed by a column digit 1-3, e.g. "b2" = 4.
- MoveSet is a 9-bit mask; iteration is always in ascending index order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator

from .errors import MoveParseError, ParseErrorKind

N_MOVES = 9
ROWS = "abc"
_FULL_MASK = (1 << N_MOVES) - 1


@dataclass(frozen=True, order=True)
class Move:
    index: int

    def __post_init__(self) -> None:
        if not 0 <= self.index < N_MOVES:
            raise ValueError(f"Move index out of range: {self.index}")

    @property
    def row(self) -> int:
        return self.index // 3

    @property
    def column(self) -> int:
        return self.index % 3

    @classmethod
    def all(cls) -> Iterator["Move"]:
        """All moves ordered by index."""
        return (cls(i) for i in range(N_MOVES))

    def to_text(self) -> str:
        return f"{ROWS[self.row]}{self.column + 1}"

    def __str__(self) -> str:
        return self.to_text()

    @classmethod
    def from_text(cls, text: str) -> "Move":
        """Decode a coordinate like "a1".

        Everything after the row letter is read as the column number, so
        "b22" is out of range rather than malformed.
        """
        raw = text.strip()
        if not raw:
            raise MoveParseError(ParseErrorKind.EMPTY, text)
        letter, rest = raw[0], raw[1:]
        if letter not in ROWS:
            raise MoveParseError(ParseErrorKind.LETTER_OUT_OF_RANGE, text)
        if not rest.isdigit() or not rest.isascii():
            raise MoveParseError(ParseErrorKind.COLUMN_NOT_NUMERIC, text)
        col = int(rest)
        if not 1 <= col <= 3:
            raise MoveParseError(ParseErrorKind.COLUMN_OUT_OF_RANGE, text)
        return cls(3 * ROWS.index(letter) + col - 1)


@dataclass(frozen=True)
class MoveSet:
    bits: int = 0

    @classmethod
    def empty(cls) -> "MoveSet":
        return cls(0)

    @classmethod
    def full(cls) -> "MoveSet":
        return cls(_FULL_MASK)

    @classmethod
    def from_predicate(cls, pred: Callable[[Move], bool]) -> "MoveSet":
        return cls.full().filter(pred)

    def contains(self, move: Move) -> bool:
        return bool(self.bits & (1 << move.index))

    def __contains__(self, move: object) -> bool:
        return isinstance(move, Move) and self.contains(move)

    def add(self, move: Move) -> "MoveSet":
        return MoveSet(self.bits | (1 << move.index))

    def remove(self, move: Move) -> "MoveSet":
        return MoveSet(self.bits & ~(1 << move.index))

    def filter(self, pred: Callable[[Move], bool]) -> "MoveSet":
        out = self
        for m in self:
            if not pred(m):
                out = out.remove(m)
        return out

    def __iter__(self) -> Iterator[Move]:
        for i in range(N_MOVES):
            if self.bits & (1 << i):
                yield Move(i)

    def __len__(self) -> int:
        return bin(self.bits & _FULL_MASK).count("1")

    def __str__(self) -> str:
        return "{" + ", ".join(str(m) for m in self) + "}"
