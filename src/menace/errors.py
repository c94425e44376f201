"""
Error types.

Two kinds of failure exist:
- MoveParseError: malformed move text from a user. Recoverable, carries a kind.
- InvariantViolation: the engine itself is in an inconsistent state (a move
  that was never legal got updated, a rank array no longer matches the
  weights, ...). Never caught inside the package.
"""
from __future__ import annotations

from enum import Enum


class ParseErrorKind(str, Enum):
    EMPTY = "empty"
    LETTER_OUT_OF_RANGE = "letter_out_of_range"
    COLUMN_NOT_NUMERIC = "column_not_numeric"
    COLUMN_OUT_OF_RANGE = "column_out_of_range"


_MESSAGES = {
    ParseErrorKind.EMPTY: "A move cannot be an empty string.",
    ParseErrorKind.LETTER_OUT_OF_RANGE: "The letter in a move must be between a and c.",
    ParseErrorKind.COLUMN_NOT_NUMERIC: "The move column should be represented by a number.",
    ParseErrorKind.COLUMN_OUT_OF_RANGE: "The move column must be in the range [1, 3].",
}


class MoveParseError(ValueError):
    def __init__(self, kind: ParseErrorKind, text: str = "") -> None:
        super().__init__(_MESSAGES[kind])
        self.kind = kind
        self.text = text


class InvariantViolation(RuntimeError):
    """Raised when an engine invariant is broken."""
