"""
Per-position move distributions.

Each distribution holds one weight per move (indexed by move) plus a rank
permutation kept sorted by descending weight:

- move_at[r] is the move with the r-th highest weight (rank 0 = heaviest)
- rank_of[m] is the rank of move m

Every update changes exactly one weight, so the order is restored by
bubbling that single move towards the front (weight went up) or the back
(weight went down). Equal weights never swap; ties keep their previous
relative order, which matters because sampling walks the ranks.

Two update schemes share this layout:

- CountDistribution: integer weights, additive increase/decrease, exact total.
- ProbabilityDistribution: float weights renormalized to sum to 1 after
  every multiplicative update.

validate() recomputes everything from scratch. It runs after each mutation
only when the distribution was built with verify=True.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple, Union

import numpy as np

from .errors import InvariantViolation
from .game_basics import Board
from .moves import N_MOVES, Move, MoveSet

FLOAT_TOLERANCE = 1e-9


class _RankedWeights(ABC):
    dtype: type = np.int64

    def __init__(self, board: Board, initial_weight, verify: bool = False) -> None:
        self.legal: MoveSet = board.legal_moves()
        self.verify = verify
        self._weights = np.zeros(N_MOVES, dtype=self.dtype)
        self._rank_of = np.arange(N_MOVES, dtype=np.intp)
        self._move_at = np.arange(N_MOVES, dtype=np.intp)
        # Legal moves come in ascending order, so slot m still holds m when
        # the i-th legal move m is swapped forward into slot i.
        for i, m in enumerate(self.legal):
            mi = m.index
            self._weights[mi] = initial_weight
            displaced = int(self._move_at[i])
            self._move_at[mi] = displaced
            self._rank_of[displaced] = mi
            self._move_at[i] = mi
            self._rank_of[mi] = i

    # --- read access ---
    def weight(self, move: Move):
        return self._weights[move.index].item()

    def weights(self) -> Tuple:
        return tuple(w.item() for w in self._weights)

    def rank_of(self, move: Move) -> int:
        return int(self._rank_of[move.index])

    def move_at(self, rank: int) -> Move:
        return Move(int(self._move_at[rank]))

    def moves_by_rank(self) -> List[Move]:
        return [Move(int(m)) for m in self._move_at]

    @property
    @abstractmethod
    def total(self):
        ...

    # --- ranking ---
    def _require_live(self, move: Move) -> int:
        mi = move.index
        if self._weights[mi] <= 0:
            raise InvariantViolation(f"Move {move} has zero weight and cannot be updated")
        return mi

    def _bubble_up(self, mi: int) -> None:
        w = self._weights
        r = int(self._rank_of[mi])
        while r > 0:
            prev = int(self._move_at[r - 1])
            if w[prev] >= w[mi]:
                break
            self._move_at[r] = prev
            self._rank_of[prev] = r
            r -= 1
        self._move_at[r] = mi
        self._rank_of[mi] = r

    def _bubble_down(self, mi: int) -> None:
        w = self._weights
        r = int(self._rank_of[mi])
        while r + 1 < N_MOVES:
            nxt = int(self._move_at[r + 1])
            if w[nxt] <= w[mi]:
                break
            self._move_at[r] = nxt
            self._rank_of[nxt] = r
            r += 1
        self._move_at[r] = mi
        self._rank_of[mi] = r

    # --- consistency ---
    def validate(self) -> None:
        """Recompute ranks and totals and raise InvariantViolation on mismatch."""
        prev = math.inf
        for r in range(N_MOVES):
            m = int(self._move_at[r])
            if int(self._rank_of[m]) != r:
                raise InvariantViolation(f"rank_of[{m}] != {r}")
            w = self._weights[m]
            if w < 0:
                raise InvariantViolation(f"Negative weight for move {Move(m)}")
            if w > prev:
                raise InvariantViolation(f"Weights not sorted at rank {r}")
            prev = w
        for m in Move.all():
            if m not in self.legal and self._weights[m.index] != 0:
                raise InvariantViolation(f"Illegal move {m} has weight")
        self._validate_total()

    @abstractmethod
    def _validate_total(self) -> None:
        ...

    def _after_update(self) -> None:
        if self.verify:
            self.validate()

    def _format_weight(self, w) -> str:
        return str(w)

    def __str__(self) -> str:
        parts = [f"total: {self._format_weight(self.total)}"]
        for m in self.moves_by_rank():
            w = self.weight(m)
            if w == 0:
                break
            parts.append(f"{m}: {self._format_weight(w)}")
        return ", ".join(parts)


class CountDistribution(_RankedWeights):
    """Integer scores, sampled proportionally to their share of the total."""

    dtype = np.int64

    def __init__(self, board: Board, initial_score: int = 4, verify: bool = False) -> None:
        if initial_score <= 0:
            raise ValueError("initial_score must be positive")
        super().__init__(board, initial_score, verify=verify)
        self._total = initial_score * len(self.legal)
        self._after_update()

    @property
    def total(self) -> int:
        return self._total

    def increase(self, move: Move, amount: int) -> None:
        mi = self._require_live(move)
        if amount < 0:
            raise InvariantViolation(f"Negative increase: {amount}")
        self._weights[mi] += amount
        self._total += amount
        self._bubble_up(mi)
        self._after_update()

    def decrease(self, move: Move, amount: int) -> None:
        mi = self._require_live(move)
        if amount < 0:
            raise InvariantViolation(f"Negative decrease: {amount}")
        amount = min(amount, int(self._weights[mi]))
        self._weights[mi] -= amount
        self._total -= amount
        self._bubble_down(mi)
        self._after_update()

    def sample(self, rng: np.random.Generator) -> Optional[Move]:
        """Pick a move with probability weight/total; None when total is 0."""
        if self._total == 0:
            return None
        x = int(rng.integers(0, self._total))
        for r in range(N_MOVES):
            m = int(self._move_at[r])
            w = int(self._weights[m])
            if x < w:
                return Move(m)
            x -= w
        raise InvariantViolation("Sampling walk ran past the last rank")

    def _validate_total(self) -> None:
        actual = int(self._weights.sum())
        if actual != self._total:
            raise InvariantViolation(f"Tracked total {self._total} != {actual}")


class ProbabilityDistribution(_RankedWeights):
    """Float weights that always sum to 1."""

    dtype = np.float64

    def __init__(self, board: Board, verify: bool = False) -> None:
        n = len(board.legal_moves())
        super().__init__(board, 1.0 / n if n else 0.0, verify=verify)
        self._after_update()

    @property
    def total(self) -> float:
        return math.fsum(self._weights.tolist())

    def multiply(self, move: Move, factor: float) -> float:
        """Scale one weight by factor, renormalize, and return the divisor used."""
        mi = self._require_live(move)
        if not math.isfinite(factor) or factor <= 0.0:
            raise InvariantViolation(f"Invalid factor: {factor}")
        self._weights[mi] *= factor
        divisor = math.fsum(self._weights.tolist())
        self._weights /= divisor
        if factor > 1.0:
            self._bubble_up(mi)
        elif factor < 1.0:
            self._bubble_down(mi)
        self._after_update()
        return divisor

    def sample(self, rng: np.random.Generator) -> Optional[Move]:
        """Walk from the least likely move upwards; None when nothing is legal."""
        if not (self._weights > 0.0).any():
            return None
        x = float(rng.random())
        for r in range(N_MOVES - 1, -1, -1):
            m = int(self._move_at[r])
            w = float(self._weights[m])
            if w == 0.0:
                continue
            if w > x:
                return Move(m)
            x -= w
        raise InvariantViolation("Sampling walk exhausted all ranks")

    def _validate_total(self) -> None:
        if self.legal and abs(self.total - 1.0) > FLOAT_TOLERANCE:
            raise InvariantViolation(f"Weights sum to {self.total}, expected 1")

    def _format_weight(self, w) -> str:
        return f"{w:.4f}"


Distribution = Union[CountDistribution, ProbabilityDistribution]
