"""
The self-play agent.

The agent keeps one distribution per position it has seen, samples moves
from them, and after each training match shifts weight towards the moves
the winner played.

Credit assignment:
- count scheme: decisive games only. The winner's moves, earliest first,
  get +round(k) with k = 1, gamma, gamma^2, ...; the loser's moves get
  -round(k) with the same sequence.
- probability scheme: decisive games and draws. Each player's moves are
  walked latest first. The first move is multiplied by the player's factor
  (win_boost, 1/win_boost, or draw_damping); every earlier move is
  multiplied by the cube root of the renormalization divisor returned by
  the step before it.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

import numpy as np

from .config import AgentConfig
from .distribution import CountDistribution, Distribution, ProbabilityDistribution
from .game_basics import Board, GameResult, Player, WinReason
from .moves import Move


@dataclass(frozen=True)
class Ply:
    board: Board
    move: Move
    player: Player


def round_half_up(k: float) -> int:
    return int(math.floor(k + 0.5))


class Agent:
    """Tabular self-play learner over per-position move distributions."""

    def __init__(self, config: Optional[AgentConfig] = None) -> None:
        self.config = config or AgentConfig.from_env()
        self.rng = np.random.default_rng(self.config.seed)
        self._values: Dict[Board, Distribution] = {}

    def __len__(self) -> int:
        return len(self._values)

    @property
    def positions(self) -> int:
        return len(self._values)

    def items(self) -> Iterator:
        return iter(self._values.items())

    def _new_distribution(self, board: Board) -> Distribution:
        cfg = self.config
        if cfg.scheme == "probability":
            return ProbabilityDistribution(board, verify=cfg.verify)
        return CountDistribution(board, initial_score=cfg.initial_score, verify=cfg.verify)

    def get_distribution(self, board: Board) -> Distribution:
        dist = self._values.get(board)
        if dist is None:
            dist = self._new_distribution(board)
            self._values[board] = dist
        return dist

    def select_move(self, board: Board) -> Optional[Move]:
        return self.get_distribution(board).sample(self.rng)

    def play_training_match(self) -> GameResult:
        board = Board.empty()
        history: List[Ply] = []
        turn = Player.CROSSES
        while True:
            move = self.select_move(board)
            if move is None:
                result = GameResult.win(turn.opponent(), WinReason.RESIGNATION)
                break
            history.append(Ply(board, move, turn))
            board = board.play(move, turn)
            res = board.result(turn)
            if res is not None:
                result = res
                break
            turn = turn.opponent()

        logging.debug("match result=%s plies=%d", result, len(history))
        if self.config.scheme == "probability":
            self._assign_probabilities(result, history)
        else:
            self._assign_counts(result, history)
        return result

    def _moves_of(self, history: List[Ply], player: Player) -> List[Ply]:
        return [p for p in history if p.player is player]

    def _assign_counts(self, result: GameResult, history: List[Ply]) -> None:
        if result.winner is None:
            return
        gamma = self.config.gamma
        k = 1.0
        for ply in self._moves_of(history, result.winner):
            self._values[ply.board].increase(ply.move, round_half_up(k))
            k *= gamma
        k = 1.0
        for ply in self._moves_of(history, result.winner.opponent()):
            self._values[ply.board].decrease(ply.move, round_half_up(k))
            k *= gamma

    def _assign_probabilities(self, result: GameResult, history: List[Ply]) -> None:
        cfg = self.config
        if result.winner is None:
            factors = {Player.CROSSES: cfg.draw_damping, Player.NAUGHTS: cfg.draw_damping}
        else:
            factors = {
                result.winner: cfg.win_boost,
                result.winner.opponent(): 1.0 / cfg.win_boost,
            }
        for player, factor in factors.items():
            for ply in reversed(self._moves_of(history, player)):
                divisor = self._values[ply.board].multiply(ply.move, factor)
                factor = divisor ** (1.0 / 3.0)
