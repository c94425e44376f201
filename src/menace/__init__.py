"""menace package.

Matchbox-style self-play learner for tic-tac-toe: per-position move
distributions, two credit-assignment schemes, a training loop and a CLI.

Convenience imports are exposed for common workflows.
"""

from .agent import Agent
from .config import AgentConfig
from .distribution import CountDistribution, ProbabilityDistribution
from .errors import InvariantViolation, MoveParseError, ParseErrorKind
from .game_basics import Board, GameResult, Mark, Player, WinReason
from .moves import Move, MoveSet
from .training import TrainArgs, run_training

__all__ = [
    "Agent",
    "AgentConfig",
    "Board",
    "CountDistribution",
    "GameResult",
    "InvariantViolation",
    "Mark",
    "Move",
    "MoveParseError",
    "MoveSet",
    "ParseErrorKind",
    "Player",
    "ProbabilityDistribution",
    "TrainArgs",
    "WinReason",
    "run_training",
]
