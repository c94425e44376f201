"""Agent configuration.

Environment-first: AgentConfig.from_env() reads MENACE_* variables and
falls back to the defaults below. CLI flags override both.
"""

from __future__ import annotations

import math
import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict

SCHEMES = ("count", "probability")

INITIAL_SCORE = 4
GAMMA = 1.0
WIN_BOOST = 2.0
DRAW_DAMPING = 0.9
RAND_SEED = 43


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    val = raw.strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a {cast.__name__}, got {raw!r}") from None


@dataclass(frozen=True)
class AgentConfig:
    scheme: str = "count"
    initial_score: int = INITIAL_SCORE
    gamma: float = GAMMA
    win_boost: float = WIN_BOOST
    draw_damping: float = DRAW_DAMPING
    seed: int = RAND_SEED
    verify: bool = False

    def __post_init__(self) -> None:
        if self.scheme not in SCHEMES:
            raise ValueError(f"Unknown scheme: {self.scheme}")
        if self.initial_score <= 0:
            raise ValueError("initial_score must be positive")
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError("gamma must be in [0, 1]")
        if not (math.isfinite(self.win_boost) and self.win_boost > 1.0):
            raise ValueError("win_boost must be a finite number > 1")
        if not 0.0 < self.draw_damping < 1.0:
            raise ValueError("draw_damping must be in (0, 1)")
        if self.seed < 0:
            raise ValueError("seed must be non-negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> "AgentConfig":
        cfg = cls(
            scheme=os.getenv("MENACE_SCHEME") or "count",
            initial_score=_env_number("MENACE_INITIAL_SCORE", INITIAL_SCORE, int),
            gamma=_env_number("MENACE_GAMMA", GAMMA, float),
            win_boost=_env_number("MENACE_WIN_BOOST", WIN_BOOST, float),
            draw_damping=_env_number("MENACE_DRAW_DAMPING", DRAW_DAMPING, float),
            seed=_env_number("MENACE_SEED", RAND_SEED, int),
            verify=_env_bool("MENACE_VERIFY", False),
        )
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(cfg, **given) if given else cfg

    def as_params(self) -> Dict[str, Any]:
        return asdict(self)
