"""
Training loop: repeated self-play matches with chunked outcome reports.

Matches are grouped into chunks. For every chunk we report the share of
draws, crosses wins, naughts wins and resignations, which is the usual way
to watch a matchbox learner converge towards draws.

With an output directory the per-chunk rows are written as CSV and/or
Parquet together with a manifest.json describing the run.
"""
from __future__ import annotations

import csv
import importlib.util
import json
import logging
import sys
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .agent import Agent
from .config import AgentConfig
from .game_basics import GameResult, Player, WinReason
from .paths import get_git_commit, get_git_is_dirty
from .tracking import log_artifact, log_metrics, log_params, maybe_mlflow_run

STATS_VERSION = "1.0.0"
FORMATS = ("csv", "parquet", "both")


@dataclass
class TrainArgs:
    cycles: int = 10_000
    chunks: int = 4
    config: AgentConfig = field(default_factory=AgentConfig.from_env)
    out: Optional[Path] = None
    format: str = "csv"
    tracking: bool = False
    log_dir: Optional[Path] = None
    verbose: bool = False
    cli_argv: Optional[List[str]] = None


@dataclass
class ChunkStats:
    index: int
    games: int
    draws: int = 0
    crosses_wins: int = 0
    naughts_wins: int = 0
    resignations: int = 0
    positions: int = 0

    def record(self, result: GameResult) -> None:
        if result.winner is None:
            self.draws += 1
        elif result.winner is Player.CROSSES:
            self.crosses_wins += 1
        else:
            self.naughts_wins += 1
        if result.reason is WinReason.RESIGNATION:
            self.resignations += 1

    def percent(self, count: int) -> float:
        return 100.0 * count / self.games if self.games else 0.0

    def as_row(self) -> Dict[str, Any]:
        row = asdict(self)
        for key in ("draws", "crosses_wins", "naughts_wins", "resignations"):
            row[f"{key}_pct"] = round(self.percent(row[key]), 4)
        return row


@dataclass
class TrainingReport:
    agent: Agent
    chunks: List[ChunkStats]
    results: Counter
    out: Optional[Path] = None

    @property
    def games(self) -> int:
        return sum(c.games for c in self.chunks)


def chunk_sizes(cycles: int, chunks: int) -> List[int]:
    if cycles <= 0:
        raise ValueError("cycles must be positive")
    if not 1 <= chunks <= cycles:
        raise ValueError("chunks must be between 1 and cycles")
    size = cycles // chunks
    sizes = [size] * chunks
    sizes[-1] += cycles - size * chunks
    return sizes


def run_training(args: TrainArgs, agent: Optional[Agent] = None) -> TrainingReport:
    fmt = (args.format or "csv").lower()
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {args.format}")
    sizes = chunk_sizes(args.cycles, args.chunks)
    if args.out is not None and fmt == "parquet" and not _have_parquet():
        raise RuntimeError(_PARQUET_MSG)

    agent = agent or Agent(args.config)
    results: Counter = Counter()
    chunks: List[ChunkStats] = []
    with maybe_mlflow_run(args.tracking, run_name="menace_training", log_dir=args.log_dir) as tracked:
        if tracked:
            log_params({**agent.config.as_params(), "cycles": args.cycles, "chunks": args.chunks})
        for idx, size in enumerate(sizes, start=1):
            stats = ChunkStats(index=idx, games=size)
            for _ in range(size):
                result = agent.play_training_match()
                stats.record(result)
                results[result] += 1
            stats.positions = agent.positions
            chunks.append(stats)
            logging.info(
                "%d: draws: %.1f, wins: crosses: %.1f, naughts: %.1f, resignations: %.1f",
                idx,
                stats.percent(stats.draws),
                stats.percent(stats.crosses_wins),
                stats.percent(stats.naughts_wins),
                stats.percent(stats.resignations),
            )
            if tracked:
                row = stats.as_row()
                metrics = {k: float(v) for k, v in row.items() if k.endswith("_pct")}
                metrics["positions"] = float(stats.positions)
                log_metrics(metrics, step=idx)
        logging.info("Trained on %d positions", agent.positions)

        report = TrainingReport(agent=agent, chunks=chunks, results=results)
        if args.out is not None:
            report.out = _write_outputs(args, args.out, fmt, chunks, agent.config)
            if tracked:
                for p in sorted(report.out.iterdir()):
                    log_artifact(p)
    return report


_PARQUET_MSG = (
    "Parquet dependencies not available (install pandas and pyarrow). "
    "Use pip install .[parquet] to enable parquet support."
)


def _have_parquet() -> bool:
    return (
        importlib.util.find_spec("pandas") is not None
        and importlib.util.find_spec("pyarrow") is not None
    )


def _write_outputs(
    args: TrainArgs, out: Path, fmt: str, chunks: List[ChunkStats], config: AgentConfig
) -> Path:
    out.mkdir(parents=True, exist_ok=True)
    rows = [c.as_row() for c in chunks]
    stats_csv = out / "training_stats.csv"
    stats_parquet = out / "training_stats.parquet"

    wrote_csv = wrote_parquet = False
    if fmt in ("csv", "both"):
        with stats_csv.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=list(rows[0].keys()))
            w.writeheader()
            w.writerows(rows)
        wrote_csv = True
        logging.info("Wrote %s (%d rows)", stats_csv, len(rows))

    if fmt in ("parquet", "both"):
        if _have_parquet():
            import pandas as pd  # type: ignore

            pd.DataFrame(rows).to_parquet(stats_parquet)
            wrote_parquet = True
            logging.info("Wrote %s", stats_parquet)
        else:
            logging.warning("%s Proceeding with CSV only.", _PARQUET_MSG)

    packages: Dict[str, Any] = {}
    for pkg in ("numpy", "pandas", "pyarrow"):
        if importlib.util.find_spec(pkg) is not None:
            packages[pkg] = getattr(__import__(pkg), "__version__", None)

    manifest = {
        "stats_version": STATS_VERSION,
        "created_at": datetime.now(timezone.utc).isoformat(),
        "config": config.as_params(),
        "cycles": args.cycles,
        "chunks": args.chunks,
        "format": fmt,
        "git_commit": get_git_commit(),
        "git_is_dirty": get_git_is_dirty(),
        "python": {"python_version": sys.version.split(" ")[0], "packages": packages},
        "cli_argv": args.cli_argv,
        "row_count": len(rows),
        "files": {
            "stats_csv": str(stats_csv) if wrote_csv else None,
            "stats_parquet": str(stats_parquet) if wrote_parquet else None,
        },
        "parquet_written": wrote_parquet,
    }
    (out / "manifest.json").write_text(json.dumps(manifest, indent=2))
    logging.info("Wrote manifest.json")
    return out
