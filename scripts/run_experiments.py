#!/usr/bin/env python3
from __future__ import annotations

import argparse
import csv
import json
import math
import statistics as stats
import sys
import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from menace.config import SCHEMES, AgentConfig
from menace.paths import get_git_commit, get_git_is_dirty, runs_dir
from menace.training import TrainArgs, run_training


@dataclass
class RunConfig:
    mode: str  # "min" or "full"
    seeds: int
    cycles: int
    chunks: int
    schemes: List[str]


def _ci95(values: List[float]) -> tuple[float, float]:
    if not values:
        return (float("nan"), float("nan"))
    m = stats.fmean(values)
    s = stats.pstdev(values) if len(values) > 1 else 0.0
    return m, 1.96 * (s / math.sqrt(len(values)))


def _write_metrics_csv(root: Path, rows: List[Dict[str, Any]]) -> None:
    keys = sorted({k for r in rows for k in r.keys()})
    with (root / "metrics.csv").open("w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=keys)
        w.writeheader()
        w.writerows(rows)
    (root / "metrics.json").write_text(json.dumps(rows, indent=2))


def _write_manifest(root: Path, cfg: RunConfig, artifacts: Dict[str, Any]) -> None:
    manifest = {
        "created_at": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ"),
        "git_commit": get_git_commit(),
        "git_is_dirty": get_git_is_dirty(),
        "run_config": asdict(cfg),
        "artifacts": artifacts,
    }
    (root / "MANIFEST.json").write_text(json.dumps(manifest, indent=2))
    lines = [
        "# Run Manifest",
        "",
        f"Commit: {manifest['git_commit']}",
        f"Dirty: {manifest['git_is_dirty']}",
        f"Mode: {cfg.mode}",
        "",
        "## Artifacts",
    ]
    lines += [f"- {k}: {v}" for k, v in artifacts.items()]
    (root / "MANIFEST.md").write_text("\n".join(lines) + "\n")


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Compare update schemes across seeds and collect artifacts")
    ap.add_argument("mode", choices=["min", "full"], help="Run mode: quick smoke or full")
    ap.add_argument("--seed", type=int, default=0, help="First seed; runs use seed, seed+1, ...")
    ns = ap.parse_args(argv)

    if ns.mode == "min":
        cfg = RunConfig(mode="min", seeds=2, cycles=2_000, chunks=4, schemes=list(SCHEMES))
    else:
        cfg = RunConfig(mode="full", seeds=5, cycles=200_000, chunks=10, schemes=list(SCHEMES))

    ts = datetime.now(timezone.utc).strftime("%Y-%m-%d_%H%M")
    out_root = runs_dir() / "experiments" / ts
    out_root.mkdir(parents=True, exist_ok=True)

    metrics: List[Dict[str, Any]] = []
    artifacts: Dict[str, Any] = {}
    for scheme in cfg.schemes:
        final_draws: List[float] = []
        elapsed: List[float] = []
        for k in range(cfg.seeds):
            seed = ns.seed + k
            run_dir = out_root / f"{scheme}_seed{seed}"
            t0 = time.perf_counter()
            report = run_training(TrainArgs(
                cycles=cfg.cycles,
                chunks=cfg.chunks,
                config=AgentConfig(scheme=scheme, seed=seed),
                out=run_dir,
                cli_argv=list(sys.argv),
            ))
            elapsed.append(time.perf_counter() - t0)
            last = report.chunks[-1]
            final_draws.append(last.percent(last.draws))
            artifacts[f"{scheme}_seed{seed}"] = str(run_dir / "manifest.json")
        m_draw, h_draw = _ci95(final_draws)
        m_time, h_time = _ci95(elapsed)
        metrics.append({"scheme": scheme, "metric": "final_draws_pct_mean", "value": m_draw})
        metrics.append({"scheme": scheme, "metric": "final_draws_pct_ci95_half", "value": h_draw})
        metrics.append({"scheme": scheme, "metric": "train_elapsed_s_mean", "value": m_time})
        metrics.append({"scheme": scheme, "metric": "train_elapsed_s_ci95_half", "value": h_time})

    _write_metrics_csv(out_root, metrics)
    _write_manifest(out_root, cfg, artifacts)
    print(f"Artifacts written under {out_root}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
