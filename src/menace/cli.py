from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .agent import Agent
from .config import SCHEMES, AgentConfig
from .errors import MoveParseError
from .game_basics import Board
from .moves import Move
from .paths import runs_dir
from .play import play_against_human
from .training import FORMATS, TrainArgs, run_training


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="menace", description="Self-play matchbox learner for tic-tac-toe")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--seed", type=int, default=None, help="RNG seed (default: MENACE_SEED or 43)")
    p.add_argument(
        "--scheme",
        choices=SCHEMES,
        default=None,
        help="Update scheme: additive counts or renormalized probabilities",
    )
    p.add_argument(
        "--verify",
        action="store_true",
        default=None,
        help="Re-validate every distribution after each update (slow)",
    )

    p_train = sub.add_parser("train", help="Run self-play training and report outcome shares")
    p_train.add_argument("--cycles", type=int, default=10_000, help="Number of training matches")
    p_train.add_argument("--chunks", type=int, default=4, help="Number of report chunks")
    p_train.add_argument("--out", type=Path, default=None, help="Write training stats + manifest here")
    p_train.add_argument("--format", choices=FORMATS, default="csv", help="Stats export format")
    p_train.add_argument(
        "--tracking",
        choices=["none", "mlflow"],
        default="none",
        help="Experiment tracking backend",
    )
    p_train.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for MLflow logs (default: runs dir)",
    )
    p_train.add_argument("--show-board", default=None, help="Print the scores for this board after training")

    p_play = sub.add_parser("play", help="Train, then play against the machine on stdin/stdout")
    p_play.add_argument("--cycles", type=int, default=10_000, help="Training matches before the game")

    p_scores = sub.add_parser("scores", help="Show move scores for a board (9 digits, 0=empty,1=X,2=O)")
    p_scores.add_argument("--board", required=True, help="Board string, e.g., 100020000")
    p_scores.add_argument("--cycles", type=int, default=0, help="Training matches first (default: 0)")

    p_move = sub.add_parser("move", help="Decode a move coordinate such as b2")
    p_move.add_argument("text", help="Coordinate: row letter a-c followed by column 1-3")

    return p


def _config(ns: argparse.Namespace) -> AgentConfig:
    return AgentConfig.from_env(seed=ns.seed, scheme=ns.scheme, verify=ns.verify)


def _train_quietly(agent: Agent, cycles: int) -> None:
    if cycles > 0:
        run_training(TrainArgs(cycles=cycles, chunks=1, config=agent.config), agent=agent)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if ns.version:
        try:
            from importlib.metadata import version as _ver

            print(_ver("menace"))
        except Exception:
            print("unknown")
        return 0

    if ns.cmd == "move":
        try:
            m = Move.from_text(ns.text)
        except MoveParseError as e:
            logging.error("%s (%s)", e, e.kind.value)
            return 2
        print(m.index)
        return 0

    try:
        config = _config(ns)
    except ValueError as e:
        logging.error("%s", e)
        return 2

    if ns.cmd == "train":
        board = None
        if ns.show_board is not None:
            try:
                board = Board.from_string(ns.show_board)
            except ValueError as e:
                logging.error("%s", e)
                return 2
        tracking = ns.tracking == "mlflow"
        try:
            report = run_training(TrainArgs(
                cycles=ns.cycles,
                chunks=ns.chunks,
                config=config,
                out=ns.out,
                format=ns.format,
                tracking=tracking,
                log_dir=ns.log_dir or (runs_dir() if tracking else None),
                verbose=ns.verbose,
                cli_argv=list(argv) if argv is not None else sys.argv[1:],
            ))
        except ValueError as e:
            logging.error("%s", e)
            return 2
        if report.out is not None:
            logging.info("Wrote training stats to: %s", report.out)
        if board is not None:
            logging.info("scores(%s): %s", board.serialize(), report.agent.get_distribution(board))
        return 0

    if ns.cmd == "scores":
        try:
            board = Board.from_string(ns.board)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        agent = Agent(config)
        if ns.cycles < 0:
            logging.error("cycles must not be negative")
            return 2
        _train_quietly(agent, ns.cycles)
        dist = agent.get_distribution(board)
        logging.info("to_move=%s legal=%s", board.to_move().value, board.legal_moves())
        print(dist)
        return 0

    if ns.cmd == "play":
        if ns.cycles < 0:
            logging.error("cycles must not be negative")
            return 2
        agent = Agent(config)
        _train_quietly(agent, ns.cycles)
        print(f"Trained on {agent.positions} positions")
        print("Starting a game against the machine:")
        result = play_against_human(agent, sys.stdin, sys.stdout)
        return 0 if result is not None else 1

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
