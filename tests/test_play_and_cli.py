import io
import json
import subprocess
import sys
from pathlib import Path

import pytest

from menace.agent import Agent
from menace.cli import main
from menace.config import AgentConfig
from menace.play import play_against_human

ALL_CELLS = "".join(f"{r}{c}\n" for r in "abc" for c in "123")


def test_play_against_human_reports_bad_input_and_finishes():
    agent = Agent(AgentConfig(seed=1))
    inp = io.StringIO("\nz1\nbx\nb9\n" + ALL_CELLS)
    out = io.StringIO()
    result = play_against_human(agent, inp, out)
    text = out.getvalue()
    assert result is not None
    assert "Move scores: total: 36" in text
    assert "My move: " in text
    assert "Error: A move cannot be an empty string." in text
    assert "Error: The letter in a move must be between a and c." in text
    assert "Error: The move column should be represented by a number." in text
    assert "Error: The move column must be in the range [1, 3]." in text
    assert "is not a legal move in this position." in text
    assert str(result) in text


def test_play_against_human_stops_at_end_of_input():
    agent = Agent(AgentConfig(seed=1))
    out = io.StringIO()
    assert play_against_human(agent, io.StringIO(""), out) is None


def test_main_move_subcommand(capsys):
    assert main(["move", "b2"]) == 0
    assert capsys.readouterr().out.strip() == "4"
    assert main(["move", "d1"]) == 2


def test_main_scores_untrained(capsys):
    assert main(["--seed", "3", "scores", "--board", "100020000"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("total: 28, a2: 4")


def test_main_rejects_bad_board_and_config(monkeypatch):
    assert main(["scores", "--board", "12345678x"]) == 2
    assert main(["train", "--cycles", "4", "--show-board", "abc"]) == 2
    assert main(["train", "--cycles", "2", "--chunks", "5"]) == 2
    assert main(["--seed", "-1", "scores", "--board", "000000000"]) == 2
    assert main(["--seed", "-1", "play", "--cycles", "1"]) == 2
    monkeypatch.setenv("MENACE_SEED", "not-a-number")
    assert main(["scores", "--board", "000000000"]) == 2
    monkeypatch.setenv("MENACE_SEED", "-5")
    assert main(["scores", "--board", "000000000"]) == 2


def test_main_train_writes_outputs(tmp_path: Path):
    out = tmp_path / "cli_run"
    rc = main([
        "--seed", "11", "--scheme", "probability", "--verify",
        "train", "--cycles", "20", "--chunks", "2", "--out", str(out),
        "--show-board", "000000000",
    ])
    assert rc == 0
    manifest = json.loads((out / "manifest.json").read_text())
    assert manifest["config"]["scheme"] == "probability"
    assert manifest["config"]["verify"] is True
    assert manifest["cli_argv"][:2] == ["--seed", "11"]


def _run_cli(args: list[str], cwd: Path, stdin: str = "") -> subprocess.CompletedProcess:
    exe = [sys.executable, "-m", "menace.cli"]
    return subprocess.run(exe + args, cwd=cwd, input=stdin, capture_output=True, text=True)


def test_cli_train_reports_chunks(tmp_path: Path):
    r = _run_cli(["train", "--cycles", "40", "--chunks", "4"], cwd=tmp_path)
    assert r.returncode == 0
    s = r.stdout + r.stderr
    assert s.count("draws:") == 4
    assert "Trained on" in s


def test_cli_play_round_trip(tmp_path: Path):
    r = _run_cli(["play", "--cycles", "50"], cwd=tmp_path, stdin=ALL_CELLS)
    assert r.returncode == 0
    assert "Starting a game against the machine:" in r.stdout
    assert "Move scores:" in r.stdout


@pytest.mark.parametrize("bad", ["", "d1", "b", "b4"])
def test_cli_move_errors(tmp_path: Path, bad: str):
    r = _run_cli(["move", bad], cwd=tmp_path)
    assert r.returncode == 2
