"""
Text interface for a game between a human and a trained agent.
"""
from __future__ import annotations

from typing import Optional, TextIO

from .agent import Agent
from .errors import MoveParseError
from .game_basics import Board, GameResult, Player, WinReason
from .moves import Move


def _read_move(board: Board, inp: TextIO, out: TextIO) -> Optional[Move]:
    """Prompt until a legal move is entered; None on end of input."""
    while True:
        out.write("Your move: ")
        out.flush()
        line = inp.readline()
        if not line:
            return None
        try:
            move = Move.from_text(line)
        except MoveParseError as e:
            out.write(f"Error: {e}\n")
            continue
        if move not in board.legal_moves():
            out.write(f"Error: The move {move} is not a legal move in this position.\n")
            continue
        return move


def play_against_human(
    agent: Agent,
    inp: TextIO,
    out: TextIO,
    machine_player: Player = Player.CROSSES,
) -> Optional[GameResult]:
    """Play one game on the given streams. Returns None if input runs out."""
    you = machine_player.opponent()
    board = Board.empty()
    turn = Player.CROSSES
    while True:
        if turn is machine_player:
            out.write(f"Move scores: {agent.get_distribution(board)}\n")
            move = agent.select_move(board)
            if move is None:
                result = GameResult.win(you, WinReason.RESIGNATION)
                break
            out.write(f"My move: {move}\n")
            board = board.play(move, machine_player)
            out.write(f"{board}\n")
        else:
            move = _read_move(board, inp, out)
            if move is None:
                return None
            board = board.play(move, you)
        res = board.result(turn)
        if res is not None:
            result = res
            break
        turn = turn.opponent()

    out.write(f"{result}\n")
    if result.winner is machine_player:
        out.write("Haha! You lost!\n")
    elif result.winner is you:
        out.write("The machine is bad, so you won!\n")
    return result
