"""Tests for the computer opponents."""

import random

import pytest

from tictacmatch.ai import (
    Difficulty,
    Strategy,
    choose_move,
    heuristic_move,
    optimal_move,
    random_move,
    score_moves,
    strategy_for,
)
from tictacmatch.game import MatchEngine, board_winner, empty_cells, is_full


FULL_DRAWN = ["X", "O", "X", "X", "O", "O", "O", "X", "X"]


def board_from(text):
    return [None if c == "." else c for c in text]


@pytest.mark.parametrize("strategy", list(Strategy))
def test_full_board_has_no_move(strategy):
    assert choose_move(FULL_DRAWN, "X", strategy) is None


@pytest.mark.parametrize("strategy", list(Strategy))
def test_won_board_has_no_move(strategy):
    assert choose_move(board_from("XXXOO...."), "O", strategy) is None


def test_random_single_move_always_chosen():
    board = board_from("XOXXOOOX.")
    rng = random.Random(7)
    for _ in range(50):
        assert random_move(board, rng) == 8


def test_random_move_is_available():
    board = board_from("X...O....")
    rng = random.Random(1)
    picks = {random_move(board, rng) for _ in range(200)}
    assert picks <= {1, 2, 3, 5, 6, 7, 8}
    assert len(picks) > 1


def test_heuristic_blocks_instead_of_center():
    assert heuristic_move(board_from("XX......."), "O") == 2


def test_heuristic_prefers_own_win_over_block():
    assert heuristic_move(board_from("XX.OO...."), "O") == 5


def test_heuristic_center_then_corner_then_edge():
    assert heuristic_move(board_from("........."), "X") == 4
    assert heuristic_move(board_from("....X...."), "O") == 0
    # Center and corners taken, no open threats: lowest empty edge
    assert heuristic_move(board_from("XOX.O.OXO"), "X") == 3


def test_optimal_takes_immediate_win():
    assert optimal_move(board_from("XX.OO...."), "X") == 2


def test_optimal_blocks_forced_loss():
    assert optimal_move(board_from("XX..O...."), "O") == 2


def test_optimal_prefers_faster_win():
    # X can win now at 2 or set up a later win elsewhere
    scores = score_moves(board_from("XX.O.O..."), "X")
    assert scores[2] == 9
    assert optimal_move(board_from("XX.O.O..."), "X") == 2


def test_optimal_reply_to_corner_is_center():
    assert optimal_move(board_from("X........"), "O") == 4


def test_empty_board_scores_are_draws():
    scores = score_moves([None] * 9, "X")
    assert list(scores) == list(range(9))
    assert max(scores.values()) == 0
    # Ties keep the lowest index
    assert optimal_move([None] * 9, "X") == 0


def test_optimal_self_play_draws():
    engine = MatchEngine()
    while not engine.is_round_over:
        move = choose_move(engine.board, engine.current_player, Strategy.OPTIMAL)
        assert engine.make_move(move)
    assert engine.is_draw


@pytest.mark.parametrize("seed", range(5))
def test_optimal_never_loses_to_random(seed):
    rng = random.Random(seed)
    engine = MatchEngine()
    while not engine.is_round_over:
        if engine.current_player == "X":
            move = random_move(engine.board, rng)
        else:
            move = optimal_move(engine.board, "O")
        assert engine.make_move(move)
    assert engine.round_winner != "X"


def test_difficulty_maps_to_strategy():
    assert strategy_for(Difficulty.EASY) is Strategy.RANDOM
    assert strategy_for(Difficulty.MEDIUM) is Strategy.HEURISTIC
    assert strategy_for("hard") is Strategy.OPTIMAL


@pytest.mark.parametrize("opening", range(9))
def test_optimal_reply_holds_every_opening(opening):
    board = [None] * 9
    board[opening] = "X"
    assert max(score_moves(board, "O").values()) >= 0


def test_x_cannot_force_a_win_against_optimal_o():
    def explore(board):
        # Every X reply, each answered by the optimal O move
        for index in empty_cells(board):
            after_x = list(board)
            after_x[index] = "X"
            assert board_winner(after_x) != "X"
            if is_full(after_x):
                continue
            assert max(score_moves(after_x, "O").values()) >= 0
            after_x[optimal_move(after_x, "O")] = "O"
            if board_winner(after_x) is None and not is_full(after_x):
                explore(after_x)

    explore([None] * 9)
