import itertools
import random

import pytest

from board import EMPTY, O, X, empty_cells, has_won
from heuristic import (
    RULE_ANY, RULE_BLOCK, RULE_CENTER, RULE_CORNER, RULE_WIN,
    choose_move, find_winning_move, select_move,
)

_ = EMPTY


def boards_with_empty_cells():
    for board in itertools.product((EMPTY, X, O), repeat=9):
        if EMPTY in board:
            yield list(board)


def _play(board, pos, mark):
    b = list(board)
    b[pos] = mark
    return b


def test_empty_board_takes_center():
    assert select_move([_] * 9, O, X) == 4


def test_blocks_human_line():
    board = [X, X, _, _, O, _, _, _, _]
    assert choose_move(board, O, X) == (2, RULE_BLOCK)


def test_win_now_beats_block():
    board = [O, O, _, X, X, _, _, _, _]
    assert choose_move(board, O, X) == (2, RULE_WIN)


def test_completing_cell_sub_order():
    assert find_winning_move([O, _, O, _, _, _, _, _, _], O) == 1
    assert find_winning_move([_, O, O, _, _, _, _, _, _], O) == 0
    # (0,1,2) est examinée avant (0,3,6)
    assert find_winning_move([O, O, _, O, _, _, _, _, _], O) == 2
    assert find_winning_move([X, _, _, _, _, _, _, _, _], X) == -1


def test_always_returns_an_empty_cell():
    rng = random.Random(7)
    for board in boards_with_empty_cells():
        move = select_move(board, O, X, rng)
        assert board[move] == EMPTY


def test_never_misses_a_win_and_always_blocks():
    rng = random.Random(11)
    for board in boards_with_empty_cells():
        move = select_move(board, O, X, rng)
        if find_winning_move(board, O) != -1:
            assert has_won(_play(board, move, O), O)
        elif find_winning_move(board, X) != -1:
            assert has_won(_play(board, move, X), X)


def test_center_before_corner():
    board = [X, _, _, _, _, _, _, _, _]
    assert choose_move(board, O, X) == (4, RULE_CENTER)


def test_random_corner(seq_rng):
    board = [_, _, _, _, X, _, _, _, _]
    assert choose_move(board, O, X, seq_rng([0])) == (0, RULE_CORNER)
    assert choose_move(board, O, X, seq_rng([2])) == (6, RULE_CORNER)


def test_random_corner_among_free_corners_only(seq_rng):
    board = [O, _, _, _, X, _, _, _, X]
    assert choose_move(board, O, X, seq_rng([0])) == (2, RULE_CORNER)
    assert choose_move(board, O, X, seq_rng([1])) == (6, RULE_CORNER)


def test_random_any_cell(seq_rng):
    board = [X, O, X, _, O, _, O, X, O]
    assert choose_move(board, O, X, seq_rng([0])) == (3, RULE_ANY)
    assert choose_move(board, O, X, seq_rng([1])) == (5, RULE_ANY)


def test_does_not_mutate_board():
    board = [X, X, _, _, O, _, _, _, _]
    select_move(board, O, X)
    assert board == [X, X, _, _, O, _, _, _, _]


def test_full_board_is_a_contract_violation():
    with pytest.raises(ValueError):
        select_move([X, O, X, O, X, O, O, X, O], O, X)


@pytest.mark.parametrize("bot, human", [(O, O), (EMPTY, X), (O, 3)])
def test_bad_marks(bot, human):
    with pytest.raises(ValueError):
        select_move([_] * 9, bot, human)


def test_bad_board():
    with pytest.raises(ValueError):
        select_move([_] * 8, O, X)


def test_heuristic_can_be_forked(seq_rng):
    """X prend un coin, puis le coin opposé : la machine finit par perdre."""
    rng = seq_rng([0])
    board = [_] * 9

    board[0] = X
    board[select_move(board, O, X, rng)] = O
    assert board[4] == O

    board[8] = X
    board[select_move(board, O, X, rng)] = O
    assert board[2] == O

    board[6] = X
    board[select_move(board, O, X, rng)] = O
    assert board[7] == O

    board[3] = X
    assert has_won(board, X)
    assert empty_cells(board) == [1, 5]
