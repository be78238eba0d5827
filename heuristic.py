# heuristic.py
from __future__ import annotations
import logging
import random
from typing import Optional, Sequence, Tuple

from board import CENTER, CORNERS, EMPTY, WINS, check_board, check_mark, empty_cells

log = logging.getLogger(__name__)

# Règles, par ordre de priorité
RULE_WIN = "win"
RULE_BLOCK = "block"
RULE_CENTER = "center"
RULE_CORNER = "corner"
RULE_ANY = "any"


def find_winning_move(board: Sequence[int], mark: int) -> int:
    """
    Case qui complète une ligne où 'mark' a déjà deux pions, -1 sinon.
    Parcours des lignes dans l'ordre de WINS ; dans une ligne (a, b, c) :
    (a,b)->c, puis (a,c)->b, puis (b,c)->a.
    """
    check_board(board)
    check_mark(mark)
    for a, b, c in WINS:
        if board[a] == mark and board[b] == mark and board[c] == EMPTY:
            return c
        if board[a] == mark and board[c] == mark and board[b] == EMPTY:
            return b
        if board[b] == mark and board[c] == mark and board[a] == EMPTY:
            return a
    return -1


def _pick(candidates: Sequence[int], rng) -> int:
    return candidates[rng.randrange(len(candidates))]


def choose_move(
    board: Sequence[int],
    bot_mark: int,
    human_mark: int,
    rng: Optional[random.Random] = None,
) -> Tuple[int, str]:
    """
    Renvoie (case, règle). rng : tout objet avec randrange(n), par défaut le
    module random.
    """
    check_mark(bot_mark)
    check_mark(human_mark)
    if bot_mark == human_mark:
        raise ValueError("La machine et l'humain doivent avoir des marques différentes")

    free = empty_cells(board)
    if not free:
        raise ValueError("Aucun coup possible")

    if rng is None:
        rng = random

    # 1. gagner
    move = find_winning_move(board, bot_mark)
    if move != -1:
        return move, RULE_WIN

    # 2. bloquer
    move = find_winning_move(board, human_mark)
    if move != -1:
        return move, RULE_BLOCK

    # 3. centre
    if board[CENTER] == EMPTY:
        return CENTER, RULE_CENTER

    # 4. coin au hasard
    corners = [i for i in CORNERS if board[i] == EMPTY]
    if corners:
        return _pick(corners, rng), RULE_CORNER

    # 5. n'importe quelle case libre
    return _pick(free, rng), RULE_ANY


def select_move(
    board: Sequence[int],
    bot_mark: int,
    human_mark: int,
    rng: Optional[random.Random] = None,
) -> int:
    move, rule = choose_move(board, bot_mark, human_mark, rng)
    log.debug("heuristique: case %d (règle %s)", move, rule)
    return move
