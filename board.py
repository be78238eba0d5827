# board.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

# board: X=+1, O=-1, vide=0

EMPTY = 0
X = 1
O = -1

MARKS = (X, O)
CENTER = 4
CORNERS = (0, 2, 6, 8)

Line = Tuple[int, int, int]

# lignes, colonnes, diagonales (ordre fixe)
WINS: Tuple[Line, ...] = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)


@dataclass(frozen=True)
class Outcome:
    winner: Optional[int] = None
    line: Optional[Line] = None
    is_draw: bool = False

    @property
    def done(self) -> bool:
        return self.winner is not None or self.is_draw


# ----------------- Validation -----------------
def check_mark(mark: int) -> int:
    if isinstance(mark, bool) or mark not in MARKS:
        raise ValueError(f"Marque invalide: {mark!r}")
    return mark


def check_board(board: Sequence[int]) -> Sequence[int]:
    if len(board) != 9:
        raise ValueError(f"Le plateau doit avoir 9 cases, pas {len(board)}")
    for v in board:
        if isinstance(v, bool) or v not in (EMPTY, X, O):
            raise ValueError(f"Valeur de case invalide: {v!r}")
    return board


def check_index(pos: int) -> int:
    if not isinstance(pos, int) or isinstance(pos, bool) or not 0 <= pos <= 8:
        raise ValueError(f"Case hors plateau: {pos!r}")
    return pos


def opponent_of(mark: int) -> int:
    return -check_mark(mark)


# ----------------- Conversions (API publique) -----------------
def mark_to_str(v: int) -> str:
    return "X" if v == X else ("O" if v == O else "")


def mark_from_str(s: str) -> int:
    """
    "X" -> +1, "O" -> -1, "" / " " -> vide. Toute autre valeur est refusée.
    """
    s = (s or "").strip().upper()
    if s == "X":
        return X
    if s == "O":
        return O
    if s == "":
        return EMPTY
    raise ValueError(f"Symbole invalide: {s!r}")


# ----------------- Évaluation -----------------
def empty_cells(board: Sequence[int]) -> List[int]:
    return [i for i, v in enumerate(check_board(board)) if v == EMPTY]


def find_winning_line(board: Sequence[int], mark: int) -> Optional[Line]:
    """
    Première ligne complète pour 'mark' (lignes, puis colonnes, puis diagonales),
    ou None.
    """
    check_board(board)
    check_mark(mark)
    for line in WINS:
        a, b, c = line
        if board[a] == mark and board[b] == mark and board[c] == mark:
            return line
    return None


def has_won(board: Sequence[int], mark: int) -> bool:
    return find_winning_line(board, mark) is not None


def is_draw(board: Sequence[int]) -> bool:
    # plateau plein ; à n'utiliser qu'après has_won (victoire > nul)
    return all(v != EMPTY for v in check_board(board))


def evaluate(board: Sequence[int]) -> Outcome:
    """
    Résultat combiné du plateau. La victoire est toujours prioritaire sur le nul,
    X est examiné avant O.
    """
    for mark in MARKS:
        line = find_winning_line(board, mark)
        if line is not None:
            return Outcome(winner=mark, line=line)
    if is_draw(board):
        return Outcome(is_draw=True)
    return Outcome()
