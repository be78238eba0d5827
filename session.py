# session.py
from __future__ import annotations
import logging
import random
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional, Tuple

from board import EMPTY, X, Outcome, check_index, check_mark, evaluate, mark_to_str, opponent_of
from heuristic import select_move

log = logging.getLogger(__name__)

DEFAULT_DELAY = 0.8  # secondes, le temps de "réflexion" de la machine

MoveSource = Callable[[Tuple[int, ...], int, int], int]


class MoveRejected(Exception):
    """
    Coup humain refusé. code : "game_over" | "not_your_turn" | "invalid_cell" | "occupied".
    """

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


# ----------------- Planification -----------------
class TimerScheduler:
    def schedule(self, delay: float, fn: Callable[[], None]) -> threading.Timer:
        t = threading.Timer(delay, fn)
        t.daemon = True
        t.start()
        return t


class _DoneHandle:
    def cancel(self) -> None:
        pass


class ImmediateScheduler:
    """Exécute la tâche tout de suite, sans attendre (tests, console)."""

    def schedule(self, delay: float, fn: Callable[[], None]) -> _DoneHandle:
        fn()
        return _DoneHandle()


# ----------------- Partie -----------------
class GameSession:
    """
    Une partie humain contre machine. Possède le plateau, le trait et le drapeau
    "partie active" ; le coup de la machine est planifié après 'delay' secondes
    et annulé par reset().
    """

    def __init__(
        self,
        human_mark: int = X,
        delay: float = DEFAULT_DELAY,
        scheduler=None,
        rng: Optional[random.Random] = None,
        move_source: Optional[MoveSource] = None,
        on_finish: Optional[Callable[["GameSession"], None]] = None,
        game_id: Optional[str] = None,
    ):
        self.id = game_id or str(uuid.uuid4())
        self.human_mark = check_mark(human_mark)
        self.bot_mark = opponent_of(human_mark)
        self.delay = delay
        self.scheduler = scheduler if scheduler is not None else TimerScheduler()
        self.rng = rng
        self.move_source = move_source or self._local_move
        self.on_finish = on_finish

        self.board: List[int] = [EMPTY] * 9
        self.turn = X
        self.active = True
        self.outcome = Outcome()
        self.generation = 0

        self._pending = None
        self._lock = threading.RLock()

        with self._lock:
            self._start()
        log.info("partie %s créée (humain=%s)", self.id, mark_to_str(self.human_mark))

    def _local_move(self, board: Tuple[int, ...], bot_mark: int, human_mark: int) -> int:
        return select_move(board, bot_mark, human_mark, self.rng)

    @property
    def thinking(self) -> bool:
        return self._pending is not None

    def _start(self) -> None:
        if self.bot_mark == X:
            self._schedule_bot()

    def _schedule_bot(self) -> None:
        gen = self.generation
        handle = self.scheduler.schedule(self.delay, lambda: self.play_bot(gen))
        # un ordonnanceur immédiat a déjà joué le coup
        if self.active and self.turn == self.bot_mark:
            self._pending = handle

    def _finish_turn(self, mark: int) -> None:
        self.outcome = evaluate(self.board)
        if self.outcome.done:
            self.active = False
            if self.outcome.winner is not None:
                log.info("partie %s terminée: %s gagne", self.id, mark_to_str(self.outcome.winner))
            else:
                log.info("partie %s terminée: match nul", self.id)
            if self.on_finish is not None:
                self.on_finish(self)
            return
        self.turn = opponent_of(mark)

    # ------------------ Coups ------------------
    def play_human(self, pos: int) -> None:
        with self._lock:
            if not self.active:
                raise MoveRejected("game_over", "La partie est terminée")
            if self.turn != self.human_mark or self._pending is not None:
                raise MoveRejected("not_your_turn", "Ce n'est pas à toi de jouer")
            try:
                check_index(pos)
            except ValueError as e:
                raise MoveRejected("invalid_cell", "Coup invalide") from e
            if self.board[pos] != EMPTY:
                raise MoveRejected("occupied", "Case déjà occupée")

            self.board[pos] = self.human_mark
            log.debug("partie %s: humain joue %d", self.id, pos)
            self._finish_turn(self.human_mark)

            if self.active:
                self._schedule_bot()

    def play_bot(self, generation: int) -> None:
        with self._lock:
            if generation != self.generation:
                log.warning("partie %s: coup machine périmé ignoré", self.id)
                return
            if not self.active or self.turn != self.bot_mark:
                return
            self._pending = None

            snapshot = tuple(self.board)
            try:
                pos = check_index(self.move_source(snapshot, self.bot_mark, self.human_mark))
                if self.board[pos] != EMPTY:
                    raise ValueError(f"La machine a choisi une case occupée: {pos}")
            except Exception:
                # la partie ne doit pas rester bloquée sur le tour de la machine
                log.exception("partie %s: source de coups en échec, heuristique locale", self.id)
                pos = self._local_move(snapshot, self.bot_mark, self.human_mark)

            self.board[pos] = self.bot_mark
            log.debug("partie %s: machine joue %d", self.id, pos)
            self._finish_turn(self.bot_mark)

    def reset(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            self.generation += 1
            self.board = [EMPTY] * 9
            self.turn = X
            self.active = True
            self.outcome = Outcome()
            log.info("partie %s réinitialisée", self.id)
            self._start()

    def close(self) -> None:
        """Abandonne la partie : plus aucun coup, le coup machine en attente est annulé."""
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None
            self.generation += 1
            self.active = False

    # ------------------ Vue publique ------------------
    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            line = self.outcome.line
            return {
                "id": self.id,
                "board": [mark_to_str(v) for v in self.board],
                "turn": mark_to_str(self.turn),
                "human": mark_to_str(self.human_mark),
                "bot": mark_to_str(self.bot_mark),
                "active": self.active,
                "thinking": self.thinking,
                "winner": mark_to_str(self.outcome.winner or EMPTY),
                "line": list(line) if line else None,
                "draw": self.outcome.is_draw,
                "generation": self.generation,
            }
