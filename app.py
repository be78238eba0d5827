# app.py
from __future__ import annotations
from flask import Flask, jsonify, request, send_from_directory
import logging
import os
import threading
from typing import Dict, Any, List, Optional, Tuple
import requests

from board import check_index, mark_from_str, mark_to_str
from heuristic import select_move
from session import GameSession, ImmediateScheduler, MoveRejected, TimerScheduler, DEFAULT_DELAY
from flask_cors import CORS

log = logging.getLogger(__name__)

app = Flask(__name__, static_folder="static", static_url_path="")
CORS(app)

app.config.from_mapping(
    OPPONENT_DELAY=DEFAULT_DELAY,
    OPPONENT_URL="",
    OPPONENT_TIMEOUT=2.5,
    SCHEDULER="timer",
    MAX_GAMES=1000,
)
# TICTACTOE_OPPONENT_DELAY=0, TICTACTOE_OPPONENT_URL=..., etc.
app.config.from_prefixed_env("TICTACTOE")

GAMES: Dict[str, GameSession] = {}
GAMES_LOCK = threading.Lock()
STATS_LOCK = threading.Lock()

STATS: Dict[str, int] = {
    "games_total": 0,
    "bot_wins": 0,
    "human_wins": 0,
    "draws": 0,
}


@app.get("/")
def index():
    return send_from_directory(app.static_folder, "index.html")


# ------------------ GAME API (humain vs machine) ------------------
@app.get("/api/new")
def new_game():
    human_as = (request.args.get("human_as") or "X").upper()
    if human_as not in ("X", "O"):
        return jsonify({"error": "human_as doit valoir X ou O"}), 400

    game = GameSession(
        human_mark=mark_from_str(human_as),
        delay=float(app.config["OPPONENT_DELAY"]),
        scheduler=_make_scheduler(),
        move_source=_opponent_move,
        on_finish=_count_game_end,
    )
    with GAMES_LOCK:
        GAMES[game.id] = game
        evicted = _evict_oldest()
    for old in evicted:
        old.close()

    return jsonify(_public_game(game))


@app.post("/api/move")
def human_move():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Corps JSON invalide"}), 400
    game, err = _get_game(data.get("game_id"))
    if err:
        return err

    # un vrai entier : pas de 4.7 tronqué, pas de booléen, pas de "4"
    pos = data.get("pos")
    if not isinstance(pos, int) or isinstance(pos, bool):
        return jsonify({"error": "Coup invalide", "code": "invalid_cell"}), 400

    try:
        game.play_human(pos)
    except MoveRejected as e:
        return jsonify({"error": e.message, "code": e.code, "game": _public_game(game)}), 409

    return jsonify(_public_game(game))


@app.post("/api/reset")
def reset_game():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Corps JSON invalide"}), 400
    game, err = _get_game(data.get("game_id"))
    if err:
        return err

    game.reset()
    return jsonify(_public_game(game))


@app.get("/api/state")
def state():
    game, err = _get_game(request.args.get("game_id"))
    if err:
        return err
    return jsonify(_public_game(game))


@app.get("/api/stats")
def stats():
    with STATS_LOCK:
        global_stats = dict(STATS)
    return jsonify({"ok": True, "global_stats": global_stats})


# ------------------ Helpers ------------------
def _get_game(gid: Optional[str]) -> Tuple[Optional[GameSession], Any]:
    with GAMES_LOCK:
        game = GAMES.get(gid) if gid else None
    if game is None:
        return None, (jsonify({"error": "Partie introuvable"}), 404)
    return game, None


def _make_scheduler():
    if app.config["SCHEDULER"] == "immediate":
        return ImmediateScheduler()
    return TimerScheduler()


def _public_game(game: GameSession) -> Dict[str, Any]:
    out = game.snapshot()
    with STATS_LOCK:
        out["global_stats"] = dict(STATS)
    out["remote_url"] = app.config["OPPONENT_URL"]
    return out


def _evict_oldest() -> List[GameSession]:
    # appelé sous GAMES_LOCK ; dict = ordre d'insertion, les plus anciennes d'abord
    evicted = []
    while len(GAMES) > int(app.config["MAX_GAMES"]):
        gid = next(iter(GAMES))
        evicted.append(GAMES.pop(gid))
        log.info("partie %s évincée", gid)
    return evicted


def _count_game_end(game: GameSession) -> None:
    winner = game.outcome.winner
    with STATS_LOCK:
        STATS["games_total"] += 1
        if winner is None:
            STATS["draws"] += 1
        elif winner == game.bot_mark:
            STATS["bot_wins"] += 1
        else:
            STATS["human_wins"] += 1


def _board_to_remote_payload(board: Tuple[int, ...], player: int) -> Dict[str, Any]:
    return {"board": [mark_to_str(v) or " " for v in board], "you_are": mark_to_str(player)}


def _remote_move(board: Tuple[int, ...], player: int, remote_url: str) -> Optional[int]:
    url = f"{remote_url.strip().rstrip('/')}/move"
    payload = _board_to_remote_payload(board, player)
    try:
        resp = requests.post(url, json=payload, timeout=float(app.config["OPPONENT_TIMEOUT"]))
        resp.raise_for_status()
        idx = check_index(resp.json().get("idx"))
    except (requests.RequestException, ValueError, TypeError, AttributeError) as e:
        log.warning("API distante injoignable ou réponse invalide (%s): %s", url, e)
        return None
    if board[idx] != 0:
        log.warning("API distante a renvoyé un coup illégal: %d", idx)
        return None
    return idx


def _opponent_move(board: Tuple[int, ...], bot_mark: int, human_mark: int) -> int:
    remote_url = app.config["OPPONENT_URL"]
    if remote_url:
        idx = _remote_move(board, bot_mark, remote_url)
        if idx is not None:
            return idx
    return select_move(board, bot_mark, human_mark)


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host="127.0.0.1", port=5000, debug=True, use_reloader=False)
