# heuristic_api.py
import logging
import os

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
from typing import List, Literal
import uvicorn

from board import empty_cells, mark_from_str, opponent_of
from heuristic import choose_move

log = logging.getLogger(__name__)

app = FastAPI()


class MoveReq(BaseModel):
    board: List[Literal["X", "O", " ", ""]] = Field(min_length=9, max_length=9)  # ["X","O"," ",...]
    you_are: Literal["X", "O"]


def board_to_abs(board: List[str]) -> list[int]:
    return [mark_from_str(v) for v in board]


@app.get("/health")
def health():
    return {"ok": True}


@app.post("/move")
def move(req: MoveReq):
    board_abs = board_to_abs(req.board)
    player_abs = mark_from_str(req.you_are)

    if not empty_cells(board_abs):
        raise HTTPException(status_code=409, detail="Aucun coup possible")

    idx, rule = choose_move(board_abs, player_abs, opponent_of(player_abs))
    log.debug("coup %d (règle %s) pour %s", idx, rule, req.you_are)
    return {"idx": idx, "rule": rule}


if __name__ == "__main__":
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())
    uvicorn.run(app, host=os.environ.get("HOST", "0.0.0.0"), port=int(os.environ.get("PORT", "9100")))
