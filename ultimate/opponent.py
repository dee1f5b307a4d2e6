"""Opponent and hint engine for Ultimate Tic-Tac-Toe.

The session talks to any object with ``new_game``, ``submit_move`` and
``hint``. LocalOpponent answers in-process with a shallow move picker; it
does no search, the level only unlocks a few greedy habits:

  level 0   avoid winning a board when there is any other move
  level 2+  take a board win when one is on offer
  level 3+  block blue's immediate board win
  else      random legal move

Nothing changes above level 3, so levels 3 to MAX_LEVEL play the same game.
The difficulty controller still counts up to the cap; a stronger engine
behind the same interface is what gives those levels meaning.
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

from .errors import OutOfRange
from .rules import (Mark, Status, GameState, apply_move, find_win_line, legal_moves,
                    new_game_state, side_moves)

logger = logging.getLogger(__name__)


# ── Wire shapes ───────────────────────────────────────────────────────────────
@dataclass
class MoveRequest:
    state:      GameState
    board_idx:  int
    cell_idx:   int
    level:      int = 0


@dataclass
class MoveResponse:
    ok:    bool
    state: GameState
    error: Optional[str] = None

    def to_dict(self):
        d = {"ok": self.ok, "state": self.state.to_dict()}
        if self.error is not None: d["error"] = self.error
        return d


@dataclass
class HintRequest:
    state: GameState


@dataclass
class HintResponse:
    board_idx:   int
    cell_idx:    int
    explanation: str

    def to_dict(self):
        return {"board_idx": self.board_idx, "cell_idx": self.cell_idx,
                "explanation": self.explanation}


# ── Board probes ──────────────────────────────────────────────────────────────
def _would_win_board(cells, c, mark):
    test = list(cells)
    test[c] = mark
    line = find_win_line(test)
    return bool(line) and test[line[0]] is mark


def _would_win_meta(winners, b, mark):
    test = list(winners)
    test[b] = mark
    line = find_win_line(test)
    return bool(line) and test[line[0]] is mark


def _wins_board(state, move, mark):
    b, c = move
    return state.board_winners[b] is None and _would_win_board(state.cells[b], c, mark)


# ── Engine ────────────────────────────────────────────────────────────────────
class LocalOpponent:
    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def new_game(self):
        return new_game_state()

    def submit_move(self, request):
        state = request.state
        b, c  = request.board_idx, request.cell_idx
        if not (isinstance(b, int) and isinstance(c, int) and 0 <= b <= 8 and 0 <= c <= 8):
            return MoveResponse(False, state, "Invalid indices")
        if state.status is not Status.BLUE_TO_MOVE:
            return MoveResponse(False, state, "Not blue's turn")
        if (b, c) not in legal_moves(state):
            return MoveResponse(False, state, "Illegal move")

        state = apply_move(state, b, c, Mark.BLUE)
        if state.status is Status.RED_TO_MOVE:
            state = self.reply(state, request.level)
        return MoveResponse(True, state)

    def reply(self, state, level):
        moves = side_moves(state)
        if not moves: return state
        rb, rc = self.pick_move(state, level, moves)
        logger.debug("Red plays (%d, %d) at level %d", rb, rc, level)
        return apply_move(state, rb, rc, Mark.RED)

    def pick_move(self, state, level, moves):
        if level == 0:
            quiet = [m for m in moves if not _wins_board(state, m, Mark.RED)]
            return self.rng.choice(quiet or moves)
        if level >= 2:
            winning = [m for m in moves if _wins_board(state, m, Mark.RED)]
            if winning: return self.rng.choice(winning)
        if level >= 3:
            blocking = [m for m in moves if _wins_board(state, m, Mark.BLUE)]
            if blocking: return self.rng.choice(blocking)
        return self.rng.choice(moves)

    def hint(self, request):
        state = request.state
        if state.status is not Status.BLUE_TO_MOVE:
            return HintResponse(0, 0, "Not blue's turn")
        moves = legal_moves(state)
        if not moves:
            return HintResponse(0, 0, "No legal moves")

        for m in moves:
            if _wins_board(state, m, Mark.BLUE) and _would_win_meta(state.board_winners, m[0], Mark.BLUE):
                return HintResponse(m[0], m[1], "Wins the game!")
        for m in moves:
            if _wins_board(state, m, Mark.BLUE):
                return HintResponse(m[0], m[1], "Wins a board")
        for m in moves:
            if _wins_board(state, m, Mark.RED):
                return HintResponse(m[0], m[1], "Blocks red from winning a board")
        for m in moves:
            if state.board_winners[m[1]] is not None or state.board_full[m[1]]:
                return HintResponse(m[0], m[1], "Gives you a free choice next")
        centre = [m for m in moves if m[1] == 4]
        b, c = (centre or moves)[0]
        return HintResponse(b, c, "Best positional move")


def parse_index(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise OutOfRange(f"{value!r} is not an index")
