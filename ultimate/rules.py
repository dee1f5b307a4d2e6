"""Rules for Ultimate Tic-Tac-Toe: blue (the human) against red (the opponent).

Everything here is a pure function over a GameState snapshot. Nothing mutates
its input; apply_move hands back a fresh state.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .errors import IllegalMove, OutOfRange

WIN_LINES = [
    (0,1,2),(3,4,5),(6,7,8),
    (0,3,6),(1,4,7),(2,5,8),
    (0,4,8),(2,4,6)
]

Move = Tuple[int, int]


class Mark(Enum):
    EMPTY = "empty"
    BLUE  = "blue"
    RED   = "red"

    @property
    def opponent(self):
        if self is Mark.BLUE: return Mark.RED
        if self is Mark.RED:  return Mark.BLUE
        raise ValueError("empty mark has no opponent")


class Status(Enum):
    BLUE_TO_MOVE = "bluetomove"
    RED_TO_MOVE  = "redtomove"
    BLUE_WINS    = "bluewins"
    RED_WINS     = "redwins"
    DRAW         = "draw"

    @property
    def is_terminal(self):
        return self in (Status.BLUE_WINS, Status.RED_WINS, Status.DRAW)


def _to_move(mark):
    if mark is Mark.BLUE: return Status.BLUE_TO_MOVE
    if mark is Mark.RED:  return Status.RED_TO_MOVE
    raise ValueError(f"no side to move for {mark}")


def _wins(mark):
    if mark is Mark.BLUE: return Status.BLUE_WINS
    if mark is Mark.RED:  return Status.RED_WINS
    raise ValueError(f"no win status for {mark}")


def check_index(i, what="index"):
    if not isinstance(i, int) or isinstance(i, bool) or not 0 <= i <= 8:
        raise OutOfRange(f"{what} {i!r} is outside 0-8")
    return i


def _pair(value):
    if value is None: return None
    b, c = value
    return check_index(int(b), "board"), check_index(int(c), "cell")


@dataclass
class GameState:
    cells:          List[List[Mark]]     = field(default_factory=lambda: [[Mark.EMPTY]*9 for _ in range(9)])
    board_winners:  List[Optional[Mark]] = field(default_factory=lambda: [None]*9)
    board_full:     List[bool]           = field(default_factory=lambda: [False]*9)
    required_board: Optional[int]        = None
    status:         Status               = Status.BLUE_TO_MOVE
    last_blue:      Optional[Move]       = None
    last_red:       Optional[Move]       = None

    def copy(self):
        return GameState(
            cells          = [list(b) for b in self.cells],
            board_winners  = list(self.board_winners),
            board_full     = list(self.board_full),
            required_board = self.required_board,
            status         = self.status,
            last_blue      = self.last_blue,
            last_red       = self.last_red,
        )

    def board_open(self, b):
        """True when sub-board ``b`` can still take a mark."""
        check_index(b, "board")
        return not self.board_full[b] and Mark.EMPTY in self.cells[b]

    def to_dict(self):
        return {
            "cells":          [[m.value for m in b] for b in self.cells],
            "board_winners":  [(w or Mark.EMPTY).value for w in self.board_winners],
            "board_full":     list(self.board_full),
            "required_board": self.required_board,
            "status":         self.status.value,
            "last_blue":      list(self.last_blue) if self.last_blue else None,
            "last_red":       list(self.last_red) if self.last_red else None,
        }

    @classmethod
    def from_dict(cls, data):
        cells = [[Mark(v) for v in b] for b in data["cells"]]
        if len(cells) != 9 or any(len(b) != 9 for b in cells):
            raise ValueError("cells must be 9 boards of 9 marks")
        winners = [Mark(v) for v in data.get("board_winners", ["empty"]*9)]
        full    = [bool(f) for f in data.get("board_full", [False]*9)]
        if len(winners) != 9 or len(full) != 9:
            raise ValueError("board_winners and board_full must have 9 entries")
        required = data.get("required_board")
        return cls(
            cells          = cells,
            board_winners  = [None if w is Mark.EMPTY else w for w in winners],
            board_full     = full,
            required_board = None if required is None else check_index(int(required), "board"),
            status         = Status(data.get("status", Status.BLUE_TO_MOVE.value)),
            last_blue      = _pair(data.get("last_blue")),
            last_red       = _pair(data.get("last_red")),
        )


def new_game_state():
    return GameState()


# ── Line checks ───────────────────────────────────────────────────────────────
def _norm(marks):
    if len(marks) != 9:
        raise OutOfRange(f"expected 9 marks, got {len(marks)}")
    return [Mark.EMPTY if m is None else m for m in marks]


def find_win_line(marks):
    """First canonical line whose three cells share a non-empty mark, else None.

    Works on a sub-board's cells and on the super-board's winner list alike.
    """
    marks = _norm(marks)
    for a, b, c in WIN_LINES:
        if marks[a] is not Mark.EMPTY and marks[a] == marks[b] == marks[c]:
            return (a, b, c)
    return None


def is_board_full(marks):
    return all(m is not Mark.EMPTY for m in _norm(marks))


def is_board_dead(marks):
    """True when every line already holds both a blue and a red mark."""
    marks = _norm(marks)
    for line in WIN_LINES:
        seen = {marks[i] for i in line}
        if Mark.BLUE not in seen or Mark.RED not in seen:
            return False
    return True


def _settled(cells, winner):
    return is_board_full(cells) or (winner is None and is_board_dead(cells))


# ── Legality ──────────────────────────────────────────────────────────────────
def legal_moves(state):
    """Blue's legal (board, cell) pairs. Empty unless it is blue's turn.

    A required board that is no longer playable is treated as free choice.
    Boards that are won but still have empty cells accept filler marks.
    """
    if state.status is not Status.BLUE_TO_MOVE: return []
    return _candidates(state)


def _candidates(state):
    required = state.required_board
    if required is not None and state.board_open(required):
        boards = [required]
    else:
        boards = [b for b in range(9) if not state.board_full[b]]
    return [(b, c) for b in boards for c in range(9) if state.cells[b][c] is Mark.EMPTY]


def check_move(state, b, c):
    check_index(b, "board"); check_index(c, "cell")
    if (b, c) not in legal_moves(state):
        raise IllegalMove(f"({b}, {c}) is not a legal move")


def side_moves(state):
    """Legal pairs for whichever side is to move, red included."""
    if state.status.is_terminal: return []
    return _candidates(state)


# ── Applying moves ────────────────────────────────────────────────────────────
def apply_move(state, b, c, mark):
    check_index(b, "board"); check_index(c, "cell")
    if mark not in (Mark.BLUE, Mark.RED):
        raise IllegalMove("only blue or red can move")
    if state.cells[b][c] is not Mark.EMPTY:
        raise IllegalMove(f"cell ({b}, {c}) is taken")

    s = state.copy()
    s.cells[b][c] = mark
    if s.board_winners[b] is None and find_win_line(s.cells[b]):
        s.board_winners[b] = mark
    s.board_full[b] = _settled(s.cells[b], s.board_winners[b])

    if mark is Mark.BLUE: s.last_blue = (b, c)
    else:                 s.last_red  = (b, c)

    s.required_board = c if s.board_winners[c] is None and not s.board_full[c] else None

    line = find_win_line(s.board_winners)
    if line:
        s.status = _wins(s.board_winners[line[0]])
    elif is_board_dead(s.board_winners) or all(
            w is not None or f for w, f in zip(s.board_winners, s.board_full)):
        s.status = Status.DRAW
    else:
        s.status = _to_move(mark.opponent)
    return s
