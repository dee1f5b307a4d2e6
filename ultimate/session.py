"""One match in progress for one player.

The session owns the live GameState, an undo stack of earlier snapshots, and
the two flags that decide whether the match may count toward difficulty.
"""
import logging
from enum import Enum

from .errors import IllegalMove, NoHistory, OutOfRange, SubmissionFailed
from .opponent import HintRequest, MoveRequest
from .rules import GameState, check_move, legal_moves, new_game_state

logger = logging.getLogger(__name__)


class Submission(Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"   # illegal or out of range; nothing was sent
    FAILED   = "failed"     # the engine said no; state untouched


class Session:
    def __init__(self, state=None, history=None, recorded=False, assisted=False):
        self.state        = state or new_game_state()
        self.history      = list(history or [])
        self.recorded     = recorded
        self.assisted     = assisted
        self.busy         = False
        self.pending_hint = None

    # ── History ──────────────────────────────────────────────────────────────
    def record_snapshot(self):
        self.history.append(self.state.copy())

    def _pop_snapshot(self):
        if not self.history:
            raise NoHistory("nothing to undo")
        return self.history.pop()

    @property
    def can_undo(self):
        return bool(self.history) and not self.state.status.is_terminal

    def undo(self):
        """Step back one move. Counts as assistance. False if nothing happened."""
        if self.state.status.is_terminal:
            logger.debug("Undo refused: match is over")
            return False
        try:
            self.state = self._pop_snapshot()
        except NoHistory:
            logger.debug("Undo with empty history ignored")
            return False
        self.pending_hint = None
        self.assisted     = True
        return True

    def reset(self, state=None):
        """Start a fresh match (or sub-epoch) on ``state``."""
        self.state        = state or new_game_state()
        self.history      = []
        self.recorded     = False
        self.assisted     = False
        self.pending_hint = None

    # ── Engine calls ─────────────────────────────────────────────────────────
    def legal_moves(self):
        return legal_moves(self.state)

    def submit_move(self, engine, b, c, level=0):
        try:
            check_move(self.state, b, c)
        except (IllegalMove, OutOfRange) as e:
            logger.debug("Move rejected: %s", e)
            return Submission.REJECTED

        self.record_snapshot()
        self.busy = True
        try:
            resp = engine.submit_move(MoveRequest(self.state.copy(), b, c, level))
            if not resp.ok:
                raise SubmissionFailed(resp.error or "move refused")
        except SubmissionFailed as e:
            self._pop_snapshot()
            logger.warning("Move (%d, %d) failed: %s", b, c, e)
            return Submission.FAILED
        except Exception:
            self._pop_snapshot()
            raise
        finally:
            self.busy = False

        self.state        = resp.state
        self.pending_hint = None
        return Submission.ACCEPTED

    def request_hint(self, engine):
        # Asking is enough to disqualify the match, whatever the engine answers.
        self.assisted = True
        self.busy     = True
        try:
            self.pending_hint = engine.hint(HintRequest(self.state.copy()))
        except SubmissionFailed as e:
            logger.warning("Hint failed: %s", e)
            return None
        finally:
            self.busy = False
        return self.pending_hint

    def settle(self, controller):
        """Report a finished match to the difficulty controller, once."""
        if not self.state.status.is_terminal or self.recorded:
            return False
        self.recorded = True
        return controller.record_outcome(self.state.status, assisted=self.assisted)

    # ── Persistence ──────────────────────────────────────────────────────────
    def to_dict(self):
        return {
            "state":    self.state.to_dict(),
            "history":  [s.to_dict() for s in self.history],
            "recorded": self.recorded,
            "assisted": self.assisted,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            state    = GameState.from_dict(data["state"]),
            history  = [GameState.from_dict(s) for s in data.get("history", [])],
            recorded = bool(data.get("recorded", False)),
            assisted = bool(data.get("assisted", False)),
        )
