"""Adaptive opponent strength.

The level moves one step after two consecutive identical decisive results:
two blue wins raise it, two red wins lower it. Draws and mixed pairs change
nothing and stay in the window for the next result to pair with.
"""
import logging

from .rules import Status

logger = logging.getLogger(__name__)

MAX_LEVEL   = 21
STREAK_SIZE = 2


class DifficultyController:
    def __init__(self, level=0, streak=None, max_level=MAX_LEVEL):
        self.max_level = max_level
        self.level     = max(0, min(int(level), max_level))
        self.streak    = [Status(s) for s in (streak or [])][-STREAK_SIZE:]

    def record_outcome(self, outcome, assisted=False):
        """Fold one finished match into the streak. Returns True if the level moved."""
        outcome = Status(outcome)
        if not outcome.is_terminal:
            raise ValueError(f"{outcome.value} is not a finished match")
        if assisted:
            logger.debug("Assisted %s not counted", outcome.value)
            return False

        self.streak = (self.streak + [outcome])[-STREAK_SIZE:]
        if len(self.streak) < STREAK_SIZE or len(set(self.streak)) != 1:
            return False

        before = self.level
        if outcome is Status.BLUE_WINS:
            self.level = min(self.level + 1, self.max_level)
        elif outcome is Status.RED_WINS:
            self.level = max(self.level - 1, 0)
        else:
            return False
        self.streak = []
        logger.info("Difficulty %d -> %d after two %s", before, self.level, outcome.value)
        return self.level != before

    def streak_tags(self):
        return [s.value for s in self.streak]
