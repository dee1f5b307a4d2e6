import logging

from .rules import Mark, Status, find_win_line

logger = logging.getLogger(__name__)


def boards_to_clear(state):
    """Sub-boards holding a completed line, or all nine when none do."""
    won = [b for b in range(9) if find_win_line(state.cells[b])]
    return won or list(range(9))


def reopen(state):
    """Return a copy of a finished state with its completed boards emptied."""
    s = state.copy()
    cleared = boards_to_clear(s)
    for b in cleared:
        s.cells[b]         = [Mark.EMPTY]*9
        s.board_winners[b] = None
        s.board_full[b]    = False
    s.status         = Status.BLUE_TO_MOVE
    s.required_board = None
    s.last_blue      = None
    s.last_red       = None
    return s, cleared


def continue_match(session):
    """Keep a finished match going on recycled boards.

    Level and streak live elsewhere and are left alone; the session starts a
    new sub-epoch with empty history and cleared flags. Returns the cleared
    board indices, or an empty list if the match was not finished.
    """
    if not session.state.status.is_terminal:
        logger.debug("Continue ignored: match still in progress")
        return []
    state, cleared = reopen(session.state)
    session.reset(state)
    logger.info("Match continued, cleared boards %s", cleared)
    return cleared
