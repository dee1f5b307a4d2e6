class UltimateError(Exception):
    """Base class for rule and session errors."""


class OutOfRange(UltimateError, IndexError):
    """A board or cell index outside 0-8."""


class IllegalMove(UltimateError, ValueError):
    """A (board, cell) pair that is not currently playable."""


class NoHistory(UltimateError, LookupError):
    """Undo with nothing to undo."""


class SubmissionFailed(UltimateError):
    """The opponent or hint engine refused or failed a request."""
