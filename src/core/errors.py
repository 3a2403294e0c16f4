"""Exception types raised by the matching core.

Guard failures in the lifecycle are not exceptions; they come back as
``Rejection`` values inside a ``TransitionResult``.
"""


class MatchingError(Exception):
    """Base class for errors raised by the matching core."""


class ComputationError(MatchingError, ValueError):
    """Scoring or profit inputs are degenerate (e.g. a zero talent rate)."""


class StoreError(MatchingError):
    """The record store rejected a read or write.

    The underlying driver exception, if any, is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, entity: str | None = None) -> None:
        super().__init__(message)
        self.entity = entity
