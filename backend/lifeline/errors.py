# lifeline/errors.py
# ------------------------------------------------------------
# Domain errors raised by the dispatch service.
#
# Unknown ids are NOT errors: the store returns None / False and
# the routes turn that into a 404.
# ------------------------------------------------------------


class LifelineError(Exception):
    """Base class for engine errors."""


class InvalidTransitionError(LifelineError):
    """A status change that the SOS state machine does not allow."""

    def __init__(self, signal_id: str, current: str, requested: str):
        self.signal_id = signal_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"{signal_id}: cannot move from {current} to {requested}"
        )
