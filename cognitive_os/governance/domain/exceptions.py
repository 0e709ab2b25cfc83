from typing import Optional


class GovernanceError(Exception):
    """Base class for governance control-loop errors."""
    pass


class StorageUnavailable(GovernanceError):
    """
    Raised by a backend when state, history or log storage cannot be read.
    `revision` carries the stored revision when it is still readable, so a
    caller can overwrite a corrupt payload through compare-and-swap.
    """
    def __init__(self, message: str, revision: Optional[int] = None):
        super().__init__(message)
        self.revision = revision


class InvalidLevel(GovernanceError):
    """Raised when an intervention level outside [1, 3] reaches a mutation."""
    pass


class InvalidFocusMode(GovernanceError):
    """Raised when a focus mode is not one of deep, scattered, neutral."""
    pass


class InvalidStateDelta(GovernanceError):
    """Raised when a state delta names unknown fields or breaks the lock/constraint pairing."""
    pass


class ConcurrentStateModification(GovernanceError):
    """Raised when a compare-and-swap write finds a revision other than the one it read."""
    pass
