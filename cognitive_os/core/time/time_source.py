from abc import ABC, abstractmethod
from datetime import datetime


class TimeSource(ABC):
    """
    Clock used by every governance component.
    Implementations must return timezone-aware UTC datetimes so that
    windowing and history pruning stay comparable across backends.
    """
    @abstractmethod
    def now(self) -> datetime:
        pass
