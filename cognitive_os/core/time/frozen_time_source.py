from datetime import datetime, timedelta

from cognitive_os.core.time.time_source import TimeSource


class FrozenTimeSource(TimeSource):
    """
    Manually advanced clock for tests and simulations.
    """
    def __init__(self, start_time: datetime):
        if start_time.tzinfo is None:
            raise ValueError("FrozenTimeSource requires timezone-aware datetime")
        self._current_time = start_time

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta) -> datetime:
        self._current_time += delta
        return self._current_time

    def advance_days(self, days: int) -> datetime:
        return self.advance(timedelta(days=days))
