from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry


class InterventionLog(ABC):
    """
    Append-only log of every evaluated intervention, executed or skipped.
    Entries are never mutated or deleted.
    """

    @abstractmethod
    def append(self, entry: InterventionLogEntry) -> None:
        pass

    @abstractmethod
    def list_since(self, since: datetime) -> List[InterventionLogEntry]:
        pass

    @abstractmethod
    def has_run(self, run_id: str) -> bool:
        pass
