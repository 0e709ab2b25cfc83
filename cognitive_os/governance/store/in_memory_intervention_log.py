from datetime import datetime
from typing import List

from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry
from cognitive_os.governance.interfaces.intervention_log import InterventionLog


class InMemoryInterventionLog(InterventionLog):
    def __init__(self):
        self._entries: List[InterventionLogEntry] = []

    def append(self, entry: InterventionLogEntry) -> None:
        self._entries.append(entry)

    def list_since(self, since: datetime) -> List[InterventionLogEntry]:
        return [e for e in self._entries if e.timestamp > since]

    def has_run(self, run_id: str) -> bool:
        return any(e.run_id == run_id for e in self._entries)

    def list_all(self) -> List[InterventionLogEntry]:
        return list(self._entries)
