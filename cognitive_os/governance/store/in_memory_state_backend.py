from datetime import datetime
from threading import Lock
from typing import List, Optional

from cognitive_os.governance.domain.exceptions import ConcurrentStateModification
from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.domain.stored_state import StoredState
from cognitive_os.governance.interfaces.governance_state_backend import GovernanceStateBackend


class InMemoryGovernanceStateBackend(GovernanceStateBackend):
    """
    Process-local backend for testing and development.
    """
    def __init__(self):
        self._stored: Optional[StoredState] = None
        self._history: List[StateHistoryEntry] = []
        self._lock = Lock()

    def load(self) -> Optional[StoredState]:
        return self._stored

    def save(self, state: GovernanceState, expected_revision: Optional[int]) -> int:
        with self._lock:
            current = self._stored.revision if self._stored else None
            if current != expected_revision:
                raise ConcurrentStateModification(
                    f"Expected revision {expected_revision}, found {current}"
                )
            revision = (current or 0) + 1
            self._stored = StoredState(state=state, revision=revision)
            return revision

    def append_history(self, entry: StateHistoryEntry, retain_after: datetime) -> None:
        with self._lock:
            self._history.append(entry)
            self._history = [h for h in self._history if h.timestamp > retain_after]

    def load_history(self) -> List[StateHistoryEntry]:
        return list(self._history)
