from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.domain.stored_state import StoredState


class GovernanceStateBackend(ABC):
    """
    Storage for the single governance state and its bounded history.
    """

    @abstractmethod
    def load(self) -> Optional[StoredState]:
        """
        Return the persisted state, or None on cold start.
        Raises StorageUnavailable when storage exists but cannot be read.
        """
        pass

    @abstractmethod
    def save(self, state: GovernanceState, expected_revision: Optional[int]) -> int:
        """
        Compare-and-swap write. `expected_revision` is the revision the caller
        read (None when it saw no usable state). Raises
        ConcurrentStateModification when the stored revision differs.
        Returns the new revision.
        """
        pass

    @abstractmethod
    def append_history(self, entry: StateHistoryEntry, retain_after: datetime) -> None:
        """
        Append `entry` and drop every entry with timestamp <= `retain_after`.
        """
        pass

    @abstractmethod
    def load_history(self) -> List[StateHistoryEntry]:
        pass
