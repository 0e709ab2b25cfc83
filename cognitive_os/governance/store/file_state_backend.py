import logging
import os
from datetime import datetime
from typing import List, Optional

from cognitive_os.governance.domain.exceptions import (
    ConcurrentStateModification,
    GovernanceError,
    StorageUnavailable,
)
from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.domain.stored_state import StoredState
from cognitive_os.governance.interfaces.governance_state_backend import GovernanceStateBackend
from cognitive_os.persistence.file_lock import exclusive_lock
from cognitive_os.persistence.json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class FileGovernanceStateBackend(GovernanceStateBackend):
    """
    File-backed persistence for the governance state.

    state.json holds {"revision": n, "state": {...}}; documents written
    before revisions existed (a bare state object) load as revision 0.
    state-history.json holds the pruned history list.
    Writes take an advisory lock on state.lock and swap files atomically.
    """

    STATE_FILE = "state.json"
    HISTORY_FILE = "state-history.json"
    LOCK_FILE = "state.lock"

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        os.makedirs(base_dir, exist_ok=True)
        self.state_path = os.path.join(base_dir, self.STATE_FILE)
        self.history_path = os.path.join(base_dir, self.HISTORY_FILE)
        self.lock_path = os.path.join(base_dir, self.LOCK_FILE)

    def _read_document(self) -> Optional[dict]:
        if not os.path.exists(self.state_path):
            return None
        try:
            data = read_json(self.state_path)
        except (OSError, ValueError) as e:
            raise StorageUnavailable(f"Unreadable state file {self.state_path}: {e}")
        if not isinstance(data, dict):
            raise StorageUnavailable(f"State file {self.state_path} is not an object")
        return data

    @staticmethod
    def _revision_of(data: Optional[dict]) -> Optional[int]:
        if data is None:
            return None
        if "state" not in data:
            return 0
        revision = data.get("revision", 0)
        if isinstance(revision, bool) or not isinstance(revision, int):
            return None
        return revision

    def _read_revision(self) -> Optional[int]:
        try:
            return self._revision_of(self._read_document())
        except StorageUnavailable:
            return None

    def load(self) -> Optional[StoredState]:
        data = self._read_document()
        if data is None:
            return None
        revision = self._revision_of(data)
        payload = data["state"] if "state" in data else data
        try:
            state = GovernanceState.from_dict(payload).check_invariants()
        except (KeyError, ValueError, TypeError, AttributeError, GovernanceError) as e:
            raise StorageUnavailable(f"Corrupt state in {self.state_path}: {e}", revision=revision)
        if revision is None:
            raise StorageUnavailable(f"Corrupt revision in {self.state_path}")
        return StoredState(state=state, revision=revision)

    def save(self, state: GovernanceState, expected_revision: Optional[int]) -> int:
        with exclusive_lock(self.lock_path):
            current = self._read_revision()
            if current != expected_revision:
                raise ConcurrentStateModification(
                    f"Expected revision {expected_revision}, found {current}"
                )
            revision = (current or 0) + 1
            write_json_atomic(self.state_path, {"revision": revision, "state": state.to_dict()})
            return revision

    def _read_history(self) -> List[dict]:
        if not os.path.exists(self.history_path):
            return []
        try:
            data = read_json(self.history_path)
        except (OSError, ValueError) as e:
            logger.error("Unreadable state history %s, starting fresh: %s", self.history_path, e)
            return []
        return data if isinstance(data, list) else []

    def append_history(self, entry: StateHistoryEntry, retain_after: datetime) -> None:
        with exclusive_lock(self.lock_path):
            kept = []
            for item in self._read_history():
                try:
                    if StateHistoryEntry.from_dict(item).timestamp > retain_after:
                        kept.append(item)
                except (KeyError, ValueError, TypeError, AttributeError, GovernanceError):
                    continue
            if entry.timestamp > retain_after:
                kept.append(entry.to_dict())
            write_json_atomic(self.history_path, kept)

    def load_history(self) -> List[StateHistoryEntry]:
        entries = []
        for item in self._read_history():
            try:
                entries.append(StateHistoryEntry.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError, GovernanceError):
                continue
        return entries
