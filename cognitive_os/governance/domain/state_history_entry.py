from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict

from cognitive_os.governance.domain.governance_state import GovernanceState


@dataclass(frozen=True)
class StateHistoryEntry:
    timestamp: datetime
    state: GovernanceState

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp.isoformat(), "state": self.state.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StateHistoryEntry":
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(
            timestamp=timestamp,
            state=GovernanceState.from_dict(data["state"]),
        )
