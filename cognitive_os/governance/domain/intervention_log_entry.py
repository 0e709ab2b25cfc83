from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from cognitive_os.governance.domain.intervention_event import InterventionEvent


class InterventionOutcome(Enum):
    EXECUTED = "executed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class InterventionLogEntry:
    """
    Append-only audit record of one evaluated event in one run.
    """
    timestamp: datetime
    event: InterventionEvent
    outcome: InterventionOutcome
    run_id: Optional[str] = None
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "timestamp": self.timestamp.isoformat(),
            "run_id": self.run_id,
            "outcome": self.outcome.value,
            "reason": self.reason,
        }
        data.update(self.event.to_dict())
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterventionLogEntry":
        return cls(
            timestamp=datetime.fromisoformat(data["timestamp"]),
            event=InterventionEvent.from_dict(data),
            outcome=InterventionOutcome(data.get("outcome", InterventionOutcome.EXECUTED.value)),
            run_id=data.get("run_id"),
            reason=data.get("reason"),
        )
