from dataclasses import dataclass, field
from typing import List

from cognitive_os.governance.domain.intervention_event import InterventionEvent

FLOOR_LEVEL_REASON = "already at floor level"
UNRECOGNIZED_ACTION_REASON = "unrecognized action"


@dataclass(frozen=True)
class SkippedIntervention:
    event: InterventionEvent
    reason: str


@dataclass
class ExecutionOutcome:
    executed: List[InterventionEvent] = field(default_factory=list)
    skipped: List[SkippedIntervention] = field(default_factory=list)
    # Log append failures; reported only, never rolled back.
    log_failures: List[str] = field(default_factory=list)

    @property
    def skipped_events(self) -> List[InterventionEvent]:
        return [s.event for s in self.skipped]
