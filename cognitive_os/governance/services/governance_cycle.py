import logging
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from cognitive_os.config.settings import settings
from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.governance.domain.exceptions import StorageUnavailable
from cognitive_os.governance.domain.execution_outcome import ExecutionOutcome
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.interfaces.intervention_log import InterventionLog
from cognitive_os.governance.services.governance_service import GovernanceService
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot
from cognitive_os.metrics.services.metrics_aggregator import MetricsAggregator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleResult:
    run_id: str
    snapshot: MetricsSnapshot
    events: List[InterventionEvent] = field(default_factory=list)
    outcome: ExecutionOutcome = field(default_factory=ExecutionOutcome)
    # True when run_id had already been executed and nothing was redone.
    replayed: bool = False
    # False when interventions are disabled; events are evaluated only.
    executed: bool = True


class GovernanceCycle:
    """
    One pass of the control loop: aggregate -> evaluate -> execute.

    A caller-supplied run_id makes the pass idempotent: when the
    intervention log already holds entries for it, evaluation still runs
    but nothing is executed again.
    """

    def __init__(
            self,
            aggregator: MetricsAggregator,
            service: GovernanceService,
            intervention_log: InterventionLog,
            structured_logger: Optional[StructuredGovernanceLogger] = None,
            intervention_enabled: Optional[bool] = None
    ):
        self.aggregator = aggregator
        self.service = service
        self.intervention_log = intervention_log
        self.structured_logger = structured_logger or StructuredGovernanceLogger()
        self.intervention_enabled = (
            settings.INTERVENTION_ENABLED if intervention_enabled is None else intervention_enabled
        )

    def run(self, run_id: Optional[str] = None) -> CycleResult:
        run_id = run_id or str(uuid.uuid4())

        snapshot = self.aggregator.aggregate()
        events = self.service.check_intervention(snapshot)

        if self._already_ran(run_id):
            self.structured_logger.emit("cycle_replayed", run_id=run_id, events=len(events))
            return CycleResult(run_id=run_id, snapshot=snapshot, events=events, replayed=True, executed=False)

        if not self.intervention_enabled:
            self.structured_logger.emit("cycle_dry_run", run_id=run_id, events=len(events))
            return CycleResult(run_id=run_id, snapshot=snapshot, events=events, executed=False)

        outcome = self.service.execute_intervention(events, run_id=run_id)
        self.structured_logger.emit(
            "cycle_completed",
            run_id=run_id,
            days_analyzed=snapshot.days_analyzed,
            executed=len(outcome.executed),
            skipped=len(outcome.skipped),
            log_failures=len(outcome.log_failures),
        )
        return CycleResult(run_id=run_id, snapshot=snapshot, events=events, outcome=outcome)

    def _already_ran(self, run_id: str) -> bool:
        try:
            return self.intervention_log.has_run(run_id)
        except StorageUnavailable as e:
            # An unreadable log is treated as holding no entries for run_id.
            logger.error("Cannot check run %s against the intervention log: %s", run_id, e)
            self.structured_logger.warn("intervention_log_unavailable", run_id=run_id, error=str(e))
            return False
