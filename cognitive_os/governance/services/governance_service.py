import logging
from datetime import timedelta
from typing import List, Optional

from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.governance.domain.exceptions import StorageUnavailable
from cognitive_os.governance.domain.execution_outcome import ExecutionOutcome
from cognitive_os.governance.domain.expansion_check import ExpansionCheck, UnlockCheck
from cognitive_os.governance.domain.governance_state import MAX_LEVEL, GovernanceState
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.interfaces.action_executor import ActionExecutor
from cognitive_os.governance.interfaces.intervention_log import InterventionLog
from cognitive_os.governance.interfaces.rule_evaluator import RuleEvaluator
from cognitive_os.governance.services.unlock_evaluator import UnlockEvaluator
from cognitive_os.governance.store.governance_state_store import GovernanceStateStore
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot
from cognitive_os.records.interfaces.record_source import RecordSource

logger = logging.getLogger(__name__)

FORCED_FOCUS_REASON = "high intervention level: forced focus"


class GovernanceService:
    """
    Entry point for collaborators (CLI, record tooling, scheduled runs).

    Wraps the state store, rule evaluator and action executor; owns no
    state of its own.
    """

    def __init__(
            self,
            state_store: GovernanceStateStore,
            rule_evaluator: RuleEvaluator,
            action_executor: ActionExecutor,
            intervention_log: InterventionLog,
            record_source: RecordSource,
            time_source: TimeSource,
            unlock_evaluator: Optional[UnlockEvaluator] = None
    ):
        self.state_store = state_store
        self.rule_evaluator = rule_evaluator
        self.action_executor = action_executor
        self.intervention_log = intervention_log
        self.record_source = record_source
        self.time_source = time_source
        self.unlock_evaluator = unlock_evaluator or UnlockEvaluator()

    # --- control loop ---

    def check_intervention(self, snapshot: MetricsSnapshot) -> List[InterventionEvent]:
        state = self.state_store.get()
        return self.rule_evaluator.evaluate(
            state,
            snapshot,
            high_level_days=state.high_level_days(self.time_source.now()),
        )

    def execute_intervention(
            self,
            events: List[InterventionEvent],
            run_id: Optional[str] = None
    ) -> ExecutionOutcome:
        return self.action_executor.execute(events, run_id=run_id)

    # --- state ---

    def get_state(self) -> GovernanceState:
        return self.state_store.get()

    def can_expand(self) -> ExpansionCheck:
        state = self.state_store.get()
        if state.expansion_lock:
            return ExpansionCheck(
                allowed=False,
                reason=state.active_constraint,
                intervention_level=state.intervention_level,
            )
        if state.intervention_level >= MAX_LEVEL:
            return ExpansionCheck(
                allowed=False,
                reason=FORCED_FOCUS_REASON,
                intervention_level=state.intervention_level,
            )
        return ExpansionCheck(allowed=True, reason=None, intervention_level=state.intervention_level)

    def set_current_goal(self, goal: Optional[str]) -> GovernanceState:
        return self.state_store.set_current_goal(goal)

    def set_focus_mode(self, mode) -> GovernanceState:
        return self.state_store.set_focus_mode(mode)

    def lock_expansion(self, reason: str) -> GovernanceState:
        return self.state_store.lock_expansion(reason)

    def unlock_expansion(self) -> GovernanceState:
        return self.state_store.unlock_expansion()

    def reset(self) -> GovernanceState:
        return self.state_store.reset()

    def check_unlock_condition(self) -> UnlockCheck:
        unresolved = self.record_source.list_unresolved()
        open_count = sum(1 for entry in unresolved if entry.is_open)
        return self.unlock_evaluator.can_unlock(self.state_store.get(), open_count)

    # --- history ---

    def get_intervention_history(self, days: int = 7) -> List[InterventionLogEntry]:
        since = self.time_source.now() - timedelta(days=days)
        try:
            return self.intervention_log.list_since(since)
        except StorageUnavailable as e:
            logger.warning("Intervention log unavailable: %s", e)
            return []

    def get_state_history(self, days: int = 7) -> List[StateHistoryEntry]:
        return self.state_store.recent_history(days)
