import logging
from typing import Callable, Dict, List, Optional

from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.governance.domain.exceptions import GovernanceError
from cognitive_os.governance.domain.execution_outcome import (
    FLOOR_LEVEL_REASON,
    UNRECOGNIZED_ACTION_REASON,
    ExecutionOutcome,
    SkippedIntervention,
)
from cognitive_os.governance.domain.intervention_action import InterventionAction
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry, InterventionOutcome
from cognitive_os.governance.interfaces.action_executor import ActionExecutor
from cognitive_os.governance.interfaces.intervention_log import InterventionLog
from cognitive_os.governance.store.governance_state_store import GovernanceStateStore

logger = logging.getLogger(__name__)

# A handler applies one event and returns None when executed,
# or the reason the event was skipped.
Handler = Callable[[InterventionEvent], Optional[str]]


class StandardActionExecutor(ActionExecutor):
    """
    Applies intervention events to the state store in order and appends
    every one of them, executed or skipped, to the intervention log.

    Log appends are independent of the state mutation that preceded them:
    a failed append is reported in the outcome and never rolls back state.
    """

    def __init__(
            self,
            state_store: GovernanceStateStore,
            intervention_log: InterventionLog,
            time_source: TimeSource,
            structured_logger: Optional[StructuredGovernanceLogger] = None
    ):
        self.state_store = state_store
        self.intervention_log = intervention_log
        self.time_source = time_source
        self.structured_logger = structured_logger or StructuredGovernanceLogger()
        self._handlers: Dict[InterventionAction, Handler] = {
            InterventionAction.LOCK_EXPANSION: self._lock_expansion,
            InterventionAction.FORCE_COUNTER_STRATEGY: self._force_counter_strategy,
            InterventionAction.DEGRADE_LEVEL: self._degrade_level,
            InterventionAction.WARN_SCATTERED: self._warn_scattered,
        }

    def execute(self, events: List[InterventionEvent], run_id: Optional[str] = None) -> ExecutionOutcome:
        outcome = ExecutionOutcome()

        for event in events:
            handler = self._handlers.get(event.action) if isinstance(event.action, InterventionAction) else None

            if handler is None:
                reason: Optional[str] = UNRECOGNIZED_ACTION_REASON
            else:
                try:
                    reason = handler(event)
                except (GovernanceError, OSError) as e:
                    logger.error("Intervention %s failed: %s", event.type, e)
                    reason = str(e)

            if reason is None:
                outcome.executed.append(event)
                self.structured_logger.emit(
                    "intervention_executed",
                    type=event.type,
                    action=event.action_name,
                    level=event.level,
                    message=event.message,
                    run_id=run_id,
                )
            else:
                outcome.skipped.append(SkippedIntervention(event=event, reason=reason))
                self.structured_logger.emit(
                    "intervention_skipped",
                    type=event.type,
                    action=event.action_name,
                    reason=reason,
                    run_id=run_id,
                )

            self._append_log(event, reason, run_id, outcome)

        return outcome

    def _append_log(
            self,
            event: InterventionEvent,
            reason: Optional[str],
            run_id: Optional[str],
            outcome: ExecutionOutcome
    ) -> None:
        entry = InterventionLogEntry(
            timestamp=self.time_source.now(),
            event=event,
            outcome=InterventionOutcome.EXECUTED if reason is None else InterventionOutcome.SKIPPED,
            run_id=run_id,
            reason=reason,
        )
        try:
            self.intervention_log.append(entry)
        except (GovernanceError, OSError) as e:
            logger.error("Failed to log intervention %s: %s", event.type, e)
            outcome.log_failures.append(f"{event.type}: {e}")

    # --- handlers ---

    def _lock_expansion(self, event: InterventionEvent) -> Optional[str]:
        self.state_store.lock_expansion(event.message, level=event.level)
        return None

    def _force_counter_strategy(self, event: InterventionEvent) -> Optional[str]:
        # Surfaced to the user; writing the strategy is not automated.
        return None

    def _degrade_level(self, event: InterventionEvent) -> Optional[str]:
        _, changed = self.state_store.degrade_level()
        return None if changed else FLOOR_LEVEL_REASON

    def _warn_scattered(self, event: InterventionEvent) -> Optional[str]:
        return None
