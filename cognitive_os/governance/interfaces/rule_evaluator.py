from abc import ABC, abstractmethod
from typing import List

from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot


class RuleEvaluator(ABC):
    """
    Pure mapping from (state, metrics) to proposed interventions.
    """
    @abstractmethod
    def evaluate(
            self,
            state: GovernanceState,
            snapshot: MetricsSnapshot,
            high_level_days: int = 0
    ) -> List[InterventionEvent]:
        pass
