from abc import ABC, abstractmethod
from typing import List, Optional

from cognitive_os.governance.domain.execution_outcome import ExecutionOutcome
from cognitive_os.governance.domain.intervention_event import InterventionEvent


class ActionExecutor(ABC):
    @abstractmethod
    def execute(self, events: List[InterventionEvent], run_id: Optional[str] = None) -> ExecutionOutcome:
        pass
