from typing import Optional

from cognitive_os.config.settings import settings
from cognitive_os.governance.domain.expansion_check import UnlockCheck
from cognitive_os.governance.domain.governance_state import GovernanceState


class UnlockEvaluator:
    """
    Advisory check for lifting the expansion lock. Never mutates state.
    """

    def __init__(self, unresolved_threshold: Optional[int] = None):
        self.unresolved_threshold = (
            settings.UNLOCK_UNRESOLVED_THRESHOLD if unresolved_threshold is None else unresolved_threshold
        )

    def can_unlock(self, state: GovernanceState, unresolved_count: int) -> UnlockCheck:
        if state.expansion_lock and unresolved_count < self.unresolved_threshold:
            return UnlockCheck(
                can_unlock=True,
                reason=f"Unfinished items down to {unresolved_count}, below {self.unresolved_threshold}",
            )
        return UnlockCheck(can_unlock=False, reason=state.active_constraint)
