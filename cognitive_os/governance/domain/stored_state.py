from dataclasses import dataclass

from cognitive_os.governance.domain.governance_state import GovernanceState


@dataclass(frozen=True)
class StoredState:
    """
    A persisted state together with the revision it was written under.
    The revision is what compare-and-swap writes are checked against.
    """
    state: GovernanceState
    revision: int
