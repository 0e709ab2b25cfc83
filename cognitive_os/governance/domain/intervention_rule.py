from dataclasses import dataclass

from cognitive_os.governance.domain.intervention_action import InterventionAction


@dataclass(frozen=True)
class InterventionRule:
    type: str
    threshold: int
    action: InterventionAction
    level: int
    message: str
