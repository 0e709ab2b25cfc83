from dataclasses import dataclass, field
from typing import Any, Dict, Union

from cognitive_os.governance.domain.intervention_action import InterventionAction


@dataclass(frozen=True)
class InterventionEvent:
    """
    A proposed action produced by rule evaluation, not yet applied.
    `action` is normally an InterventionAction; events rebuilt from an old
    log may carry a raw string the executor no longer knows.
    """
    type: str
    level: int
    message: str
    action: Union[InterventionAction, str]
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def action_name(self) -> str:
        if isinstance(self.action, InterventionAction):
            return self.action.value
        return str(self.action)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "level": self.level,
            "message": self.message,
            "action": self.action_name,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InterventionEvent":
        raw_action = data.get("action", "")
        try:
            action: Union[InterventionAction, str] = InterventionAction(raw_action)
        except ValueError:
            action = raw_action
        return cls(
            type=data.get("type", ""),
            level=int(data.get("level", 1)),
            message=data.get("message", ""),
            action=action,
            data=dict(data.get("data") or {}),
        )
