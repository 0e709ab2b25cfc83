from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CounterStrategy:
    """
    A user-written response to a recurring error, required once the
    error_recurrence rule fires for it.
    """
    error: str
    trigger_context: str = ""
    behavior_pattern: str = ""
    counter_strategy: List[str] = field(default_factory=list)
    verification_rule: str = ""
    level: int = 2
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "trigger_context": self.trigger_context,
            "behavior_pattern": self.behavior_pattern,
            "counter_strategy": list(self.counter_strategy),
            "verification_rule": self.verification_rule,
            "level": self.level,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CounterStrategy":
        steps = data.get("counter_strategy") or []
        if isinstance(steps, str):
            steps = [steps]
        return cls(
            error=data["error"],
            trigger_context=data.get("trigger_context", ""),
            behavior_pattern=data.get("behavior_pattern", ""),
            counter_strategy=list(steps),
            verification_rule=data.get("verification_rule", ""),
            level=int(data.get("level", 2)),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
            updated_at=datetime.fromisoformat(data["updated_at"]) if data.get("updated_at") else None,
        )
