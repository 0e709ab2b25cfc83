from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Tuple


class PatternType(Enum):
    HIGH_FREQUENCY_TOPIC = "high_frequency_topic"
    LOW_ENERGY = "low_energy"
    REPEATED_ERROR = "repeated_error"
    UNFINISHED_BACKLOG = "unfinished_backlog"


@dataclass(frozen=True)
class Pattern:
    """
    A recurring behavior spotted in one snapshot. Patterns are kept once
    per (type, description); the description carries the counts, so a
    pattern that grows is recorded again.
    """
    type: PatternType
    description: str
    identified_at: datetime
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> Tuple[str, str]:
        return self.type.value, self.description

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "data": dict(self.data),
            "identified_at": self.identified_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pattern":
        identified_at = datetime.fromisoformat(data["identified_at"].replace("Z", "+00:00"))
        if identified_at.tzinfo is None:
            identified_at = identified_at.replace(tzinfo=timezone.utc)
        return cls(
            type=PatternType(data["type"]),
            description=data["description"],
            identified_at=identified_at,
            data=dict(data.get("data") or {}),
        )
