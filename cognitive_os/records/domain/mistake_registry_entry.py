from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict


class MistakeStatus(Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


# Known mistake types and the category they are filed under.
MISTAKE_CATEGORIES: Dict[str, str] = {
    "overengineering": "cognitive_bias",
    "over_optimization": "cognitive_bias",
    "perfectionism": "cognitive_bias",
    "procrastination": "behavior_pattern",
    "impulsive_implementation": "behavior_pattern",
    "scope_creep": "behavior_pattern",
    "lack_of_communication": "collaboration",
    "wrong_tech_choice": "decision_error",
}

DEFAULT_CATEGORY = "other"


def categorize_mistake(mistake_type: str) -> str:
    key = mistake_type.strip().lower().replace(" ", "_").replace("-", "_")
    return MISTAKE_CATEGORIES.get(key, DEFAULT_CATEGORY)


@dataclass(frozen=True)
class MistakeRegistryEntry:
    type: str
    category: str
    first_seen: date
    last_seen: date
    occurrences: int = 1
    status: MistakeStatus = MistakeStatus.ACTIVE

    @property
    def is_resolved(self) -> bool:
        return self.status == MistakeStatus.RESOLVED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "category": self.category,
            "first_seen": self.first_seen.isoformat(),
            "last_seen": self.last_seen.isoformat(),
            "occurrences": self.occurrences,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MistakeRegistryEntry":
        try:
            status = MistakeStatus(data.get("status", MistakeStatus.ACTIVE.value))
        except ValueError:
            status = MistakeStatus.ACTIVE
        return cls(
            type=data["type"],
            category=data.get("category") or categorize_mistake(data["type"]),
            first_seen=date.fromisoformat(data["first_seen"]),
            last_seen=date.fromisoformat(data.get("last_seen") or data["first_seen"]),
            occurrences=int(data.get("occurrences", 1)),
            status=status,
        )
