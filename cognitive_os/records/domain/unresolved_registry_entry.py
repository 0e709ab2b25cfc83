from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional


class UnresolvedStatus(Enum):
    OPEN = "open"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class UnresolvedRegistryEntry:
    topic: str
    opened: date
    last_touched: date
    status: UnresolvedStatus = UnresolvedStatus.OPEN
    resolved_at: Optional[date] = None

    @property
    def is_open(self) -> bool:
        return self.status == UnresolvedStatus.OPEN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "opened": self.opened.isoformat(),
            "last_touched": self.last_touched.isoformat(),
            "status": self.status.value,
            "resolved_at": self.resolved_at.isoformat() if self.resolved_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UnresolvedRegistryEntry":
        try:
            status = UnresolvedStatus(data.get("status", UnresolvedStatus.OPEN.value))
        except ValueError:
            status = UnresolvedStatus.OPEN
        return cls(
            topic=data["topic"],
            opened=date.fromisoformat(data["opened"]),
            last_touched=date.fromisoformat(data.get("last_touched") or data["opened"]),
            status=status,
            resolved_at=date.fromisoformat(data["resolved_at"]) if data.get("resolved_at") else None,
        )
