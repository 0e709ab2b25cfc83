from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from cognitive_os.governance.domain.exceptions import InvalidLevel, InvalidStateDelta
from cognitive_os.governance.domain.focus_mode import FocusMode

MIN_LEVEL = 1
MAX_LEVEL = 3

# Fields a caller may change through GovernanceStateStore.update().
# last_update and created_at are stamped by the store itself.
MUTABLE_FIELDS = frozenset({
    "focus_mode",
    "expansion_lock",
    "active_constraint",
    "intervention_level",
    "current_goal",
    "streak_days",
    "high_level_since",
})


@dataclass(frozen=True)
class GovernanceState:
    """
    The single persisted governance state.

    Invariants (checked by the store on every write):
    - intervention_level is within [MIN_LEVEL, MAX_LEVEL]
    - active_constraint is non-empty iff expansion_lock is set
    """
    focus_mode: FocusMode = FocusMode.NEUTRAL
    expansion_lock: bool = False
    active_constraint: Optional[str] = None
    intervention_level: int = MIN_LEVEL
    current_goal: Optional[str] = None
    streak_days: int = 0
    last_update: Optional[datetime] = None
    created_at: Optional[datetime] = None
    # Moment the level last reached MAX_LEVEL; None while below it.
    high_level_since: Optional[datetime] = None

    @classmethod
    def defaults(cls, created_at: Optional[datetime] = None) -> "GovernanceState":
        return cls(created_at=created_at)

    def merged(self, delta: Dict[str, Any]) -> "GovernanceState":
        return replace(self, **delta)

    def check_invariants(self) -> "GovernanceState":
        """
        Raise InvalidLevel or InvalidStateDelta when the state breaks one of
        its invariants; used on states read back from storage.
        """
        level = self.intervention_level
        if isinstance(level, bool) or not isinstance(level, int) or not MIN_LEVEL <= level <= MAX_LEVEL:
            raise InvalidLevel(f"Stored intervention level out of range: {level!r}")
        if self.expansion_lock != bool(self.active_constraint):
            raise InvalidStateDelta("Stored expansion_lock and active_constraint disagree")
        if self.streak_days < 0:
            raise InvalidStateDelta(f"Stored streak_days is negative: {self.streak_days}")
        return self

    def high_level_days(self, now: datetime) -> int:
        if self.high_level_since is None or self.intervention_level < MAX_LEVEL:
            return 0
        return max(0, (now - self.high_level_since).days)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "focus_mode": self.focus_mode.value,
            "expansion_lock": self.expansion_lock,
            "active_constraint": self.active_constraint,
            "intervention_level": self.intervention_level,
            "current_goal": self.current_goal,
            "streak_days": self.streak_days,
            "last_update": _iso(self.last_update),
            "created_at": _iso(self.created_at),
            "high_level_since": _iso(self.high_level_since),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceState":
        return cls(
            focus_mode=FocusMode.parse(data.get("focus_mode", FocusMode.NEUTRAL.value)),
            expansion_lock=bool(data.get("expansion_lock", False)),
            active_constraint=data.get("active_constraint"),
            intervention_level=int(data.get("intervention_level", MIN_LEVEL)),
            current_goal=data.get("current_goal"),
            streak_days=int(data.get("streak_days", 0)),
            last_update=_parse(data.get("last_update")),
            created_at=_parse(data.get("created_at")),
            high_level_since=_parse(data.get("high_level_since")),
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    # Older writers stored naive UTC stamps.
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
