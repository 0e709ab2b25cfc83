from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExpansionCheck:
    allowed: bool
    reason: Optional[str]
    intervention_level: int


@dataclass(frozen=True)
class UnlockCheck:
    """Advisory result; acting on it requires an explicit unlock_expansion()."""
    can_unlock: bool
    reason: Optional[str]
