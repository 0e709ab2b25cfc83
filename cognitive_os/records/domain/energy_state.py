from enum import Enum


class EnergyState(Enum):
    HIGH = "high"
    NEUTRAL = "neutral"
    LOW = "low"

    @classmethod
    def parse(cls, value) -> "EnergyState":
        if isinstance(value, EnergyState):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Energy state must be high, neutral or low, got {value!r}")
