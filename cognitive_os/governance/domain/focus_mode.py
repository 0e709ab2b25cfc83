from enum import Enum

from cognitive_os.governance.domain.exceptions import InvalidFocusMode


class FocusMode(Enum):
    DEEP = "deep"
    SCATTERED = "scattered"
    NEUTRAL = "neutral"

    @classmethod
    def parse(cls, value) -> "FocusMode":
        if isinstance(value, FocusMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidFocusMode(f"Invalid focus mode: {value!r}")
