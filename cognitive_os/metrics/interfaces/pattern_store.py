from abc import ABC, abstractmethod
from typing import List

from cognitive_os.metrics.domain.pattern import Pattern


class PatternStore(ABC):
    @abstractmethod
    def list_all(self) -> List[Pattern]:
        pass

    @abstractmethod
    def append(self, patterns: List[Pattern]) -> None:
        """
        Add patterns after the existing ones; earlier entries are never rewritten.
        """
        pass
