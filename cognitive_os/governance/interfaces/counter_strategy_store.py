from abc import ABC, abstractmethod
from typing import List, Optional

from cognitive_os.governance.domain.counter_strategy import CounterStrategy


class CounterStrategyStore(ABC):
    @abstractmethod
    def get(self, error: str) -> Optional[CounterStrategy]:
        pass

    @abstractmethod
    def put(self, strategy: CounterStrategy) -> None:
        pass

    @abstractmethod
    def list_all(self) -> List[CounterStrategy]:
        pass
