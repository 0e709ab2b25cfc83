import logging
import os
from typing import List, Optional

from cognitive_os.governance.domain.counter_strategy import CounterStrategy
from cognitive_os.governance.interfaces.counter_strategy_store import CounterStrategyStore
from cognitive_os.persistence.json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class FileCounterStrategyStore(CounterStrategyStore):
    """
    counter-strategies.json, one object per error type.
    """

    FILE_NAME = "counter-strategies.json"

    def __init__(self, base_dir: str):
        os.makedirs(base_dir, exist_ok=True)
        self.file_path = os.path.join(base_dir, self.FILE_NAME)

    def list_all(self) -> List[CounterStrategy]:
        if not os.path.exists(self.file_path):
            return []
        try:
            data = read_json(self.file_path)
        except (OSError, ValueError) as e:
            logger.error("Failed to load counter strategies: %s", e)
            return []
        strategies = []
        for item in data if isinstance(data, list) else []:
            try:
                strategies.append(CounterStrategy.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed counter strategy: %s", e)
        return strategies

    def get(self, error: str) -> Optional[CounterStrategy]:
        for strategy in self.list_all():
            if strategy.error == error:
                return strategy
        return None

    def put(self, strategy: CounterStrategy) -> None:
        strategies = [s for s in self.list_all() if s.error != strategy.error]
        strategies.append(strategy)
        write_json_atomic(self.file_path, [s.to_dict() for s in strategies])


class InMemoryCounterStrategyStore(CounterStrategyStore):
    def __init__(self):
        self._strategies: dict = {}

    def get(self, error: str) -> Optional[CounterStrategy]:
        return self._strategies.get(error)

    def put(self, strategy: CounterStrategy) -> None:
        self._strategies[strategy.error] = strategy

    def list_all(self) -> List[CounterStrategy]:
        return list(self._strategies.values())
