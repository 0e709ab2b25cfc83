from dataclasses import replace
from typing import Any, List, Optional, Sequence

from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.governance.domain.counter_strategy import CounterStrategy
from cognitive_os.governance.domain.exceptions import InvalidStateDelta
from cognitive_os.governance.interfaces.counter_strategy_store import CounterStrategyStore
from cognitive_os.records.domain.mistake_registry_entry import MistakeRegistryEntry


STRATEGY_FIELDS = frozenset({
    "trigger_context",
    "behavior_pattern",
    "counter_strategy",
    "verification_rule",
    "level",
})

NEEDS_STRATEGY_OCCURRENCES = 2


class CounterStrategyService:
    def __init__(
            self,
            store: CounterStrategyStore,
            time_source: TimeSource,
            structured_logger: Optional[StructuredGovernanceLogger] = None
    ):
        self.store = store
        self.time_source = time_source
        self.structured_logger = structured_logger or StructuredGovernanceLogger()

    def add(self, error: str, **fields: Any) -> CounterStrategy:
        """
        Create the strategy for `error`, or update the given fields of an
        existing one. `created_at` survives updates.
        """
        if not error or not error.strip():
            raise InvalidStateDelta("A counter-strategy needs an error type")
        unknown = set(fields) - STRATEGY_FIELDS
        if unknown:
            raise InvalidStateDelta(f"Unknown counter-strategy fields: {sorted(unknown)}")

        if isinstance(fields.get("counter_strategy"), str):
            fields["counter_strategy"] = [fields["counter_strategy"]]

        now = self.time_source.now()
        existing = self.store.get(error)
        if existing is None:
            strategy = CounterStrategy(error=error, created_at=now, updated_at=now, **fields)
        else:
            strategy = replace(existing, updated_at=now, **fields)

        self.store.put(strategy)
        self.structured_logger.emit(
            "counter_strategy_saved",
            error=error,
            created=existing is None,
        )
        return strategy

    def list(self) -> List[CounterStrategy]:
        return self.store.list_all()

    def errors_needing_strategy(self, registry: Sequence[MistakeRegistryEntry]) -> List[MistakeRegistryEntry]:
        covered = {strategy.error for strategy in self.store.list_all()}
        return [
            entry for entry in registry
            if entry.occurrences >= NEEDS_STRATEGY_OCCURRENCES and entry.type not in covered
        ]
