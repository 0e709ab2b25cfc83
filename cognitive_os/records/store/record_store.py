import logging
from abc import abstractmethod
from dataclasses import replace
from datetime import date
from typing import List, Optional

from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.records.domain.daily_record import DailyRecord, MistakeNote
from cognitive_os.records.domain.energy_state import EnergyState
from cognitive_os.records.domain.mistake_registry_entry import (
    MistakeRegistryEntry,
    MistakeStatus,
    categorize_mistake,
)
from cognitive_os.records.domain.unresolved_registry_entry import (
    UnresolvedRegistryEntry,
    UnresolvedStatus,
)
from cognitive_os.records.interfaces.record_source import RecordSource

logger = logging.getLogger(__name__)


class RecordStore(RecordSource):
    """
    Record store with the registry bookkeeping shared by all backends.
    Subclasses provide the raw load/save primitives.

    Every write that touches a day's record goes through `_write_record`,
    which refreshes `recorded_at` from the injected clock.
    """

    def __init__(self, time_source: TimeSource):
        self.time_source = time_source

    # --- primitives ---

    @abstractmethod
    def load_record(self, day: date) -> Optional[DailyRecord]:
        pass

    @abstractmethod
    def _save_record(self, record: DailyRecord) -> None:
        pass

    @abstractmethod
    def _save_mistakes(self, entries: List[MistakeRegistryEntry]) -> None:
        pass

    @abstractmethod
    def _save_unresolved(self, entries: List[UnresolvedRegistryEntry]) -> None:
        pass

    # --- daily record ---

    def _today(self) -> date:
        return self.time_source.now().date()

    def _current_record(self) -> DailyRecord:
        today = self._today()
        record = self.load_record(today)
        if record is None:
            record = DailyRecord(date=today, recorded_at=self.time_source.now())
        return record

    def _write_record(self, record: DailyRecord) -> DailyRecord:
        stamped = replace(record, recorded_at=self.time_source.now())
        self._save_record(stamped)
        return stamped

    def save_record(self, record: DailyRecord) -> DailyRecord:
        """Store a complete record as-is, keeping its own `recorded_at`."""
        self._save_record(record)
        return record

    def set_main_topic(self, topic: str) -> DailyRecord:
        return self._write_record(replace(self._current_record(), main_topic=topic))

    def set_energy_state(self, energy) -> DailyRecord:
        state = EnergyState.parse(energy)
        return self._write_record(replace(self._current_record(), energy_state=state))

    def add_decision(self, decision: str, context: str = "") -> DailyRecord:
        record = self._current_record()
        entry = {
            "decision": decision,
            "context": context,
            "timestamp": self.time_source.now().isoformat(),
        }
        return self._write_record(replace(record, decisions=record.decisions + [entry]))

    def add_insight(self, insight: str) -> DailyRecord:
        record = self._current_record()
        return self._write_record(replace(record, insights=record.insights + [insight]))

    def add_bias_detected(self, bias: str, description: str = "") -> DailyRecord:
        record = self._current_record()
        entry = {
            "bias": bias,
            "description": description,
            "timestamp": self.time_source.now().isoformat(),
        }
        return self._write_record(
            replace(record, self_bias_detected=record.self_bias_detected + [entry])
        )

    # --- registries ---

    def add_mistake(self, mistake: str, mistake_type: str = "general") -> DailyRecord:
        record = self._current_record()
        note = MistakeNote(mistake=mistake, type=mistake_type)
        updated = self._write_record(replace(record, mistakes=record.mistakes + [note]))
        self._register_mistake(mistake_type)
        return updated

    def _register_mistake(self, mistake_type: str) -> MistakeRegistryEntry:
        today = self._today()
        entries = self.list_mistakes()
        for index, entry in enumerate(entries):
            if entry.type == mistake_type:
                bumped = replace(entry, occurrences=entry.occurrences + 1, last_seen=today)
                entries[index] = bumped
                self._save_mistakes(entries)
                return bumped

        created = MistakeRegistryEntry(
            type=mistake_type,
            category=categorize_mistake(mistake_type),
            first_seen=today,
            last_seen=today,
        )
        entries.append(created)
        self._save_mistakes(entries)
        return created

    def resolve_mistake(self, mistake_type: str) -> Optional[MistakeRegistryEntry]:
        entries = self.list_mistakes()
        for index, entry in enumerate(entries):
            if entry.type == mistake_type:
                resolved = replace(entry, status=MistakeStatus.RESOLVED)
                entries[index] = resolved
                self._save_mistakes(entries)
                return resolved
        logger.warning("No mistake registered under %r", mistake_type)
        return None

    def add_unfinished(self, thread: str) -> DailyRecord:
        record = self._current_record()
        updated = self._write_record(
            replace(record, unfinished_threads=record.unfinished_threads + [thread])
        )
        self._register_unfinished(thread)
        return updated

    def _register_unfinished(self, topic: str) -> UnresolvedRegistryEntry:
        today = self._today()
        entries = self.list_unresolved()
        for index, entry in enumerate(entries):
            if entry.topic == topic:
                touched = replace(entry, last_touched=today)
                entries[index] = touched
                self._save_unresolved(entries)
                return touched

        created = UnresolvedRegistryEntry(topic=topic, opened=today, last_touched=today)
        entries.append(created)
        self._save_unresolved(entries)
        return created

    def resolve_unresolved(self, topic: str) -> Optional[UnresolvedRegistryEntry]:
        entries = self.list_unresolved()
        for index, entry in enumerate(entries):
            if entry.topic == topic:
                resolved = replace(
                    entry,
                    status=UnresolvedStatus.RESOLVED,
                    resolved_at=self._today(),
                )
                entries[index] = resolved
                self._save_unresolved(entries)
                return resolved
        logger.warning("No unresolved item registered under %r", topic)
        return None

    def open_unresolved_count(self) -> int:
        return sum(1 for entry in self.list_unresolved() if entry.is_open)
