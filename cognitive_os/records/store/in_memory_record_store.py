from datetime import date, datetime
from typing import Dict, List, Optional

from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.records.domain.daily_record import DailyRecord
from cognitive_os.records.domain.mistake_registry_entry import MistakeRegistryEntry
from cognitive_os.records.domain.unresolved_registry_entry import UnresolvedRegistryEntry
from cognitive_os.records.store.record_store import RecordStore


class InMemoryRecordStore(RecordStore):
    """
    Record store for tests and simulations. Nothing survives the process.
    """

    def __init__(self, time_source: TimeSource):
        super().__init__(time_source)
        self._records: Dict[date, DailyRecord] = {}
        self._mistakes: List[MistakeRegistryEntry] = []
        self._unresolved: List[UnresolvedRegistryEntry] = []

    def load_record(self, day: date) -> Optional[DailyRecord]:
        return self._records.get(day)

    def _save_record(self, record: DailyRecord) -> None:
        self._records[record.date] = record

    def _save_mistakes(self, entries: List[MistakeRegistryEntry]) -> None:
        self._mistakes = list(entries)

    def _save_unresolved(self, entries: List[UnresolvedRegistryEntry]) -> None:
        self._unresolved = list(entries)

    def list_records(self, since: datetime) -> List[DailyRecord]:
        return [r for r in self._records.values() if r.recorded_at > since]

    def list_mistakes(self) -> List[MistakeRegistryEntry]:
        return list(self._mistakes)

    def list_unresolved(self) -> List[UnresolvedRegistryEntry]:
        return list(self._unresolved)
