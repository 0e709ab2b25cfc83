from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from cognitive_os.records.domain.daily_record import DailyRecord
from cognitive_os.records.domain.mistake_registry_entry import MistakeRegistryEntry
from cognitive_os.records.domain.unresolved_registry_entry import UnresolvedRegistryEntry


class RecordSource(ABC):
    """
    Read-only view of the record store consumed by the metrics aggregator.
    """

    @abstractmethod
    def list_records(self, since: datetime) -> List[DailyRecord]:
        """
        Records whose `recorded_at` is strictly after `since`, in any order.
        """
        pass

    @abstractmethod
    def list_mistakes(self) -> List[MistakeRegistryEntry]:
        pass

    @abstractmethod
    def list_unresolved(self) -> List[UnresolvedRegistryEntry]:
        pass
