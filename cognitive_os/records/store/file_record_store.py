import json
import logging
import os
from datetime import date, datetime, timezone
from typing import List, Optional

from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.persistence.json_file import read_json, write_json_atomic
from cognitive_os.records.domain.daily_record import DailyRecord
from cognitive_os.records.domain.mistake_registry_entry import MistakeRegistryEntry
from cognitive_os.records.domain.unresolved_registry_entry import UnresolvedRegistryEntry
from cognitive_os.records.store.record_store import RecordStore

logger = logging.getLogger(__name__)


class FileRecordStore(RecordStore):
    """
    JSON-file record store.

    Layout under `base_dir`:
        timeline/YYYY-MM-DD.json   one document per day
        errors.json                mistake registry
        unresolved.json            unresolved-item registry

    Unreadable documents are logged and skipped; reads never raise.
    """

    TIMELINE_DIR = "timeline"
    ERRORS_FILE = "errors.json"
    UNRESOLVED_FILE = "unresolved.json"

    def __init__(self, base_dir: str, time_source: TimeSource):
        super().__init__(time_source)
        self.base_dir = base_dir
        self.timeline_dir = os.path.join(base_dir, self.TIMELINE_DIR)
        os.makedirs(self.timeline_dir, exist_ok=True)

    def _record_path(self, day: date) -> str:
        return os.path.join(self.timeline_dir, f"{day.isoformat()}.json")

    def _mtime(self, path: str) -> datetime:
        return datetime.fromtimestamp(os.path.getmtime(path), tz=timezone.utc)

    def _read_record(self, path: str) -> Optional[DailyRecord]:
        try:
            data = read_json(path)
            # Legacy documents without a timestamp fall back to the file mtime.
            return DailyRecord.from_dict(data, recorded_at=self._mtime(path))
        except FileNotFoundError:
            return None
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error("Failed to load record %s: %s", path, e)
            return None

    def load_record(self, day: date) -> Optional[DailyRecord]:
        return self._read_record(self._record_path(day))

    def _save_record(self, record: DailyRecord) -> None:
        write_json_atomic(self._record_path(record.date), record.to_dict())

    def list_records(self, since: datetime) -> List[DailyRecord]:
        records = []
        for name in sorted(os.listdir(self.timeline_dir)):
            if not name.endswith(".json"):
                continue
            record = self._read_record(os.path.join(self.timeline_dir, name))
            if record is not None and record.recorded_at > since:
                records.append(record)
        return records

    def _read_list(self, file_name: str) -> list:
        path = os.path.join(self.base_dir, file_name)
        try:
            data = read_json(path)
        except FileNotFoundError:
            return []
        except ValueError as e:
            logger.error("Failed to load %s: %s", path, e)
            return []
        if not isinstance(data, list):
            logger.error("Expected a list in %s, got %s", path, type(data).__name__)
            return []
        return data

    def list_mistakes(self) -> List[MistakeRegistryEntry]:
        entries = []
        for item in self._read_list(self.ERRORS_FILE):
            try:
                entries.append(MistakeRegistryEntry.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.error("Skipping malformed mistake entry %s: %s", json.dumps(item, default=str), e)
        return entries

    def list_unresolved(self) -> List[UnresolvedRegistryEntry]:
        entries = []
        for item in self._read_list(self.UNRESOLVED_FILE):
            try:
                entries.append(UnresolvedRegistryEntry.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.error("Skipping malformed unresolved entry %s: %s", json.dumps(item, default=str), e)
        return entries

    def _save_mistakes(self, entries: List[MistakeRegistryEntry]) -> None:
        write_json_atomic(
            os.path.join(self.base_dir, self.ERRORS_FILE),
            [e.to_dict() for e in entries],
        )

    def _save_unresolved(self, entries: List[UnresolvedRegistryEntry]) -> None:
        write_json_atomic(
            os.path.join(self.base_dir, self.UNRESOLVED_FILE),
            [e.to_dict() for e in entries],
        )
