import json
import logging
import os
from datetime import datetime
from typing import Iterator, List

from cognitive_os.governance.domain.exceptions import StorageUnavailable
from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry
from cognitive_os.governance.interfaces.intervention_log import InterventionLog

logger = logging.getLogger(__name__)


class FileInterventionLog(InterventionLog):
    """
    JSON-lines intervention log. One line per evaluated event; lines are
    only ever appended.
    """

    def __init__(self, file_path: str):
        self.file_path = file_path
        os.makedirs(os.path.dirname(file_path) or ".", exist_ok=True)

    def append(self, entry: InterventionLogEntry) -> None:
        try:
            with open(self.file_path, 'a', encoding='utf-8') as f:
                f.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as e:
            raise StorageUnavailable(f"Cannot append to intervention log {self.file_path}: {e}")

    def _iter_entries(self) -> Iterator[InterventionLogEntry]:
        if not os.path.exists(self.file_path):
            return
        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                lines = f.readlines()
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailable(f"Cannot read intervention log {self.file_path}: {e}")

        for line_no, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                yield InterventionLogEntry.from_dict(json.loads(line))
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed log line %s:%d: %s", self.file_path, line_no, e)
                continue

    def list_since(self, since: datetime) -> List[InterventionLogEntry]:
        entries = []
        for entry in self._iter_entries():
            try:
                if entry.timestamp > since:
                    entries.append(entry)
            except TypeError:
                # naive timestamps from older writers cannot be compared
                continue
        return entries

    def has_run(self, run_id: str) -> bool:
        return any(entry.run_id == run_id for entry in self._iter_entries())
