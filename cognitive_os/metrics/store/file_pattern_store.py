import logging
import os
from typing import List

from cognitive_os.metrics.domain.pattern import Pattern
from cognitive_os.metrics.interfaces.pattern_store import PatternStore
from cognitive_os.persistence.json_file import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class FilePatternStore(PatternStore):
    """
    patterns.json next to the record registries.
    """

    FILE_NAME = "patterns.json"

    def __init__(self, base_dir: str):
        os.makedirs(base_dir, exist_ok=True)
        self.file_path = os.path.join(base_dir, self.FILE_NAME)

    def list_all(self) -> List[Pattern]:
        if not os.path.exists(self.file_path):
            return []
        try:
            data = read_json(self.file_path)
        except (OSError, ValueError) as e:
            logger.error("Failed to load patterns: %s", e)
            return []
        patterns = []
        for item in data if isinstance(data, list) else []:
            try:
                patterns.append(Pattern.from_dict(item))
            except (KeyError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Skipping malformed pattern: %s", e)
        return patterns

    def append(self, patterns: List[Pattern]) -> None:
        merged = self.list_all() + list(patterns)
        write_json_atomic(self.file_path, [p.to_dict() for p in merged])


class InMemoryPatternStore(PatternStore):
    def __init__(self):
        self._patterns: List[Pattern] = []

    def list_all(self) -> List[Pattern]:
        return list(self._patterns)

    def append(self, patterns: List[Pattern]) -> None:
        self._patterns.extend(patterns)
