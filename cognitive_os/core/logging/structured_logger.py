import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class StructuredGovernanceLogger:
    """
    JSON-lines logger for state transitions and intervention outcomes.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger("cognitive_os.governance")

    def emit(self, event_type: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.info(json.dumps(payload, default=str, ensure_ascii=False))

    def warn(self, event_type: str, **fields: Any) -> None:
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
        }
        payload.update(fields)
        self._logger.warning(json.dumps(payload, default=str, ensure_ascii=False))


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
