import json
import logging

import pytest
from datetime import datetime, timedelta, timezone

from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.frozen_time_source import FrozenTimeSource
from cognitive_os.core.time.system_time_source import SystemTimeSource


def test_system_time_is_utc_aware():
    now = SystemTimeSource().now()
    assert now.tzinfo is not None
    assert now.utcoffset() == timedelta(0)


def test_frozen_time_requires_aware_start():
    with pytest.raises(ValueError):
        FrozenTimeSource(datetime(2024, 1, 1))


def test_frozen_time_only_moves_when_advanced():
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    clock = FrozenTimeSource(start)

    assert clock.now() == start
    assert clock.advance(timedelta(hours=5)) == start + timedelta(hours=5)
    assert clock.advance_days(2) == start + timedelta(days=2, hours=5)
    assert clock.now() == start + timedelta(days=2, hours=5)


def test_structured_logger_emits_json_lines(caplog):
    logger = StructuredGovernanceLogger(logging.getLogger("cognitive_os.test"))

    with caplog.at_level(logging.INFO, logger="cognitive_os.test"):
        logger.emit("intervention_executed", type="unfinished_limit", level=3)
        logger.warn("storage_degraded", path="/tmp/x")

    first, second = [json.loads(r.getMessage()) for r in caplog.records]
    assert first["event_type"] == "intervention_executed"
    assert first["level"] == 3
    assert "timestamp" in first
    assert second["event_type"] == "storage_degraded"
    assert caplog.records[1].levelno == logging.WARNING
