import json

import pytest
from datetime import datetime, timedelta, timezone

from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.frozen_time_source import FrozenTimeSource
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot, RepeatedError, TopicCount
from cognitive_os.metrics.domain.pattern import PatternType
from cognitive_os.metrics.services.pattern_identifier import PatternIdentifier
from cognitive_os.metrics.store.file_pattern_store import FilePatternStore, InMemoryPatternStore


NOW = datetime(2024, 3, 10, 21, 0, tzinfo=timezone.utc)


# --- Mocks ---

class RecordingLogger(StructuredGovernanceLogger):
    def __init__(self):
        super().__init__()
        self.events = []

    def emit(self, event_type, **fields):
        self.events.append((event_type, fields))


class ReadOnlyPatternStore(InMemoryPatternStore):
    def append(self, patterns):
        raise OSError("read-only file system")


# --- Fixtures ---

@pytest.fixture
def clock():
    return FrozenTimeSource(NOW)


@pytest.fixture
def recorder():
    return RecordingLogger()


@pytest.fixture
def identifier(clock, recorder):
    return PatternIdentifier(InMemoryPatternStore(), clock, structured_logger=recorder, window_days=7)


def busy_week() -> MetricsSnapshot:
    return MetricsSnapshot(
        days_analyzed=6,
        energy_distribution={"high": 1, "neutral": 1, "low": 4},
        top_topics=(TopicCount("side-project", 4), TopicCount("main-goal", 2)),
        repeated_errors=(
            RepeatedError("overengineering", "design", 3, "active"),
            RepeatedError("late_start", "other", 2, "active"),
        ),
        unfinished_count=5,
    )


# --- Detection ---

def test_quiet_snapshot_has_no_patterns(identifier):
    assert identifier.detect(MetricsSnapshot.empty()) == []


def test_busy_week_detects_every_pattern_kind(identifier):
    patterns = identifier.detect(busy_week())

    assert [p.type for p in patterns] == [
        PatternType.HIGH_FREQUENCY_TOPIC,
        PatternType.LOW_ENERGY,
        PatternType.REPEATED_ERROR,
        PatternType.REPEATED_ERROR,
        PatternType.UNFINISHED_BACKLOG,
    ]
    assert patterns[0].description == 'Topic "side-project" appeared 4 times in 7 days'
    assert patterns[0].data == {"topic": "side-project", "count": 4}
    assert patterns[2].description == 'Error "overengineering" seen 3 times'
    assert patterns[4].data == {"count": 5}
    assert all(p.identified_at == NOW for p in patterns)


def test_only_the_top_topic_is_considered(identifier):
    snapshot = MetricsSnapshot(top_topics=(TopicCount("a", 3), TopicCount("b", 3)))

    assert identifier.detect(snapshot) == []


@pytest.mark.parametrize("energy, expected", [
    ({"high": 0, "neutral": 0, "low": 3}, True),
    ({"high": 0, "neutral": 4, "low": 2}, False),
    ({"high": 3, "neutral": 0, "low": 3}, False),
    ({"high": 2, "neutral": 0, "low": 4}, True),
])
def test_low_energy_needs_three_low_days_outnumbering_high(identifier, energy, expected):
    patterns = identifier.detect(MetricsSnapshot(energy_distribution=energy))

    assert (PatternType.LOW_ENERGY in [p.type for p in patterns]) is expected


def test_backlog_threshold(identifier):
    assert identifier.detect(MetricsSnapshot(unfinished_count=4)) == []
    assert identifier.detect(MetricsSnapshot(unfinished_count=5))[0].type == PatternType.UNFINISHED_BACKLOG


# --- Identification ---

def test_known_patterns_are_not_stored_twice(identifier, clock, recorder):
    first = identifier.identify(busy_week())
    assert first.existing == []
    assert len(first.new) == 5

    clock.advance(timedelta(days=1))
    second = identifier.identify(busy_week())

    assert second.new == []
    assert len(second.existing) == 5
    assert [event_type for event_type, _ in recorder.events] == ["pattern_identified"] * 5


def test_pattern_with_new_counts_is_recorded_again(identifier):
    identifier.identify(MetricsSnapshot(unfinished_count=5))

    report = identifier.identify(MetricsSnapshot(unfinished_count=6))

    assert [p.description for p in report.new] == ["6 unfinished items"]
    assert [p.description for p in identifier.store.list_all()] == ["5 unfinished items", "6 unfinished items"]


def test_failed_write_still_reports_new_patterns(clock, recorder):
    identifier = PatternIdentifier(ReadOnlyPatternStore(), clock, structured_logger=recorder)

    report = identifier.identify(MetricsSnapshot(unfinished_count=7))

    assert [p.type for p in report.new] == [PatternType.UNFINISHED_BACKLOG]


# --- File store ---

def test_file_store_appends_and_reloads(tmp_path, clock):
    identifier = PatternIdentifier(FilePatternStore(str(tmp_path)), clock, window_days=7)
    identifier.identify(busy_week())

    saved = json.loads((tmp_path / "patterns.json").read_text(encoding="utf-8"))
    assert [item["type"] for item in saved] == [
        "high_frequency_topic", "low_energy", "repeated_error", "repeated_error", "unfinished_backlog",
    ]

    reopened = PatternIdentifier(FilePatternStore(str(tmp_path)), clock, window_days=7)
    assert reopened.identify(busy_week()).new == []


def test_corrupt_pattern_file_reads_empty(tmp_path):
    (tmp_path / "patterns.json").write_text("{broken", encoding="utf-8")

    assert FilePatternStore(str(tmp_path)).list_all() == []


def test_malformed_entries_are_skipped(tmp_path):
    (tmp_path / "patterns.json").write_text(json.dumps([
        {"type": "mystery", "description": "?", "identified_at": NOW.isoformat()},
        {"type": "low_energy", "description": "tired", "identified_at": "2024-03-01T10:00:00"},
    ]), encoding="utf-8")

    patterns = FilePatternStore(str(tmp_path)).list_all()

    assert [p.description for p in patterns] == ["tired"]
    assert patterns[0].identified_at.tzinfo is not None
