import logging
from collections import Counter
from datetime import timedelta
from typing import List, Optional, Sequence

from cognitive_os.config.settings import settings
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.metrics.domain.metrics_snapshot import (
    MetricsSnapshot,
    MistakeTypeCount,
    RepeatedError,
    TopicCount,
)
from cognitive_os.records.domain.daily_record import DailyRecord
from cognitive_os.records.domain.energy_state import EnergyState
from cognitive_os.records.domain.mistake_registry_entry import MistakeRegistryEntry
from cognitive_os.records.domain.unresolved_registry_entry import UnresolvedRegistryEntry
from cognitive_os.records.interfaces.record_source import RecordSource

logger = logging.getLogger(__name__)

TOP_TOPICS_LIMIT = 5
REPEATED_THRESHOLD = 2


class MetricsAggregator:
    """
    Builds a MetricsSnapshot from the trailing window of daily records and
    the two registries. Performs no mutation and never raises: a failing
    record source degrades to an empty window.
    """

    def __init__(self, source: RecordSource, time_source: TimeSource, window_days: Optional[int] = None):
        self.source = source
        self.time_source = time_source
        self.window_days = window_days if window_days is not None else settings.ANALYSIS_DAYS

    def aggregate(self) -> MetricsSnapshot:
        cutoff = self.time_source.now() - timedelta(days=self.window_days)

        records = self._safe_load(lambda: self.source.list_records(cutoff), "records")
        mistakes = self._safe_load(self.source.list_mistakes, "mistake registry")
        unresolved = self._safe_load(self.source.list_unresolved, "unresolved registry")

        return build_snapshot(records, mistakes, unresolved)

    def _safe_load(self, loader, label: str) -> list:
        try:
            return list(loader())
        except Exception as e:
            logger.error("Failed to load %s, treating as empty: %s", label, e)
            return []


def build_snapshot(
        records: Sequence[DailyRecord],
        mistakes: Sequence[MistakeRegistryEntry],
        unresolved: Sequence[UnresolvedRegistryEntry],
) -> MetricsSnapshot:
    """
    Pure aggregation over already-selected window records.
    """
    window = sorted(records, key=lambda r: r.date)

    energy = {state.value: 0 for state in EnergyState}
    total_decisions = 0
    total_mistakes = 0
    total_insights = 0
    scattered_streak = 0

    for record in window:
        total_decisions += len(record.decisions)
        total_mistakes += len(record.mistakes)
        total_insights += len(record.insights)
        energy[record.energy_state.value] += 1

        # Only a streak that reaches the most recent record counts.
        if record.energy_state == EnergyState.LOW:
            scattered_streak += 1
        else:
            scattered_streak = 0

    return MetricsSnapshot(
        days_analyzed=len(window),
        total_decisions=total_decisions,
        total_mistakes=total_mistakes,
        total_insights=total_insights,
        energy_distribution=energy,
        top_topics=tuple(_top_topics(window)),
        repeated_errors=tuple(_repeated_errors(mistakes)),
        repeated_mistake_types=tuple(_repeated_mistake_types(window)),
        scattered_streak=scattered_streak,
        unfinished_count=sum(1 for entry in unresolved if entry.is_open),
    )


def _top_topics(window: Sequence[DailyRecord]) -> List[TopicCount]:
    # Counter.most_common keeps insertion order for equal counts.
    counts = Counter(r.main_topic for r in window if r.main_topic)
    return [TopicCount(topic, count) for topic, count in counts.most_common(TOP_TOPICS_LIMIT)]


def _repeated_errors(mistakes: Sequence[MistakeRegistryEntry]) -> List[RepeatedError]:
    repeated = [
        m for m in mistakes
        if m.occurrences >= REPEATED_THRESHOLD and not m.is_resolved
    ]
    repeated.sort(key=lambda m: m.occurrences, reverse=True)
    return [
        RepeatedError(type=m.type, category=m.category, occurrences=m.occurrences, status=m.status.value)
        for m in repeated
    ]


def _repeated_mistake_types(window: Sequence[DailyRecord]) -> List[MistakeTypeCount]:
    counts = Counter(note.type for record in window for note in record.mistakes)
    return [
        MistakeTypeCount(mistake_type, count)
        for mistake_type, count in counts.most_common()
        if count >= REPEATED_THRESHOLD
    ]
