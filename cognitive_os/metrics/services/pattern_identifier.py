import logging
from dataclasses import dataclass, field
from typing import List, Optional

from cognitive_os.config.settings import settings
from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot
from cognitive_os.metrics.domain.pattern import Pattern, PatternType
from cognitive_os.metrics.interfaces.pattern_store import PatternStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatternReport:
    existing: List[Pattern] = field(default_factory=list)
    new: List[Pattern] = field(default_factory=list)


class PatternIdentifier:
    """
    Spots recurring behavior in a metrics snapshot and keeps a running
    list of it. Unlike interventions, patterns change no state; they are
    only remembered.
    """

    def __init__(
            self,
            store: PatternStore,
            time_source: TimeSource,
            structured_logger: Optional[StructuredGovernanceLogger] = None,
            window_days: Optional[int] = None
    ):
        self.store = store
        self.time_source = time_source
        self.structured_logger = structured_logger or StructuredGovernanceLogger()
        self.window_days = window_days if window_days is not None else settings.ANALYSIS_DAYS

    def detect(self, snapshot: MetricsSnapshot) -> List[Pattern]:
        now = self.time_source.now()
        patterns: List[Pattern] = []

        if snapshot.top_topics and snapshot.top_topics[0].count >= settings.PATTERN_TOPIC_THRESHOLD:
            top = snapshot.top_topics[0]
            patterns.append(Pattern(
                type=PatternType.HIGH_FREQUENCY_TOPIC,
                description=f'Topic "{top.topic}" appeared {top.count} times in {self.window_days} days',
                identified_at=now,
                data={"topic": top.topic, "count": top.count},
            ))

        energy = snapshot.energy_distribution
        low, high = energy.get("low", 0), energy.get("high", 0)
        if low > high and low >= settings.PATTERN_LOW_ENERGY_DAYS:
            patterns.append(Pattern(
                type=PatternType.LOW_ENERGY,
                description="Energy has mostly been low recently; the pace needs adjusting",
                identified_at=now,
                data=dict(energy),
            ))

        for error in snapshot.repeated_errors:
            patterns.append(Pattern(
                type=PatternType.REPEATED_ERROR,
                description=f'Error "{error.type}" seen {error.occurrences} times',
                identified_at=now,
                data={
                    "type": error.type,
                    "category": error.category,
                    "occurrences": error.occurrences,
                    "status": error.status,
                },
            ))

        if snapshot.unfinished_count >= settings.PATTERN_UNFINISHED_THRESHOLD:
            patterns.append(Pattern(
                type=PatternType.UNFINISHED_BACKLOG,
                description=f"{snapshot.unfinished_count} unfinished items",
                identified_at=now,
                data={"count": snapshot.unfinished_count},
            ))

        return patterns

    def identify(self, snapshot: MetricsSnapshot) -> PatternReport:
        """
        Detect patterns and store the ones not already known by
        (type, description). A failed write is logged; the new patterns
        are still reported.
        """
        existing = self.store.list_all()
        known = {p.key for p in existing}

        new = []
        for pattern in self.detect(snapshot):
            if pattern.key not in known:
                known.add(pattern.key)
                new.append(pattern)

        if new:
            try:
                self.store.append(new)
            except OSError as e:
                logger.error("Failed to store %d new patterns: %s", len(new), e)
            for pattern in new:
                self.structured_logger.emit(
                    "pattern_identified",
                    type=pattern.type.value,
                    description=pattern.description,
                )

        return PatternReport(existing=existing, new=new)
