from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class TopicCount:
    topic: str
    count: int


@dataclass(frozen=True)
class RepeatedError:
    type: str
    category: str
    occurrences: int
    status: str


@dataclass(frozen=True)
class MistakeTypeCount:
    type: str
    count: int


def _empty_energy() -> Dict[str, int]:
    return {"high": 0, "neutral": 0, "low": 0}


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Immutable result of one aggregation over the rolling window.
    An empty window yields the zero-valued snapshot.
    """
    days_analyzed: int = 0
    total_decisions: int = 0
    total_mistakes: int = 0
    total_insights: int = 0
    energy_distribution: Dict[str, int] = field(default_factory=_empty_energy)
    top_topics: Tuple[TopicCount, ...] = ()
    repeated_errors: Tuple[RepeatedError, ...] = ()
    repeated_mistake_types: Tuple[MistakeTypeCount, ...] = ()
    scattered_streak: int = 0
    unfinished_count: int = 0

    @property
    def top_topic_count(self) -> int:
        return self.top_topics[0].count if self.top_topics else 0

    @classmethod
    def empty(cls) -> "MetricsSnapshot":
        return cls()
