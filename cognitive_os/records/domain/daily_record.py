from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from cognitive_os.records.domain.energy_state import EnergyState


@dataclass(frozen=True)
class MistakeNote:
    mistake: str
    type: str = "general"


@dataclass(frozen=True)
class DailyRecord:
    """
    One day of behavioral signals.
    `recorded_at` is the explicit timestamp used for rolling-window
    selection; it is refreshed whenever the record is written.
    """
    date: date
    recorded_at: datetime
    main_topic: Optional[str] = None
    decisions: List[Dict[str, Any]] = field(default_factory=list)
    mistakes: List[MistakeNote] = field(default_factory=list)
    energy_state: EnergyState = EnergyState.NEUTRAL
    unfinished_threads: List[str] = field(default_factory=list)
    insights: List[str] = field(default_factory=list)
    self_bias_detected: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "recorded_at": self.recorded_at.isoformat(),
            "main_topic": self.main_topic,
            "decisions": list(self.decisions),
            "mistakes": [{"mistake": m.mistake, "type": m.type} for m in self.mistakes],
            "energy_state": self.energy_state.value,
            "unfinished_threads": list(self.unfinished_threads),
            "insights": list(self.insights),
            "self_bias_detected": list(self.self_bias_detected),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], recorded_at: Optional[datetime] = None) -> "DailyRecord":
        """
        `recorded_at` is the fallback used when the document predates the
        explicit timestamp field (older files only carried `last_updated`).
        """
        stamp = data.get("recorded_at") or data.get("last_updated")
        if stamp:
            recorded = datetime.fromisoformat(stamp.replace("Z", "+00:00"))
            if recorded.tzinfo is None:
                recorded = recorded.replace(tzinfo=timezone.utc)
        elif recorded_at is not None:
            recorded = recorded_at
        else:
            raise ValueError(f"Record for {data.get('date')} has no timestamp")

        insights = []
        for item in data.get("insights") or []:
            insights.append(item if isinstance(item, str) else item.get("insight", ""))

        unfinished = []
        for item in data.get("unfinished_threads") or []:
            unfinished.append(item if isinstance(item, str) else item.get("thread", ""))

        return cls(
            date=date.fromisoformat(data["date"]),
            recorded_at=recorded,
            main_topic=data.get("main_topic"),
            decisions=list(data.get("decisions") or []),
            mistakes=[
                MistakeNote(mistake=m.get("mistake", ""), type=m.get("type") or "general")
                for m in data.get("mistakes") or []
            ],
            energy_state=EnergyState.parse(data.get("energy_state") or EnergyState.NEUTRAL.value),
            unfinished_threads=unfinished,
            insights=insights,
            self_bias_detected=list(data.get("self_bias_detected") or []),
        )
