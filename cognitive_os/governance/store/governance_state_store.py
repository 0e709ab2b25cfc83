import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from cognitive_os.config.settings import settings
from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.governance.domain.exceptions import (
    ConcurrentStateModification,
    GovernanceError,
    InvalidLevel,
    InvalidStateDelta,
    StorageUnavailable,
)
from cognitive_os.governance.domain.focus_mode import FocusMode
from cognitive_os.governance.domain.governance_state import (
    MAX_LEVEL,
    MIN_LEVEL,
    MUTABLE_FIELDS,
    GovernanceState,
)
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.interfaces.governance_state_backend import GovernanceStateBackend

logger = logging.getLogger(__name__)


def validate_level(level: Any) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidLevel(f"Intervention level must be an integer, got {level!r}")
    if level < MIN_LEVEL or level > MAX_LEVEL:
        raise InvalidLevel(f"Intervention level must be between {MIN_LEVEL} and {MAX_LEVEL}, got {level}")
    return level


class GovernanceStateStore:
    """
    Handle on the single governance state.

    Every mutation is a read-modify-write against the backend:
    load (state, revision) -> merge -> validate -> compare-and-swap save ->
    append history -> prune history. A lost compare-and-swap is retried
    from a fresh read up to `max_attempts` times.

    Reads never raise: missing or unreadable storage yields defaults.
    """

    def __init__(
            self,
            backend: GovernanceStateBackend,
            time_source: TimeSource,
            structured_logger: Optional[StructuredGovernanceLogger] = None,
            retention_days: Optional[int] = None,
            max_attempts: Optional[int] = None
    ):
        self.backend = backend
        self.time_source = time_source
        self.structured_logger = structured_logger or StructuredGovernanceLogger()
        self.retention = timedelta(days=retention_days if retention_days is not None else settings.HISTORY_RETENTION_DAYS)
        self.max_attempts = max_attempts if max_attempts is not None else settings.STATE_WRITE_ATTEMPTS

    # --- reads ---

    def _read(self) -> Tuple[GovernanceState, Optional[int]]:
        try:
            stored = self.backend.load()
        except StorageUnavailable as e:
            self.structured_logger.warn("state_storage_unavailable", error=str(e), revision=e.revision)
            return GovernanceState.defaults(created_at=self.time_source.now()), e.revision
        if stored is None:
            return GovernanceState.defaults(created_at=self.time_source.now()), None
        return stored.state, stored.revision

    def get(self) -> GovernanceState:
        state, _ = self._read()
        return state

    def history(self) -> List[StateHistoryEntry]:
        try:
            return self.backend.load_history()
        except StorageUnavailable as e:
            logger.warning("State history unavailable: %s", e)
            return []

    def recent_history(self, days: int = 7) -> List[StateHistoryEntry]:
        cutoff = self.time_source.now() - timedelta(days=days)
        return [h for h in self.history() if h.timestamp > cutoff]

    # --- writes ---

    def update(self, delta: Dict[str, Any]) -> GovernanceState:
        normalized = self._normalize(delta)
        state, _ = self._mutate(lambda current: normalized)
        return state

    def _mutate(
            self,
            compute_delta: Callable[[GovernanceState], Optional[Dict[str, Any]]]
    ) -> Tuple[GovernanceState, bool]:
        """
        Run one compare-and-swap read-modify-write. `compute_delta` sees the
        state read in the same attempt; returning None leaves storage alone.
        Returns the resulting state and whether anything was written.
        """
        for attempt in range(1, self.max_attempts + 1):
            current, revision = self._read()
            delta = compute_delta(current)
            if delta is None:
                return current, False
            now = self.time_source.now()
            merged = self._apply(current, self._normalize(delta), now)
            try:
                self.backend.save(merged, revision)
            except ConcurrentStateModification:
                logger.warning("State changed underneath update (attempt %d/%d)", attempt, self.max_attempts)
                continue

            self._record_history(merged, now)
            self._log_transition(current, merged)
            return merged, True

        raise ConcurrentStateModification(
            f"Gave up updating governance state after {self.max_attempts} attempts"
        )

    def _normalize(self, delta: Dict[str, Any]) -> Dict[str, Any]:
        unknown = set(delta) - MUTABLE_FIELDS
        if unknown:
            raise InvalidStateDelta(f"Unknown state fields: {sorted(unknown)}")

        normalized = dict(delta)
        if "focus_mode" in normalized:
            normalized["focus_mode"] = FocusMode.parse(normalized["focus_mode"])
        if "intervention_level" in normalized:
            validate_level(normalized["intervention_level"])
        if "expansion_lock" in normalized:
            normalized["expansion_lock"] = bool(normalized["expansion_lock"])
        if "streak_days" in normalized:
            streak = normalized["streak_days"]
            if isinstance(streak, bool) or not isinstance(streak, int) or streak < 0:
                raise InvalidStateDelta(f"streak_days must be a non-negative integer, got {streak!r}")
        return normalized

    def _apply(self, current: GovernanceState, delta: Dict[str, Any], now: datetime) -> GovernanceState:
        merged = current.merged(delta)

        if merged.expansion_lock != bool(merged.active_constraint):
            raise InvalidStateDelta(
                "expansion_lock and active_constraint must be set together; "
                "use lock_expansion() / unlock_expansion()"
            )

        stamps: Dict[str, Any] = {"last_update": now}
        if merged.created_at is None:
            stamps["created_at"] = now

        # Accumulator for days spent at the top level.
        if "high_level_since" not in delta:
            if merged.intervention_level >= MAX_LEVEL:
                if current.intervention_level < MAX_LEVEL or current.high_level_since is None:
                    stamps["high_level_since"] = now
            else:
                stamps["high_level_since"] = None

        return merged.merged(stamps)

    def _record_history(self, state: GovernanceState, now: datetime) -> None:
        try:
            self.backend.append_history(StateHistoryEntry(timestamp=now, state=state), now - self.retention)
        except (GovernanceError, OSError) as e:
            # The state itself is already saved; history is best effort.
            logger.error("Failed to append state history: %s", e)

    def _log_transition(self, before: GovernanceState, after: GovernanceState) -> None:
        if before.focus_mode != after.focus_mode:
            self.structured_logger.emit(
                "focus_mode_changed",
                before=before.focus_mode.value,
                after=after.focus_mode.value,
            )
        if before.intervention_level != after.intervention_level:
            self.structured_logger.emit(
                "intervention_level_changed",
                before=before.intervention_level,
                after=after.intervention_level,
            )
        if before.expansion_lock != after.expansion_lock:
            self.structured_logger.emit(
                "expansion_lock_changed",
                locked=after.expansion_lock,
                constraint=after.active_constraint,
            )

    # --- named mutators ---

    def set_level(self, level: int) -> GovernanceState:
        return self.update({"intervention_level": validate_level(level)})

    def set_focus_mode(self, mode) -> GovernanceState:
        return self.update({"focus_mode": FocusMode.parse(mode)})

    def lock_expansion(self, reason: str, level: Optional[int] = None) -> GovernanceState:
        """
        Lock expansion with `reason`. A given `level` is written in the same
        compare-and-swap, so the lock and the level land together or not at all.
        """
        if not reason or not str(reason).strip():
            raise InvalidStateDelta("A lock requires a non-empty reason")
        delta: Dict[str, Any] = {"expansion_lock": True, "active_constraint": str(reason)}
        if level is not None:
            delta["intervention_level"] = validate_level(level)
        return self.update(delta)

    def unlock_expansion(self) -> GovernanceState:
        return self.update({"expansion_lock": False, "active_constraint": None})

    def set_current_goal(self, goal: Optional[str]) -> GovernanceState:
        return self.update({"current_goal": goal})

    def increment_streak(self) -> GovernanceState:
        state, _ = self._mutate(lambda current: {"streak_days": current.streak_days + 1})
        return state

    def degrade_level(self) -> Tuple[GovernanceState, bool]:
        """
        Lower the level by one. At the floor nothing is written and the
        second element of the result is False.
        """
        def _step_down(current: GovernanceState) -> Optional[Dict[str, Any]]:
            if current.intervention_level <= MIN_LEVEL:
                return None
            return {"intervention_level": current.intervention_level - 1}

        return self._mutate(_step_down)

    def reset(self) -> GovernanceState:
        """
        Restore defaults with a fresh created_at. Destructive.
        """
        for attempt in range(1, self.max_attempts + 1):
            current, revision = self._read()
            now = self.time_source.now()
            fresh = GovernanceState.defaults(created_at=now).merged({"last_update": now})
            try:
                self.backend.save(fresh, revision)
            except ConcurrentStateModification:
                continue
            self._record_history(fresh, now)
            self.structured_logger.emit("state_reset", previous_level=current.intervention_level)
            return fresh

        raise ConcurrentStateModification(
            f"Gave up resetting governance state after {self.max_attempts} attempts"
        )
