import json
import os

import pytest
from datetime import datetime, timedelta, timezone

from cognitive_os.governance.domain.counter_strategy import CounterStrategy
from cognitive_os.governance.domain.exceptions import ConcurrentStateModification, StorageUnavailable
from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.intervention_action import InterventionAction
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry, InterventionOutcome
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.store.file_counter_strategy_store import FileCounterStrategyStore
from cognitive_os.governance.store.file_intervention_log import FileInterventionLog
from cognitive_os.governance.store.file_state_backend import FileGovernanceStateBackend


NOW = datetime(2024, 3, 5, 20, 0, tzinfo=timezone.utc)


def entry(minutes_ago: int, run_id=None, action=InterventionAction.WARN_SCATTERED) -> InterventionLogEntry:
    return InterventionLogEntry(
        timestamp=NOW - timedelta(minutes=minutes_ago),
        event=InterventionEvent("scattered_streak", 1, "slow down", action, {"streak": 3}),
        outcome=InterventionOutcome.EXECUTED,
        run_id=run_id,
    )


# --- State backend ---

def test_state_round_trip_with_revisions(tmp_path):
    backend = FileGovernanceStateBackend(str(tmp_path))
    state = GovernanceState.defaults(created_at=NOW).merged({"intervention_level": 2, "current_goal": "g"})

    assert backend.load() is None
    assert backend.save(state, None) == 1
    assert backend.save(state, 1) == 2

    stored = backend.load()
    assert stored.revision == 2
    assert stored.state == state
    assert os.path.exists(tmp_path / "state.lock")


def test_state_backend_rejects_stale_revision(tmp_path):
    backend = FileGovernanceStateBackend(str(tmp_path))
    state = GovernanceState.defaults(created_at=NOW)
    backend.save(state, None)

    with pytest.raises(ConcurrentStateModification):
        backend.save(state, None)
    with pytest.raises(ConcurrentStateModification):
        backend.save(state, 5)


def test_history_survives_reopen_and_is_pruned(tmp_path):
    backend = FileGovernanceStateBackend(str(tmp_path))
    state = GovernanceState.defaults(created_at=NOW)

    backend.append_history(StateHistoryEntry(NOW - timedelta(days=40), state), NOW - timedelta(days=60))
    backend.append_history(StateHistoryEntry(NOW, state), NOW - timedelta(days=30))

    reopened = FileGovernanceStateBackend(str(tmp_path))
    assert [h.timestamp for h in reopened.load_history()] == [NOW]


def test_unreadable_history_starts_fresh(tmp_path):
    (tmp_path / "state-history.json").write_text("[{broken", encoding="utf-8")
    backend = FileGovernanceStateBackend(str(tmp_path))

    assert backend.load_history() == []
    backend.append_history(StateHistoryEntry(NOW, GovernanceState.defaults()), NOW - timedelta(days=30))
    assert len(backend.load_history()) == 1


# --- Intervention log ---

def test_log_appends_json_lines(tmp_path):
    path = tmp_path / "governance" / "interventions.jsonl"
    log = FileInterventionLog(str(path))

    log.append(entry(10, run_id="r1"))
    log.append(entry(5, run_id="r1"))

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["type"] == "scattered_streak"
    assert first["action"] == "warn_scattered"
    assert first["outcome"] == "executed"
    assert first["run_id"] == "r1"


def test_log_filters_by_time_and_run(tmp_path):
    log = FileInterventionLog(str(tmp_path / "log.jsonl"))
    log.append(entry(60 * 24 * 10, run_id="old"))
    log.append(entry(5, run_id="new"))

    recent = log.list_since(NOW - timedelta(days=7))

    assert [e.run_id for e in recent] == ["new"]
    assert recent[0].event.data == {"streak": 3}
    assert log.has_run("old")
    assert not log.has_run("missing")


def test_log_skips_malformed_lines(tmp_path):
    path = tmp_path / "log.jsonl"
    log = FileInterventionLog(str(path))
    log.append(entry(5))
    with open(path, "a", encoding="utf-8") as f:
        f.write("not json\n\n")
    log.append(entry(1))

    assert len(log.list_since(NOW - timedelta(days=1))) == 2


def test_log_keeps_unknown_actions_as_strings(tmp_path):
    log = FileInterventionLog(str(tmp_path / "log.jsonl"))
    log.append(entry(1, action="notify_mentor"))

    restored = log.list_since(NOW - timedelta(days=1))[0]
    assert restored.event.action == "notify_mentor"


def test_missing_log_is_empty(tmp_path):
    log = FileInterventionLog(str(tmp_path / "none.jsonl"))

    assert log.list_since(NOW - timedelta(days=7)) == []
    assert not log.has_run("r")


def test_unreadable_log_raises_storage_unavailable(tmp_path):
    path = tmp_path / "log.jsonl"
    path.mkdir()
    log = FileInterventionLog(str(path))

    with pytest.raises(StorageUnavailable):
        log.has_run("r")
    with pytest.raises(StorageUnavailable):
        log.list_since(NOW - timedelta(days=7))


# --- Counter strategies ---

def test_counter_strategies_are_keyed_by_error(tmp_path):
    store = FileCounterStrategyStore(str(tmp_path))
    store.put(CounterStrategy(error="overengineering", counter_strategy=["ship v0 first"], created_at=NOW))
    store.put(CounterStrategy(error="overengineering", counter_strategy=["time-box design"], created_at=NOW))
    store.put(CounterStrategy(error="procrastination"))

    reopened = FileCounterStrategyStore(str(tmp_path))
    assert sorted(s.error for s in reopened.list_all()) == ["overengineering", "procrastination"]
    assert reopened.get("overengineering").counter_strategy == ["time-box design"]
    assert reopened.get("overengineering").created_at == NOW
    assert reopened.get("scope_creep") is None


def test_corrupt_counter_strategy_file_reads_empty(tmp_path):
    (tmp_path / "counter-strategies.json").write_text("{{", encoding="utf-8")

    assert FileCounterStrategyStore(str(tmp_path)).list_all() == []
