import pytest
from datetime import datetime, timedelta, timezone

from cognitive_os.core.time.frozen_time_source import FrozenTimeSource
from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.intervention_action import InterventionAction
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.services.action_executor import StandardActionExecutor
from cognitive_os.governance.services.governance_service import FORCED_FOCUS_REASON, GovernanceService
from cognitive_os.governance.services.rule_evaluator import StandardRuleEvaluator
from cognitive_os.governance.services.unlock_evaluator import UnlockEvaluator
from cognitive_os.governance.store.governance_state_store import GovernanceStateStore
from cognitive_os.governance.store.in_memory_intervention_log import InMemoryInterventionLog
from cognitive_os.governance.store.in_memory_state_backend import InMemoryGovernanceStateBackend
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot
from cognitive_os.records.store.in_memory_record_store import InMemoryRecordStore


START = datetime(2024, 3, 1, 21, 0, tzinfo=timezone.utc)


# --- Fixtures ---

@pytest.fixture
def clock():
    return FrozenTimeSource(START)


@pytest.fixture
def records(clock):
    return InMemoryRecordStore(clock)


@pytest.fixture
def log():
    return InMemoryInterventionLog()


@pytest.fixture
def service(clock, records, log):
    store = GovernanceStateStore(InMemoryGovernanceStateBackend(), clock)
    return GovernanceService(
        state_store=store,
        rule_evaluator=StandardRuleEvaluator(),
        action_executor=StandardActionExecutor(store, log, clock),
        intervention_log=log,
        record_source=records,
        time_source=clock,
    )


# --- Unlock evaluator ---

@pytest.mark.parametrize("locked", [True, False])
@pytest.mark.parametrize("unresolved_count", range(0, 8))
def test_can_unlock_truth_table(locked, unresolved_count):
    state = GovernanceState.defaults()
    if locked:
        state = state.merged({"expansion_lock": True, "active_constraint": "too much open"})

    check = UnlockEvaluator().can_unlock(state, unresolved_count)

    assert check.can_unlock == (locked and unresolved_count < 3)
    if not check.can_unlock:
        assert check.reason == state.active_constraint


def test_unlock_check_is_advisory(service, records):
    service.lock_expansion("too much open")

    check = service.check_unlock_condition()

    assert check.can_unlock is True
    assert service.get_state().expansion_lock is True


def test_unlock_check_counts_open_registry_items(service, records):
    service.lock_expansion("too much open")
    for topic in ("a", "b", "c", "d"):
        records.add_unfinished(topic)

    assert service.check_unlock_condition().can_unlock is False

    records.resolve_unresolved("a")
    records.resolve_unresolved("b")
    assert service.check_unlock_condition().can_unlock is True


# --- Expansion gate ---

def test_can_expand_when_unlocked_and_below_top_level(service):
    check = service.can_expand()

    assert check.allowed is True
    assert check.reason is None
    assert check.intervention_level == 1


def test_cannot_expand_while_locked(service):
    service.lock_expansion("finish the parser first")

    check = service.can_expand()

    assert check.allowed is False
    assert check.reason == "finish the parser first"


def test_top_level_forces_focus_even_without_lock(service):
    service.state_store.set_level(3)

    check = service.can_expand()

    assert check.allowed is False
    assert check.reason == FORCED_FOCUS_REASON
    assert check.intervention_level == 3


# --- Control loop ---

def test_check_intervention_feeds_days_at_top_level(service, clock):
    service.state_store.set_level(3)

    assert service.check_intervention(MetricsSnapshot.empty()) == []

    clock.advance_days(3)
    events = service.check_intervention(MetricsSnapshot.empty())

    assert [e.type for e in events] == ["high_level_duration"]


def test_execute_intervention_returns_executed_and_skipped(service):
    events = [
        InterventionEvent("scattered_streak", 1, "slow down", InterventionAction.WARN_SCATTERED),
        InterventionEvent("high_level_duration", 1, "step down", InterventionAction.DEGRADE_LEVEL),
    ]

    outcome = service.execute_intervention(events)

    assert [e.type for e in outcome.executed] == ["scattered_streak"]
    assert [e.type for e in outcome.skipped_events] == ["high_level_duration"]


# --- State passthrough ---

def test_goal_and_focus_mode_are_persisted(service):
    service.set_current_goal("finish chapter 3")
    service.set_focus_mode("deep")

    state = service.get_state()
    assert state.current_goal == "finish chapter 3"
    assert state.focus_mode.value == "deep"


def test_reset_clears_lock(service):
    service.lock_expansion("locked")
    service.unlock_expansion()
    service.lock_expansion("locked again")

    state = service.reset()

    assert state.expansion_lock is False
    assert service.can_expand().allowed is True


# --- History ---

def test_intervention_history_is_limited_to_days(service, clock):
    warn = InterventionEvent("scattered_streak", 1, "slow down", InterventionAction.WARN_SCATTERED)
    service.execute_intervention([warn])
    clock.advance_days(10)
    service.execute_intervention([warn])

    assert len(service.get_intervention_history(days=7)) == 1
    assert len(service.get_intervention_history(days=30)) == 2


def test_state_history_is_limited_to_days(service, clock):
    service.set_current_goal("first")
    clock.advance(timedelta(days=8))
    service.set_current_goal("second")

    history = service.get_state_history(days=7)

    assert [h.state.current_goal for h in history] == ["second"]
