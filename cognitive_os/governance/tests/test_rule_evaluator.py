import pytest
from datetime import datetime, timezone

from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.intervention_action import InterventionAction
from cognitive_os.governance.services.rule_evaluator import InterventionRules, StandardRuleEvaluator
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot, RepeatedError, TopicCount


# --- Helpers ---

def state(level: int = 1) -> GovernanceState:
    return GovernanceState.defaults(created_at=datetime(2024, 1, 1, tzinfo=timezone.utc)).merged(
        {"intervention_level": level}
    )


def error(error_type: str, occurrences: int, status: str = "active") -> RepeatedError:
    return RepeatedError(type=error_type, category="cognitive_bias", occurrences=occurrences, status=status)


@pytest.fixture
def evaluator():
    return StandardRuleEvaluator()


# --- Tests ---

def test_empty_snapshot_fires_nothing(evaluator):
    assert evaluator.evaluate(state(), MetricsSnapshot.empty()) == []


def test_scattered_streak_emits_single_warning(evaluator):
    events = evaluator.evaluate(state(), MetricsSnapshot(days_analyzed=4, scattered_streak=3))

    assert len(events) == 1
    assert events[0].type == "scattered_streak"
    assert events[0].action == InterventionAction.WARN_SCATTERED
    assert events[0].level == 1
    assert events[0].data == {"streak": 3}


def test_scattered_streak_below_threshold_is_quiet(evaluator):
    assert evaluator.evaluate(state(), MetricsSnapshot(scattered_streak=2)) == []


def test_unfinished_limit_locks_at_level_three(evaluator):
    events = evaluator.evaluate(state(), MetricsSnapshot(unfinished_count=6))

    assert [e.type for e in events] == ["unfinished_limit"]
    assert events[0].action == InterventionAction.LOCK_EXPANSION
    assert events[0].level == 3
    assert events[0].data == {"count": 6}


def test_single_recurring_error_emits_one_event(evaluator):
    snapshot = MetricsSnapshot(repeated_errors=(error("overengineering", 3),))

    events = evaluator.evaluate(state(), snapshot)

    assert len(events) == 1
    assert events[0].type == "error_recurrence"
    assert events[0].action == InterventionAction.FORCE_COUNTER_STRATEGY
    assert events[0].level == 2
    assert events[0].data["error"]["type"] == "overengineering"
    assert events[0].data["error"]["occurrences"] == 3
    assert "overengineering" in events[0].message


def test_errors_below_threshold_or_resolved_are_ignored(evaluator):
    snapshot = MetricsSnapshot(repeated_errors=(
        error("procrastination", 2),
        error("perfectionism", 5, status="resolved"),
    ))

    assert evaluator.evaluate(state(), snapshot) == []


def test_one_event_per_error_most_frequent_first(evaluator):
    snapshot = MetricsSnapshot(repeated_errors=(
        error("scope_creep", 3),
        error("overengineering", 6),
        error("procrastination", 4),
    ))

    events = evaluator.evaluate(state(), snapshot)

    assert [e.data["error"]["type"] for e in events] == ["overengineering", "procrastination", "scope_creep"]


def test_expansion_limit_uses_top_topic_count(evaluator):
    snapshot = MetricsSnapshot(top_topics=(TopicCount("side-project", 7), TopicCount("main", 1)))

    events = evaluator.evaluate(state(), snapshot)

    assert [e.type for e in events] == ["expansion_limit"]
    assert events[0].level == 2
    assert events[0].data == {"streak": 7, "topic": "side-project"}


@pytest.mark.parametrize("level, days, fires", [
    (3, 3, True),
    (3, 10, True),
    (3, 2, False),
    (2, 5, False),
    (1, 0, False),
])
def test_high_level_duration_needs_top_level_and_enough_days(evaluator, level, days, fires):
    events = evaluator.evaluate(state(level), MetricsSnapshot.empty(), high_level_days=days)

    assert (events != []) == fires
    if fires:
        assert events[0].type == "high_level_duration"
        assert events[0].action == InterventionAction.DEGRADE_LEVEL
        assert events[0].level == 1


def test_all_rules_fire_in_table_order(evaluator):
    snapshot = MetricsSnapshot(
        top_topics=(TopicCount("x", 7),),
        unfinished_count=5,
        repeated_errors=(error("overengineering", 3),),
        scattered_streak=4,
    )

    events = evaluator.evaluate(state(3), snapshot, high_level_days=3)

    assert [e.type for e in events] == [
        "expansion_limit",
        "unfinished_limit",
        "error_recurrence",
        "scattered_streak",
        "high_level_duration",
    ]


def test_evaluation_is_deterministic(evaluator):
    snapshot = MetricsSnapshot(unfinished_count=9, scattered_streak=5)

    assert evaluator.evaluate(state(2), snapshot) == evaluator.evaluate(state(2), snapshot)


def test_thresholds_can_be_tuned():
    rules = InterventionRules(unfinished_threshold=2, scattered_threshold=0)
    evaluator = StandardRuleEvaluator(rules)

    events = evaluator.evaluate(state(), MetricsSnapshot(unfinished_count=2))

    assert [e.type for e in events] == ["unfinished_limit", "scattered_streak"]
    assert [r.type for r in rules.in_order()][0] == "expansion_limit"
