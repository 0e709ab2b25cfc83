from typing import List, Optional

from cognitive_os.config.settings import settings
from cognitive_os.governance.domain.governance_state import MAX_LEVEL, GovernanceState
from cognitive_os.governance.domain.intervention_action import InterventionAction
from cognitive_os.governance.domain.intervention_event import InterventionEvent
from cognitive_os.governance.domain.intervention_rule import InterventionRule
from cognitive_os.governance.interfaces.rule_evaluator import RuleEvaluator
from cognitive_os.metrics.domain.metrics_snapshot import MetricsSnapshot


def _pick(value: Optional[int], default: int) -> int:
    return default if value is None else value


class InterventionRules:
    """
    The fixed rule table. Thresholds come from settings so a deployment can
    tune them; actions and levels are fixed.
    """

    def __init__(
            self,
            expansion_threshold: Optional[int] = None,
            unfinished_threshold: Optional[int] = None,
            error_threshold: Optional[int] = None,
            scattered_threshold: Optional[int] = None,
            high_level_days_threshold: Optional[int] = None
    ):
        expansion = _pick(expansion_threshold, settings.EXPANSION_TOPIC_THRESHOLD)
        unfinished = _pick(unfinished_threshold, settings.UNFINISHED_THRESHOLD)
        errors = _pick(error_threshold, settings.ERROR_RECURRENCE_THRESHOLD)
        scattered = _pick(scattered_threshold, settings.SCATTERED_STREAK_THRESHOLD)
        high_days = _pick(high_level_days_threshold, settings.HIGH_LEVEL_DAYS_THRESHOLD)

        self.expansion_limit = InterventionRule(
            type="expansion_limit",
            threshold=expansion,
            action=InterventionAction.LOCK_EXPANSION,
            level=2,
            message=f"New topics opened on {expansion} days, expansion locked",
        )
        self.unfinished_limit = InterventionRule(
            type="unfinished_limit",
            threshold=unfinished,
            action=InterventionAction.LOCK_EXPANSION,
            level=3,
            message=f"{unfinished} or more unfinished items, no new work allowed",
        )
        self.error_recurrence = InterventionRule(
            type="error_recurrence",
            threshold=errors,
            action=InterventionAction.FORCE_COUNTER_STRATEGY,
            level=2,
            message=f"Same error seen {errors} times, a counter-strategy is required",
        )
        self.scattered_streak = InterventionRule(
            type="scattered_streak",
            threshold=scattered,
            action=InterventionAction.WARN_SCATTERED,
            level=1,
            message=f"Energy low for {scattered} consecutive days, adjust the workload",
        )
        self.high_level_duration = InterventionRule(
            type="high_level_duration",
            threshold=high_days,
            action=InterventionAction.DEGRADE_LEVEL,
            level=1,
            message=f"Severe intervention held for {high_days} days, stepping down",
        )

    def in_order(self) -> List[InterventionRule]:
        return [
            self.expansion_limit,
            self.unfinished_limit,
            self.error_recurrence,
            self.scattered_streak,
            self.high_level_duration,
        ]


class StandardRuleEvaluator(RuleEvaluator):
    """
    Deterministic, side-effect free rule evaluation.
    Every rule is checked independently; events come back in table order.
    """

    def __init__(self, rules: Optional[InterventionRules] = None):
        self.rules = rules or InterventionRules()

    def evaluate(
            self,
            state: GovernanceState,
            snapshot: MetricsSnapshot,
            high_level_days: int = 0
    ) -> List[InterventionEvent]:
        events: List[InterventionEvent] = []

        # 1. Expansion: approximated by the top topic's count in the window
        rule = self.rules.expansion_limit
        if snapshot.top_topic_count >= rule.threshold:
            events.append(self._event(rule, rule.message, {
                "streak": snapshot.top_topic_count,
                "topic": snapshot.top_topics[0].topic,
            }))

        # 2. Unfinished items
        rule = self.rules.unfinished_limit
        if snapshot.unfinished_count >= rule.threshold:
            events.append(self._event(rule, rule.message, {"count": snapshot.unfinished_count}))

        # 3. Recurring errors, one event each, most frequent first
        rule = self.rules.error_recurrence
        recurring = sorted(
            (e for e in snapshot.repeated_errors
             if e.occurrences >= rule.threshold and e.status != "resolved"),
            key=lambda e: e.occurrences,
            reverse=True,
        )
        for error in recurring:
            message = f'Error "{error.type}" seen {error.occurrences} times - {rule.message}'
            events.append(self._event(rule, message, {
                "error": {
                    "type": error.type,
                    "category": error.category,
                    "occurrences": error.occurrences,
                    "status": error.status,
                }
            }))

        # 4. Scattered energy
        rule = self.rules.scattered_streak
        if snapshot.scattered_streak >= rule.threshold:
            events.append(self._event(rule, rule.message, {"streak": snapshot.scattered_streak}))

        # 5. Time spent at the top level
        rule = self.rules.high_level_duration
        if state.intervention_level >= MAX_LEVEL and high_level_days >= rule.threshold:
            events.append(self._event(rule, rule.message, {"days": high_level_days}))

        return events

    def _event(self, rule: InterventionRule, message: str, data: dict) -> InterventionEvent:
        return InterventionEvent(
            type=rule.type,
            level=rule.level,
            message=message,
            action=rule.action,
            data=data,
        )
