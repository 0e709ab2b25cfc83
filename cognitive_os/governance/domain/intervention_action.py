from enum import Enum


class InterventionAction(Enum):
    LOCK_EXPANSION = "lock_expansion"
    FORCE_COUNTER_STRATEGY = "force_counter_strategy"
    DEGRADE_LEVEL = "degrade_level"
    WARN_SCATTERED = "warn_scattered"
