"""
SANITY RUN: two synthetic weeks through the governance loop.

Days 1-7   same topic, low energy, unfinished threads piling up
           -> scattered warning, expansion locked, level 3
Days 8-12  threads resolved, energy recovers
           -> unlock becomes possible, level steps down after 3 days at 3

Uses a throwaway data directory and a frozen clock; nothing touches DATA_DIR.
"""

import tempfile
from datetime import datetime, timezone

from cognitive_os.core.logging.structured_logger import configure_logging
from cognitive_os.core.time.frozen_time_source import FrozenTimeSource
from cognitive_os.runtime.governance_runtime import build_governance_runtime


def main():
    configure_logging("WARNING")
    clock = FrozenTimeSource(datetime(2024, 3, 1, 21, 0, tzinfo=timezone.utc))

    with tempfile.TemporaryDirectory() as data_dir:
        runtime = build_governance_runtime(data_dir=data_dir, database_url="", time_source=clock)
        records = runtime.records

        for day in range(1, 13):
            if day <= 7:
                records.set_main_topic("side-project")
                records.set_energy_state("low")
                records.add_unfinished(f"thread-{day}")
                if day % 2:
                    records.add_mistake("rebuilt the framework again", "overengineering")
            else:
                records.set_main_topic("main-goal")
                records.set_energy_state("high")
                for thread in (2 * (day - 8) + 1, 2 * (day - 8) + 2):
                    if thread <= 7:
                        records.resolve_unresolved(f"thread-{thread}")

            result = runtime.cycle.run(run_id=f"day-{day}")
            state = runtime.service.get_state()
            fired = ", ".join(e.type for e in result.outcome.executed) or "-"
            print(f"Day {day:2d}: level={state.intervention_level} locked={state.expansion_lock} fired={fired}")
            for pattern in runtime.patterns.identify(result.snapshot).new:
                print(f"        pattern: {pattern.description}")

            if state.expansion_lock and runtime.service.check_unlock_condition().can_unlock:
                runtime.service.unlock_expansion()
                print("        unlocked")

            clock.advance_days(1)

        replay = runtime.cycle.run(run_id="day-12")
        print(f"Replay of day-12 executed again: {not replay.replayed}")

        for entry in runtime.strategies.errors_needing_strategy(records.list_mistakes()):
            runtime.strategies.add(entry.type, counter_strategy=["Ship the smallest version first"])
        print(f"Counter-strategies: {[s.error for s in runtime.strategies.list()]}")


if __name__ == "__main__":
    main()
