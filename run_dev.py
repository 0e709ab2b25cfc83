import argparse

from cognitive_os.config.settings import settings
from cognitive_os.core.logging.structured_logger import configure_logging
from cognitive_os.runtime.governance_runtime import build_governance_runtime


def main():
    parser = argparse.ArgumentParser(description="Run one governance cycle against DATA_DIR")
    parser.add_argument("--run-id", default=None, help="Idempotency key; a repeated id is not executed twice")
    parser.add_argument("--data-dir", default=None)
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    print("Initializing DEV environment...")

    runtime = build_governance_runtime(data_dir=args.data_dir)
    result = runtime.cycle.run(run_id=args.run_id)

    snapshot = result.snapshot
    print(f"Run {result.run_id}: {snapshot.days_analyzed} days analyzed, "
          f"{snapshot.unfinished_count} unfinished, scattered streak {snapshot.scattered_streak}")

    if result.replayed:
        print("Run already executed, nothing applied.")
    elif not result.executed:
        print("Interventions disabled, evaluation only.")

    for event in result.events:
        print(f"  [{event.type}] level {event.level}: {event.message}")
    for skipped in result.outcome.skipped:
        print(f"  skipped {skipped.event.type}: {skipped.reason}")

    state = runtime.service.get_state()
    print(f"State: level={state.intervention_level} focus={state.focus_mode.value} "
          f"locked={state.expansion_lock}")

    check = runtime.service.check_unlock_condition()
    if state.expansion_lock:
        print(f"Unlock possible: {check.can_unlock} ({check.reason})")

    for pattern in runtime.patterns.identify(snapshot).new:
        print(f"  new pattern [{pattern.type.value}]: {pattern.description}")

    for entry in runtime.strategies.errors_needing_strategy(runtime.records.list_mistakes()):
        print(f"  needs counter-strategy: {entry.type} ({entry.occurrences}x)")

    print("Dev run complete.")


if __name__ == "__main__":
    main()
