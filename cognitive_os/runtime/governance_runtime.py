import logging
import os
from dataclasses import dataclass
from typing import Optional

from cognitive_os.config.settings import settings
from cognitive_os.core.logging.structured_logger import StructuredGovernanceLogger
from cognitive_os.core.time.system_time_source import SystemTimeSource
from cognitive_os.core.time.time_source import TimeSource
from cognitive_os.governance.interfaces.governance_state_backend import GovernanceStateBackend
from cognitive_os.governance.interfaces.intervention_log import InterventionLog
from cognitive_os.governance.services.action_executor import StandardActionExecutor
from cognitive_os.governance.services.counter_strategy_service import CounterStrategyService
from cognitive_os.governance.services.governance_cycle import GovernanceCycle
from cognitive_os.governance.services.governance_service import GovernanceService
from cognitive_os.governance.services.rule_evaluator import StandardRuleEvaluator
from cognitive_os.governance.store.file_counter_strategy_store import FileCounterStrategyStore
from cognitive_os.governance.store.file_intervention_log import FileInterventionLog
from cognitive_os.governance.store.file_state_backend import FileGovernanceStateBackend
from cognitive_os.governance.store.governance_state_store import GovernanceStateStore
from cognitive_os.governance.store.postgres_intervention_log import PostgresInterventionLog
from cognitive_os.governance.store.postgres_state_backend import PostgresGovernanceStateBackend
from cognitive_os.metrics.services.metrics_aggregator import MetricsAggregator
from cognitive_os.metrics.services.pattern_identifier import PatternIdentifier
from cognitive_os.metrics.store.file_pattern_store import FilePatternStore
from cognitive_os.records.store.file_record_store import FileRecordStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GovernanceRuntime:
    records: FileRecordStore
    state_store: GovernanceStateStore
    service: GovernanceService
    cycle: GovernanceCycle
    strategies: CounterStrategyService
    patterns: PatternIdentifier


def build_governance_runtime(
        data_dir: Optional[str] = None,
        database_url: Optional[str] = None,
        time_source: Optional[TimeSource] = None
) -> GovernanceRuntime:
    """
    Wire the control loop against DATA_DIR. When a database URL is
    configured, governance state and the intervention log move to SQL;
    daily records, registries and patterns always stay in DATA_DIR.
    """
    data_dir = data_dir or settings.DATA_DIR
    database_url = database_url if database_url is not None else settings.DATABASE_URL
    time_source = time_source or SystemTimeSource()
    structured_logger = StructuredGovernanceLogger()

    governance_dir = os.path.join(data_dir, "governance")

    backend: GovernanceStateBackend
    intervention_log: InterventionLog
    if database_url:
        logger.info("Using SQL governance storage")
        backend = PostgresGovernanceStateBackend.from_dsn(database_url)
        intervention_log = PostgresInterventionLog.from_dsn(database_url)
    else:
        backend = FileGovernanceStateBackend(governance_dir)
        intervention_log = FileInterventionLog(os.path.join(governance_dir, "interventions.jsonl"))

    records = FileRecordStore(data_dir, time_source)
    state_store = GovernanceStateStore(backend, time_source, structured_logger=structured_logger)
    executor = StandardActionExecutor(state_store, intervention_log, time_source, structured_logger)
    service = GovernanceService(
        state_store=state_store,
        rule_evaluator=StandardRuleEvaluator(),
        action_executor=executor,
        intervention_log=intervention_log,
        record_source=records,
        time_source=time_source,
    )
    cycle = GovernanceCycle(
        aggregator=MetricsAggregator(records, time_source),
        service=service,
        intervention_log=intervention_log,
        structured_logger=structured_logger,
    )
    strategies = CounterStrategyService(
        FileCounterStrategyStore(governance_dir),
        time_source,
        structured_logger,
    )
    patterns = PatternIdentifier(FilePatternStore(data_dir), time_source, structured_logger)
    return GovernanceRuntime(
        records=records,
        state_store=state_store,
        service=service,
        cycle=cycle,
        strategies=strategies,
        patterns=patterns,
    )
