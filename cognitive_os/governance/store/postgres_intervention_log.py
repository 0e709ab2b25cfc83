from datetime import datetime
from typing import List
from uuid import uuid4

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cognitive_os.governance.domain.exceptions import StorageUnavailable
from cognitive_os.governance.domain.intervention_log_entry import InterventionLogEntry
from cognitive_os.governance.interfaces.intervention_log import InterventionLog
from cognitive_os.governance.store.postgres_state_backend import utc_key
from cognitive_os.persistence.payload_codec import decode_payload, encode_payload


class PostgresInterventionLog(InterventionLog):
    def __init__(self, engine: Engine):
        self.engine = engine
        self.ensure_schema()

    @classmethod
    def from_dsn(cls, dsn: str) -> "PostgresInterventionLog":
        engine = create_engine(dsn, pool_pre_ping=True, future=True)
        return cls(engine)

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS intervention_log (
                        id TEXT PRIMARY KEY,
                        recorded_at TEXT NOT NULL,
                        run_id TEXT NULL,
                        action TEXT NOT NULL,
                        outcome TEXT NOT NULL,
                        payload TEXT NOT NULL
                    )
                    """
                )
            )
            conn.execute(
                text(
                    """
                    CREATE INDEX IF NOT EXISTS ix_intervention_log_time
                    ON intervention_log (recorded_at)
                    """
                )
            )
            conn.execute(
                text(
                    """
                    CREATE INDEX IF NOT EXISTS ix_intervention_log_run
                    ON intervention_log (run_id)
                    """
                )
            )

    def append(self, entry: InterventionLogEntry) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO intervention_log (id, recorded_at, run_id, action, outcome, payload)
                        VALUES (:id, :recorded_at, :run_id, :action, :outcome, :payload)
                        """
                    ),
                    {
                        "id": str(uuid4()),
                        "recorded_at": utc_key(entry.timestamp),
                        "run_id": entry.run_id,
                        "action": entry.event.action_name,
                        "outcome": entry.outcome.value,
                        "payload": encode_payload(entry.to_dict()),
                    },
                )
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot append to intervention log: {e}")

    def list_since(self, since: datetime) -> List[InterventionLogEntry]:
        try:
            with self.engine.begin() as conn:
                rows = conn.execute(
                    text(
                        """
                        SELECT payload FROM intervention_log
                        WHERE recorded_at > :since
                        ORDER BY recorded_at ASC
                        """
                    ),
                    {"since": utc_key(since)},
                ).fetchall()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Intervention log unreadable: {e}")
        return [InterventionLogEntry.from_dict(decode_payload(row.payload)) for row in rows]

    def has_run(self, run_id: str) -> bool:
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    text("SELECT 1 FROM intervention_log WHERE run_id = :run_id LIMIT 1"),
                    {"run_id": run_id},
                ).first()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Intervention log unreadable: {e}")
        return row is not None
