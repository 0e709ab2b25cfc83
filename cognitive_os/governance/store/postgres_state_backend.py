from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cognitive_os.governance.domain.exceptions import (
    ConcurrentStateModification,
    GovernanceError,
    StorageUnavailable,
)
from cognitive_os.governance.domain.governance_state import GovernanceState
from cognitive_os.governance.domain.state_history_entry import StateHistoryEntry
from cognitive_os.governance.domain.stored_state import StoredState
from cognitive_os.governance.interfaces.governance_state_backend import GovernanceStateBackend
from cognitive_os.persistence.payload_codec import decode_payload, encode_payload

STATE_ROW_ID = 1


def utc_key(value: datetime) -> str:
    """Sortable text form of a timestamp; all rows are compared in UTC."""
    return value.astimezone(timezone.utc).isoformat()


class PostgresGovernanceStateBackend(GovernanceStateBackend):
    """
    SQL persistence for the governance state. The single state row carries
    a revision column used for compare-and-swap updates.
    Plain SQL keeps it runnable on SQLite as well as PostgreSQL.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.ensure_schema()

    @classmethod
    def from_dsn(cls, dsn: str) -> "PostgresGovernanceStateBackend":
        engine = create_engine(dsn, pool_pre_ping=True, future=True)
        return cls(engine)

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS governance_state (
                        id INTEGER PRIMARY KEY,
                        revision INTEGER NOT NULL,
                        updated_at TEXT NOT NULL,
                        payload TEXT NOT NULL
                    )
                    """
                )
            )
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS governance_state_history (
                        id TEXT PRIMARY KEY,
                        recorded_at TEXT NOT NULL,
                        payload TEXT NOT NULL
                    )
                    """
                )
            )
            conn.execute(
                text(
                    """
                    CREATE INDEX IF NOT EXISTS ix_governance_state_history_time
                    ON governance_state_history (recorded_at)
                    """
                )
            )

    def load(self) -> Optional[StoredState]:
        try:
            with self.engine.begin() as conn:
                row = conn.execute(
                    text("SELECT revision, payload FROM governance_state WHERE id = :id"),
                    {"id": STATE_ROW_ID},
                ).first()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Governance state table unreadable: {e}")
        if not row:
            return None
        try:
            state = GovernanceState.from_dict(decode_payload(row.payload)).check_invariants()
        except (KeyError, ValueError, TypeError, AttributeError, GovernanceError) as e:
            raise StorageUnavailable(f"Corrupt governance state row: {e}", revision=row.revision)
        return StoredState(state=state, revision=row.revision)

    def save(self, state: GovernanceState, expected_revision: Optional[int]) -> int:
        payload = encode_payload(state.to_dict())
        updated_at = utc_key(datetime.now(timezone.utc))

        try:
            with self.engine.begin() as conn:
                if expected_revision is None:
                    result = conn.execute(
                        text(
                            """
                            INSERT INTO governance_state (id, revision, updated_at, payload)
                            VALUES (:id, 1, :updated_at, :payload)
                            ON CONFLICT (id) DO NOTHING
                            """
                        ),
                        {"id": STATE_ROW_ID, "updated_at": updated_at, "payload": payload},
                    )
                    new_revision = 1
                else:
                    result = conn.execute(
                        text(
                            """
                            UPDATE governance_state
                            SET revision = :new_revision,
                                updated_at = :updated_at,
                                payload = :payload
                            WHERE id = :id AND revision = :expected_revision
                            """
                        ),
                        {
                            "id": STATE_ROW_ID,
                            "new_revision": expected_revision + 1,
                            "expected_revision": expected_revision,
                            "updated_at": updated_at,
                            "payload": payload,
                        },
                    )
                    new_revision = expected_revision + 1
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot write governance state: {e}")

        if result.rowcount != 1:
            raise ConcurrentStateModification(
                f"Governance state changed since revision {expected_revision}"
            )
        return new_revision

    def append_history(self, entry: StateHistoryEntry, retain_after: datetime) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO governance_state_history (id, recorded_at, payload)
                        VALUES (:id, :recorded_at, :payload)
                        """
                    ),
                    {
                        "id": str(uuid4()),
                        "recorded_at": utc_key(entry.timestamp),
                        "payload": encode_payload(entry.to_dict()),
                    },
                )
                conn.execute(
                    text("DELETE FROM governance_state_history WHERE recorded_at <= :cutoff"),
                    {"cutoff": utc_key(retain_after)},
                )
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Cannot append governance state history: {e}")

    def load_history(self) -> List[StateHistoryEntry]:
        try:
            with self.engine.begin() as conn:
                rows = conn.execute(
                    text("SELECT payload FROM governance_state_history ORDER BY recorded_at ASC")
                ).fetchall()
        except SQLAlchemyError as e:
            raise StorageUnavailable(f"Governance state history unreadable: {e}")
        entries = []
        for row in rows:
            try:
                entries.append(StateHistoryEntry.from_dict(decode_payload(row.payload)))
            except (KeyError, ValueError, TypeError, AttributeError, GovernanceError):
                continue
        return entries
