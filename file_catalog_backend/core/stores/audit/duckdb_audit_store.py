# Copyright Thales 2025
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from pathlib import Path
from typing import List

import duckdb
from pydantic import ValidationError

from file_catalog_backend.core.stores.audit.base_audit_store import BaseAuditStore
from file_catalog_backend.core.stores.duckdb_store import DuckDBTableStore
from file_catalog_backend.features.audit.structures import AuditDeserializationError, AuditSnapshot


class DuckdbAuditStore(BaseAuditStore):
    """
    DuckDB audit log. `seq` records the append order, used to order
    snapshots that share a timestamp.
    """

    def __init__(self, db_path: Path):
        self.table_name = "log"
        self.store = DuckDBTableStore(db_path, prefix="audit_")
        self._ensure_schema()

    def _table(self) -> str:
        return self.store.prefixed(self.table_name)

    def _sequence(self) -> str:
        return self.store.prefixed("log_seq")

    def _ensure_schema(self) -> None:
        with self.store.connect() as conn:
            conn.execute(f"CREATE SEQUENCE IF NOT EXISTS {self._sequence()}")
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._table()} (
                    entry_id  TEXT PRIMARY KEY,
                    seq       BIGINT DEFAULT nextval('{self._sequence()}'),
                    object_id TEXT,
                    timestamp TEXT,
                    doc       TEXT
                )
            """)

    @staticmethod
    def _from_json(s: str) -> AuditSnapshot:
        try:
            return AuditSnapshot.model_validate_json(s)
        except ValidationError as e:
            raise AuditDeserializationError(f"Invalid audit entry JSON: {e}") from e

    def append(self, snapshot: AuditSnapshot) -> None:
        try:
            with self.store.connect() as conn:
                conn.execute(
                    f"INSERT INTO {self._table()} (entry_id, object_id, timestamp, doc) VALUES (?, ?, ?, ?)",
                    [snapshot.entry_id, snapshot.object_id, snapshot.timestamp.isoformat(), snapshot.model_dump_json()],
                )
        except duckdb.ConstraintException as e:
            raise ValueError(f"Audit entry {snapshot.entry_id} already exists") from e

    def list_for_object(self, object_id: str) -> List[AuditSnapshot]:
        with self.store.connect() as conn:
            rows = conn.execute(
                f"SELECT doc FROM {self._table()} WHERE object_id = ? ORDER BY seq",
                [object_id],
            ).fetchall()
        return [self._from_json(r[0]) for r in rows]

    def clear(self) -> None:
        with self.store.connect() as conn:
            conn.execute(f"DELETE FROM {self._table()}")
