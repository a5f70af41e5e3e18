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

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from file_catalog_backend.core.stores.duckdb_store import DuckDBTableStore
from file_catalog_backend.core.stores.file_entries.base_file_entry_store import (
    BaseFileEntryStore,
    FileEntryDeserializationError,
)
from file_catalog_backend.features.files.structures import FileEntry


class DuckdbFileEntryStore(BaseFileEntryStore):
    """
    DuckDB file entry store:
      - 'id' is the primary key
      - 'uploaded_time' is kept as ISO text for ordering
      - 'doc' keeps the full FileEntry JSON
    """

    def __init__(self, db_path: Path):
        self.table_name = "entries"
        self.store = DuckDBTableStore(db_path, prefix="file_")
        self._ensure_schema()

    def _table(self) -> str:
        return self.store.prefixed(self.table_name)

    # --- schema ---

    def _ensure_schema(self) -> None:
        with self.store.connect() as conn:
            conn.execute(f"""
                CREATE TABLE IF NOT EXISTS {self._table()} (
                    id            TEXT PRIMARY KEY,
                    uploaded_time TEXT,
                    doc           TEXT
                )
            """)

    # --- serialization helpers ---

    @staticmethod
    def _to_json(entry: FileEntry) -> str:
        return entry.model_dump_json()

    @staticmethod
    def _from_json(s: str) -> FileEntry:
        try:
            return FileEntry.model_validate_json(s)
        except ValidationError as e:
            raise FileEntryDeserializationError(f"Invalid file entry JSON: {e}") from e

    # --- reads ---

    def list_entries(self) -> List[FileEntry]:
        with self.store.connect() as conn:
            rows = conn.execute(f"SELECT doc FROM {self._table()} ORDER BY uploaded_time").fetchall()
        return [self._from_json(r[0]) for r in rows]

    def get_entry_by_id(self, file_id: str) -> Optional[FileEntry]:
        with self.store.connect() as conn:
            row = conn.execute(
                f"SELECT doc FROM {self._table()} WHERE id = ?",
                [file_id],
            ).fetchone()
        return self._from_json(row[0]) if row else None

    # --- writes ---

    def save_entry(self, entry: FileEntry) -> None:
        if not entry.id:
            raise ValueError("File entry must contain an 'id'")
        with self.store.connect() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO {self._table()} (id, uploaded_time, doc) VALUES (?, ?, ?)",
                [entry.id, entry.uploaded_time.isoformat(), self._to_json(entry)],
            )

    def update_entry(self, entry: FileEntry) -> None:
        with self.store.connect() as conn:
            rows = conn.execute(
                f"UPDATE {self._table()} SET uploaded_time = ?, doc = ? WHERE id = ? RETURNING id",
                [entry.uploaded_time.isoformat(), self._to_json(entry), entry.id],
            ).fetchall()
        if not rows:
            raise ValueError(f"No file entry found with id {entry.id}")

    def delete_entry(self, file_id: str) -> None:
        with self.store.connect() as conn:
            row = conn.execute(f"SELECT 1 FROM {self._table()} WHERE id = ?", [file_id]).fetchone()
            if row is None:
                raise ValueError(f"No file entry found with id {file_id}")
            conn.execute(f"DELETE FROM {self._table()} WHERE id = ?", [file_id])

    def clear(self) -> None:
        with self.store.connect() as conn:
            conn.execute(f"DELETE FROM {self._table()}")
