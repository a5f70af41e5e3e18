# Copyright Thales 2025
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0

import threading
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from file_catalog_backend.core.stores.audit.base_audit_store import BaseAuditStore
from file_catalog_backend.features.audit.structures import AuditDeserializationError, AuditSnapshot


class LocalAuditStore(BaseAuditStore):
    """
    JSON file audit log for development and tests.
    """

    def __init__(self, json_path: Path):
        self.path = json_path
        self._adapter = TypeAdapter(List[AuditSnapshot])
        self._lock = threading.RLock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]")

    def _load(self) -> List[AuditSnapshot]:
        if not self.path.exists():
            return []
        try:
            return self._adapter.validate_json(self.path.read_text())
        except ValidationError as e:
            raise AuditDeserializationError(f"Invalid audit log JSON in {self.path}: {e}") from e

    def _save(self, snapshots: List[AuditSnapshot]) -> None:
        self.path.write_bytes(self._adapter.dump_json(snapshots, indent=2))

    def append(self, snapshot: AuditSnapshot) -> None:
        with self._lock:
            data = self._load()
            if any(s.entry_id == snapshot.entry_id for s in data):
                raise ValueError(f"Audit entry {snapshot.entry_id} already exists")
            data.append(snapshot)
            self._save(data)

    def list_for_object(self, object_id: str) -> List[AuditSnapshot]:
        with self._lock:
            return [s for s in self._load() if s.object_id == object_id]

    def clear(self) -> None:
        with self._lock:
            self._save([])
