# Copyright Thales 2025
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0

import threading
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from file_catalog_backend.core.stores.file_entries.base_file_entry_store import (
    BaseFileEntryStore,
    FileEntryDeserializationError,
)
from file_catalog_backend.features.files.structures import FileEntry


class LocalFileEntryStore(BaseFileEntryStore):
    """
    File-based store for development. Keeps a list of FileEntry in one JSON file.
    Every read-modify-write cycle holds a process-wide lock; several processes
    must not share the same file.
    """

    def __init__(self, json_path: Path):
        self.path = json_path
        self._adapter = TypeAdapter(List[FileEntry])
        self._lock = threading.RLock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.write_text("[]")

    def _load(self) -> List[FileEntry]:
        if not self.path.exists():
            return []
        try:
            return self._adapter.validate_json(self.path.read_text())
        except ValidationError as e:
            raise FileEntryDeserializationError(f"Invalid file entry JSON in {self.path}: {e}") from e

    def _save(self, entries: List[FileEntry]) -> None:
        self.path.write_bytes(self._adapter.dump_json(entries, indent=2))

    def list_entries(self) -> List[FileEntry]:
        with self._lock:
            entries = self._load()
        return sorted(entries, key=lambda e: e.uploaded_time)

    def get_entry_by_id(self, file_id: str) -> Optional[FileEntry]:
        with self._lock:
            for entry in self._load():
                if entry.id == file_id:
                    return entry
        return None

    def save_entry(self, entry: FileEntry) -> None:
        if not entry.id:
            raise ValueError("File entry must contain an 'id'")
        with self._lock:
            data = self._load()
            for i, existing in enumerate(data):
                if existing.id == entry.id:
                    data[i] = entry
                    break
            else:
                data.append(entry)
            self._save(data)

    def update_entry(self, entry: FileEntry) -> None:
        with self._lock:
            data = self._load()
            for i, existing in enumerate(data):
                if existing.id == entry.id:
                    data[i] = entry
                    self._save(data)
                    return
        raise ValueError(f"No file entry found with id {entry.id}")

    def delete_entry(self, file_id: str) -> None:
        with self._lock:
            data = self._load()
            remaining = [e for e in data if e.id != file_id]
            if len(remaining) == len(data):
                raise ValueError(f"No file entry found with id {file_id}")
            self._save(remaining)

    def clear(self) -> None:
        with self._lock:
            self._save([])
