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

from abc import ABC, abstractmethod
from typing import List, Optional

from file_catalog_backend.features.files.structures import FileEntry


class FileEntryDeserializationError(Exception):
    """Raised when a persisted file entry no longer validates."""

    pass


class BaseFileEntryStore(ABC):
    """
    Persistence of file entries, keyed by id. Provisional (not yet finalized)
    entries are stored like any other; hiding them is the catalog's job.
    """

    @abstractmethod
    def list_entries(self) -> List[FileEntry]:
        """Return every entry, ordered by upload time."""
        pass

    @abstractmethod
    def get_entry_by_id(self, file_id: str) -> Optional[FileEntry]:
        pass

    @abstractmethod
    def save_entry(self, entry: FileEntry) -> None:
        """
        Add or replace a full entry.

        - If an entry with the same id exists, it is overwritten (last write wins).
        - If not, the entry is added.

        :raises ValueError: If 'id' is missing.
        """
        pass

    @abstractmethod
    def update_entry(self, entry: FileEntry) -> None:
        """
        Replace an existing entry. Never creates one, so an entry deleted in
        the meantime stays deleted.

        :raises ValueError: If no entry has this id.
        """
        pass

    @abstractmethod
    def delete_entry(self, file_id: str) -> None:
        """
        :raises ValueError: If no entry has this id.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry in the store (test-only helper)."""
        pass
