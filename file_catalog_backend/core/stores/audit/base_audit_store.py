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
from typing import List

from file_catalog_backend.features.audit.structures import AuditSnapshot


class BaseAuditStore(ABC):
    """
    Append-only log of file entry snapshots. Snapshots are never updated
    or removed once appended.
    """

    @abstractmethod
    def append(self, snapshot: AuditSnapshot) -> None:
        """
        :raises ValueError: If a snapshot with the same entry_id was already appended.
        """
        pass

    @abstractmethod
    def list_for_object(self, object_id: str) -> List[AuditSnapshot]:
        """Return every snapshot of one file entry, in append order."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every snapshot (test-only helper)."""
        pass
