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

import logging
from typing import Iterable, List, Optional

from pydantic import ValidationError

from file_catalog_backend.features.audit.structures import (
    TRACKED_FIELDS,
    AnnotatedRevision,
    AuditDeserializationError,
    AuditSnapshot,
    FieldHighlight,
)
from file_catalog_backend.features.files.structures import FileEntryInfo

logger = logging.getLogger(__name__)


class AuditReconstructor:
    """
    Turns the audit snapshots of one file entry into its history.

    Diffs are computed oldest-first: each revision is compared with the one
    just before it, on the tracked fields only. The oldest revision has
    nothing to compare with, so all of its flags are false. The result is
    returned newest-first, which is how the history is displayed.
    """

    def reconstruct(self, snapshots: Iterable[AuditSnapshot]) -> List[AnnotatedRevision]:
        ordered = sorted(snapshots, key=lambda s: s.timestamp)
        if not ordered:
            return []

        object_ids = {s.object_id for s in ordered}
        if len(object_ids) > 1:
            raise ValueError(f"Snapshots belong to several objects: {sorted(object_ids)}")

        revisions: List[AnnotatedRevision] = []
        previous: Optional[FileEntryInfo] = None
        for snapshot in ordered:
            current = self._deserialize(snapshot)
            revisions.append(
                AnnotatedRevision(
                    entry_id=snapshot.entry_id,
                    actor=snapshot.actor,
                    action=snapshot.action,
                    timestamp=snapshot.timestamp,
                    data=current,
                    highlight=self.highlight(previous, current),
                )
            )
            previous = current

        logger.debug(f"Reconstructed {len(revisions)} revisions for {object_ids.pop()}")
        # snapshots sharing a timestamp keep their append order
        return list(reversed(revisions))

    @staticmethod
    def highlight(previous: Optional[FileEntryInfo], current: FileEntryInfo) -> FieldHighlight:
        if previous is None:
            return FieldHighlight()
        return FieldHighlight(**{field: getattr(current, field) != getattr(previous, field) for field in TRACKED_FIELDS})

    @staticmethod
    def _deserialize(snapshot: AuditSnapshot) -> FileEntryInfo:
        try:
            return FileEntryInfo.model_validate_json(snapshot.log)
        except ValidationError as e:
            raise AuditDeserializationError(f"Audit entry {snapshot.entry_id} has unreadable content: {e}") from e
