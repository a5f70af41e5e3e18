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

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from file_catalog_backend.features.files.structures import FileEntryInfo


class AuditDeserializationError(Exception):
    """Raised when a stored snapshot, or the fields it recorded, cannot be read back."""

    pass


class AuditAction(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


# Labels written by older producers that suffixed the entity type.
LEGACY_ACTION_LABELS = {
    "CREATED_FILEENTRY": AuditAction.CREATED,
    "UPDATED_FILEENTRY": AuditAction.UPDATED,
    "DELETED_FILEENTRY": AuditAction.DELETED,
}


class AuditSnapshot(BaseModel):
    """
    One immutable revision of a file entry, as appended to the audit log.
    `log` is the JSON serialization of the entry's FileEntryInfo at that revision.
    """

    entry_id: str
    object_id: str
    actor: str
    action: AuditAction
    timestamp: datetime
    log: str

    @field_validator("action", mode="before")
    @classmethod
    def _map_legacy_action(cls, value):
        if isinstance(value, str) and value in LEGACY_ACTION_LABELS:
            return LEGACY_ACTION_LABELS[value]
        return value


class FieldHighlight(BaseModel):
    """Per tracked field: did it change since the previous revision?"""

    name: bool = False
    description: bool = False
    file_name: bool = False
    file_location: bool = False


TRACKED_FIELDS = tuple(FieldHighlight.model_fields.keys())


class AnnotatedRevision(BaseModel):
    entry_id: str
    actor: str
    action: AuditAction
    timestamp: datetime
    data: FileEntryInfo
    highlight: FieldHighlight = Field(default_factory=FieldHighlight)
