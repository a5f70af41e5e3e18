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

"""
Unit tests for AuditReconstructor: ordering and per-field change highlights.
"""

from datetime import datetime, timedelta, timezone

import pytest

from file_catalog_backend.features.audit.reconstructor import AuditDeserializationError, AuditReconstructor
from file_catalog_backend.features.audit.structures import AuditAction, AuditSnapshot, FieldHighlight
from file_catalog_backend.features.files.structures import FileEntryInfo

T0 = datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)


def info(**overrides) -> FileEntryInfo:
    fields = dict(id="f1", name="invoice", description="", file_name="invoice.txt", uploaded_time=T0)
    fields.update(overrides)
    return FileEntryInfo(**fields)


def snapshot(entry_id: str, offset_seconds: int, data: FileEntryInfo, action=AuditAction.UPDATED, object_id="f1") -> AuditSnapshot:
    return AuditSnapshot(
        entry_id=entry_id,
        object_id=object_id,
        actor="alice",
        action=action,
        timestamp=T0 + timedelta(seconds=offset_seconds),
        log=data.model_dump_json(),
    )


@pytest.fixture
def reconstructor() -> AuditReconstructor:
    return AuditReconstructor()


# ----------------------------
# ✅ Nominal
# ----------------------------


def test_empty_history(reconstructor):
    assert reconstructor.reconstruct([]) == []


def test_single_snapshot_has_no_highlight(reconstructor):
    [revision] = reconstructor.reconstruct([snapshot("e1", 0, info(), AuditAction.CREATED)])

    assert revision.highlight == FieldHighlight()
    assert revision.data.name == "invoice"
    assert revision.action == AuditAction.CREATED


def test_name_change_is_highlighted(reconstructor):
    revisions = reconstructor.reconstruct(
        [
            snapshot("e1", 0, info(), AuditAction.CREATED),
            snapshot("e2", 1, info(name="invoice-2025")),
        ]
    )

    newest, oldest = revisions
    assert newest.entry_id == "e2"
    assert newest.highlight == FieldHighlight(name=True)
    assert oldest.highlight == FieldHighlight()


def test_finalization_highlights_file_location(reconstructor):
    revisions = reconstructor.reconstruct(
        [
            snapshot("e1", 0, info(), AuditAction.CREATED),
            snapshot("e2", 1, info(file_location="2025/06/01/f1", size=4)),
        ]
    )

    # size is not a tracked field
    assert revisions[0].highlight == FieldHighlight(file_location=True)


def test_unordered_input_is_returned_newest_first(reconstructor):
    revisions = reconstructor.reconstruct(
        [
            snapshot("e3", 2, info(name="c", description="changed")),
            snapshot("e1", 0, info(name="a"), AuditAction.CREATED),
            snapshot("e2", 1, info(name="b")),
        ]
    )

    assert [r.entry_id for r in revisions] == ["e3", "e2", "e1"]
    # diffs follow chronological order, not input order
    assert revisions[0].highlight == FieldHighlight(name=True, description=True)
    assert revisions[1].highlight == FieldHighlight(name=True)
    assert revisions[2].highlight == FieldHighlight()


def test_same_timestamp_revisions_are_newest_first(reconstructor):
    # coarse clock: creation and finalization recorded within the same tick
    revisions = reconstructor.reconstruct(
        [
            snapshot("created", 0, info(), AuditAction.CREATED),
            snapshot("finalized", 0, info(file_location="2025/06/01/f1")),
        ]
    )

    assert [r.entry_id for r in revisions] == ["finalized", "created"]
    assert revisions[0].highlight == FieldHighlight(file_location=True)
    assert revisions[1].highlight == FieldHighlight()


def test_unchanged_revision_has_no_highlight(reconstructor):
    revisions = reconstructor.reconstruct(
        [
            snapshot("e1", 0, info(), AuditAction.CREATED),
            snapshot("e2", 1, info()),
        ]
    )
    assert all(r.highlight == FieldHighlight() for r in revisions)


def test_legacy_action_label_is_normalized(reconstructor):
    legacy = AuditSnapshot.model_validate(
        {
            "entry_id": "e1",
            "object_id": "f1",
            "actor": "bob",
            "action": "DELETED_FILEENTRY",
            "timestamp": T0.isoformat(),
            "log": info().model_dump_json(),
        }
    )
    [revision] = reconstructor.reconstruct([legacy])
    assert revision.action == AuditAction.DELETED


# ----------------------------
# ❌ Error Cases
# ----------------------------


def test_snapshots_of_several_objects_are_rejected(reconstructor):
    with pytest.raises(ValueError):
        reconstructor.reconstruct(
            [
                snapshot("e1", 0, info()),
                snapshot("e2", 1, info(id="f2"), object_id="f2"),
            ]
        )


def test_unreadable_log_raises(reconstructor):
    broken = snapshot("e1", 0, info()).model_copy(update={"log": '{"name": 12}'})
    with pytest.raises(AuditDeserializationError):
        reconstructor.reconstruct([broken])
