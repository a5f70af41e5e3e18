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
Behaviour shared by every file entry store, run against the JSON and DuckDB backends.
"""

from datetime import datetime, timedelta, timezone

import pytest

from file_catalog_backend.core.stores.file_entries.base_file_entry_store import FileEntryDeserializationError
from file_catalog_backend.core.stores.file_entries.duckdb_file_entry_store import DuckdbFileEntryStore
from file_catalog_backend.core.stores.file_entries.local_file_entry_store import LocalFileEntryStore
from file_catalog_backend.features.files.structures import FileEntry

T0 = datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)


def make_entry(file_id: str, offset_seconds: int = 0, **overrides) -> FileEntry:
    fields = dict(
        id=file_id,
        name=f"name-{file_id}",
        file_name=f"{file_id}.txt",
        uploaded_time=T0 + timedelta(seconds=offset_seconds),
    )
    fields.update(overrides)
    return FileEntry(**fields)


# ----------------------------
# ⚙️ Fixtures
# ----------------------------


@pytest.fixture(params=["local", "duckdb"])
def store(request, tmp_path):
    if request.param == "local":
        return LocalFileEntryStore(tmp_path / "file-entries.json")
    return DuckdbFileEntryStore(tmp_path / "db.duckdb")


# ----------------------------
# ✅ Nominal
# ----------------------------


def test_save_and_get_entry(store):
    entry = make_entry(
        "a",
        file_location="2025/06/01/a",
        size=4,
        encrypted=True,
        encryption_key="a2V5",
        encryption_iv="aXY=",
    )
    store.save_entry(entry)

    assert store.get_entry_by_id("a") == entry


def test_get_unknown_entry_returns_none(store):
    assert store.get_entry_by_id("missing") is None


def test_save_replaces_existing_entry(store):
    store.save_entry(make_entry("a"))
    store.save_entry(make_entry("a", name="renamed"))

    entries = store.list_entries()
    assert len(entries) == 1
    assert entries[0].name == "renamed"


def test_list_entries_ordered_by_upload_time(store):
    store.save_entry(make_entry("late", 20))
    store.save_entry(make_entry("early", 0))
    store.save_entry(make_entry("middle", 10))

    assert [e.id for e in store.list_entries()] == ["early", "middle", "late"]


def test_provisional_entries_are_stored_as_is(store):
    store.save_entry(make_entry("p", encrypted=True))
    entry = store.get_entry_by_id("p")
    assert entry is not None
    assert not entry.is_finalized
    assert entry.encryption_key is None


def test_update_entry_replaces_existing(store):
    store.save_entry(make_entry("a"))
    store.update_entry(make_entry("a", name="renamed", file_location="2025/06/01/a"))

    entry = store.get_entry_by_id("a")
    assert entry.name == "renamed"
    assert entry.is_finalized
    assert len(store.list_entries()) == 1


def test_delete_entry(store):
    store.save_entry(make_entry("a"))
    store.save_entry(make_entry("b", 1))
    store.delete_entry("a")

    assert store.get_entry_by_id("a") is None
    assert [e.id for e in store.list_entries()] == ["b"]


def test_clear(store):
    store.save_entry(make_entry("a"))
    store.clear()
    assert store.list_entries() == []


# ----------------------------
# ❌ Error Cases
# ----------------------------


def test_delete_unknown_entry_raises(store):
    with pytest.raises(ValueError):
        store.delete_entry("missing")


def test_update_missing_entry_raises_and_creates_nothing(store):
    with pytest.raises(ValueError):
        store.update_entry(make_entry("gone"))
    assert store.get_entry_by_id("gone") is None


def test_save_entry_without_id_raises(store):
    with pytest.raises(ValueError):
        store.save_entry(make_entry(""))


def test_corrupted_json_file_raises_deserialization_error(tmp_path):
    path = tmp_path / "file-entries.json"
    store = LocalFileEntryStore(path)
    path.write_text('[{"id": "a", "size": -3}]')

    with pytest.raises(FileEntryDeserializationError):
        store.list_entries()
