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

import io

import pytest

from file_catalog_backend.core.stores.blobs.base_blob_store import (
    BlobNotFoundError,
    StorageReadError,
    StorageWriteError,
)
from file_catalog_backend.core.stores.blobs.filesystem_blob_store import FileSystemBlobStore


class FailingStream(io.RawIOBase):
    """Yields some bytes, then fails like a dropped client connection."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def readable(self):
        return True

    def readinto(self, b):
        self.calls += 1
        if self.calls > 1:
            raise OSError("connection reset")
        b[:4] = b"part"
        return 4


# ----------------------------
# ⚙️ Fixtures
# ----------------------------


@pytest.fixture
def store(tmp_path) -> FileSystemBlobStore:
    return FileSystemBlobStore(tmp_path / "blobs")


# ----------------------------
# ✅ Nominal
# ----------------------------


def test_save_and_read_blob(store):
    store.save_blob("2025/06/01/abc", io.BytesIO(b"hello"))

    assert store.read_blob("2025/06/01/abc") == b"hello"
    assert store.blob_exists("2025/06/01/abc")
    assert (store.root / "2025" / "06" / "01" / "abc").read_bytes() == b"hello"


def test_save_overwrites_existing_blob(store):
    store.save_blob("loc", io.BytesIO(b"first"))
    store.save_blob("loc", io.BytesIO(b"second"))
    assert store.read_blob("loc") == b"second"


def test_delete_blob_is_idempotent(store):
    store.save_blob("loc", io.BytesIO(b"data"))
    store.delete_blob("loc")
    assert not store.blob_exists("loc")

    store.delete_blob("loc")  # no error


def test_clear_removes_everything(store):
    store.save_blob("a/1", io.BytesIO(b"1"))
    store.save_blob("b/2", io.BytesIO(b"2"))
    store.clear()
    assert not store.blob_exists("a/1")
    assert not store.blob_exists("b/2")
    assert store.root.exists()


# ----------------------------
# ❌ Error Cases
# ----------------------------


def test_read_missing_blob(store):
    with pytest.raises(BlobNotFoundError):
        store.read_blob("missing")
    assert issubclass(BlobNotFoundError, StorageReadError)


def test_interrupted_write_leaves_nothing_behind(store):
    with pytest.raises(StorageWriteError):
        store.save_blob("2025/06/01/partial", io.BufferedReader(FailingStream()))

    assert not store.blob_exists("2025/06/01/partial")
    leftovers = [p for p in store.root.rglob("*") if p.is_file()]
    assert leftovers == []


def test_interrupted_write_keeps_previous_version(store):
    store.save_blob("loc", io.BytesIO(b"stable"))
    with pytest.raises(StorageWriteError):
        store.save_blob("loc", io.BufferedReader(FailingStream()))
    assert store.read_blob("loc") == b"stable"


@pytest.mark.parametrize("location", ["", "../outside", "a/../../outside"])
def test_invalid_locations_are_rejected(store, location):
    with pytest.raises(ValueError):
        store.read_blob(location)
