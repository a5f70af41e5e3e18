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
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import BinaryIO, Callable, List, Optional, Tuple

from file_catalog_backend.application_context import ApplicationContext
from file_catalog_backend.core.crypto.cipher_engine import CipherMaterial, CorruptOrMismatchedKeyError
from file_catalog_backend.core.stores.blobs.base_blob_store import StorageWriteError
from file_catalog_backend.features.audit.reconstructor import AuditReconstructor
from file_catalog_backend.features.audit.structures import AnnotatedRevision, AuditAction, AuditSnapshot
from file_catalog_backend.features.files.structures import FileEntry, build_file_location

logger = logging.getLogger(__name__)

SYSTEM_ACTOR = "system"

# --- Domain Exceptions ---


class FileEntryNotFoundError(Exception):
    pass


class InvalidFileEntryRequest(Exception):
    pass


class ConsistencyError(Exception):
    """
    File entries and blobs disagree and the catalog could not repair it:
    a blob survived its entry, or an upload lost its provisional entry.
    """

    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CountingReader(io.RawIOBase):
    """Pass-through stream counting the bytes read from `source`."""

    def __init__(self, source: BinaryIO):
        super().__init__()
        self._source = source
        self.bytes_read = 0

    def readable(self) -> bool:
        return True

    def readinto(self, b) -> int:
        data = self._source.read(len(b))
        n = len(data)
        b[:n] = data
        self.bytes_read += n
        return n


class FileCatalogService:
    """
    Owns the lifecycle of stored files: file entries, their blobs, their
    encryption, and the audit snapshots written after each change.

    Creation is a two-phase write. The id is allocated and a provisional
    entry (no location, no cipher material) is persisted first. The blob is
    then written at a location derived from the id, and only after that the
    entry is finalized with its location and cipher material. An entry
    without location is an unfinished upload: every read path treats it as
    absent, and `sweep_incomplete_uploads` eventually removes it.
    """

    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        context = ApplicationContext.get_instance()
        self.config = context.get_config()
        self.file_entry_store = context.get_file_entry_store()
        self.blob_store = context.get_blob_store()
        self.audit_store = context.get_audit_store()
        self.cipher = context.get_cipher_engine()
        self.reconstructor = AuditReconstructor()
        self.clock = clock

    # --- reads ---

    def list_files(self) -> List[FileEntry]:
        return [e for e in self.file_entry_store.list_entries() if e.is_finalized]

    def get_file(self, file_id: str) -> FileEntry:
        if not file_id:
            raise InvalidFileEntryRequest("File id cannot be empty")
        entry = self.file_entry_store.get_entry_by_id(file_id)
        if entry is None or not entry.is_finalized:
            raise FileEntryNotFoundError(f"No file found with id {file_id}")
        return entry

    def fetch_content(self, entry: FileEntry) -> bytes:
        """
        Return the plaintext content of a finalized entry.

        Raises:
            StorageReadError / BlobNotFoundError: If the blob cannot be read.
            CorruptOrMismatchedKeyError: If the blob does not decrypt with the entry's material.
        """
        if not entry.is_finalized:
            raise ConsistencyError(f"File {entry.id} has no content location")

        raw = self.blob_store.read_blob(entry.file_location)
        if not entry.encrypted:
            return raw

        if entry.file_location in self.config.encryption.decrypt_bypass_locations:
            logger.warning(f"⚠️ Serving {entry.file_location} without decryption (configured bypass)")
            return raw

        if entry.encryption_key is None or entry.encryption_iv is None:
            raise CorruptOrMismatchedKeyError(f"File {entry.id} is encrypted but has no cipher material")
        material = CipherMaterial.from_encoded(entry.encryption_key, entry.encryption_iv)
        return self.cipher.decrypt(raw, material.key, material.iv)

    def download_file(self, file_id: str) -> Tuple[bytes, str]:
        entry = self.get_file(file_id)
        return self.fetch_content(entry), entry.file_name

    def get_audit_history(self, file_id: str) -> List[AnnotatedRevision]:
        """
        Newest-first history of a file, including deleted ones as long as the
        audit log still has their snapshots.
        """
        if not file_id:
            raise InvalidFileEntryRequest("File id cannot be empty")
        snapshots = self.audit_store.list_for_object(file_id)
        return self.reconstructor.reconstruct(snapshots)

    # --- writes ---

    def create_file(
        self,
        name: str,
        description: str,
        file_name: str,
        content: BinaryIO,
        encrypted: bool = False,
        size: Optional[int] = None,
        actor: str = SYSTEM_ACTOR,
    ) -> FileEntry:
        if not name:
            raise InvalidFileEntryRequest("File name cannot be empty")
        if not file_name:
            raise InvalidFileEntryRequest("Original file name cannot be empty")

        # 1. allocate identity, persist the provisional entry
        provisional = FileEntry(
            id=str(uuid.uuid4()),
            name=name,
            description=description or "",
            file_name=file_name,
            size=size or 0,
            uploaded_time=self.clock(),
            encrypted=encrypted,
        )
        self.file_entry_store.save_entry(provisional)
        self._record(provisional, AuditAction.CREATED, actor)

        # 2. location derives from the creation time and the allocated id
        location = build_file_location(provisional.uploaded_time, provisional.id)

        # 3. write the (possibly encrypted) content
        counter = _CountingReader(content)
        material: Optional[CipherMaterial] = None
        payload: BinaryIO = io.BufferedReader(counter)
        if encrypted:
            material = self.cipher.generate_material()
            payload = self.cipher.encrypting_reader(payload, material.key, material.iv)
        try:
            self.blob_store.save_blob(location, payload)
        except Exception as e:
            logger.error(f"❌ Upload of {provisional.id} failed, discarding provisional entry: {e}")
            self._discard_provisional(provisional, actor)
            raise

        if size is not None and size != counter.bytes_read:
            logger.warning(f"⚠️ Declared size {size} for {provisional.id} differs from received {counter.bytes_read} bytes")

        # 4. finalize
        finalized = self._finalize(provisional.id, location, counter.bytes_read, material)
        self._record(finalized, AuditAction.UPDATED, actor)
        logger.info(f"✅ Stored file {finalized.id} ({finalized.size} bytes, encrypted={finalized.encrypted}) at {location}")
        return finalized

    def update_file(self, file_id: str, name: str, description: str, actor: str = SYSTEM_ACTOR) -> FileEntry:
        if not name:
            raise InvalidFileEntryRequest("File name cannot be empty")
        entry = self.get_file(file_id)
        updated = entry.model_copy(update={"name": name, "description": description or ""})
        try:
            self.file_entry_store.update_entry(updated)
        except ValueError as e:
            # deleted by a concurrent request in between
            raise FileEntryNotFoundError(f"No file found with id {file_id}") from e
        self._record(updated, AuditAction.UPDATED, actor)
        logger.info(f"Updated file {file_id}")
        return updated

    def delete_file(self, file_id: str, actor: str = SYSTEM_ACTOR) -> None:
        """
        Remove the entry, then its blob. A missing blob is fine; a blob that
        cannot be removed once the entry is gone raises ConsistencyError.
        """
        entry = self.get_file(file_id)
        try:
            self.file_entry_store.delete_entry(file_id)
        except ValueError as e:
            # deleted by a concurrent request in between
            raise FileEntryNotFoundError(f"No file found with id {file_id}") from e
        self._record(entry, AuditAction.DELETED, actor)
        try:
            self.blob_store.delete_blob(entry.file_location)
        except StorageWriteError as e:
            logger.error(f"❌ File {file_id} deleted but its blob {entry.file_location} is left behind: {e}")
            raise ConsistencyError(f"File {file_id} was deleted but its content at {entry.file_location} could not be removed") from e
        logger.info(f"🗑️ Deleted file {file_id}")

    def sweep_incomplete_uploads(self, grace_period: Optional[timedelta] = None) -> List[str]:
        """
        Remove provisional entries older than the grace period, together with
        any blob written at their location before the upload was interrupted,
        and return their ids. Younger ones may still be uploading and are kept.

        Raises:
            ConsistencyError: If such a blob cannot be removed. Its entry is
                kept so that the next sweep retries.
        """
        if grace_period is None:
            grace_period = timedelta(seconds=self.config.catalog.provisional_grace_period_seconds)
        cutoff = self.clock() - grace_period
        removed: List[str] = []
        for entry in self.file_entry_store.list_entries():
            if entry.is_finalized or entry.uploaded_time > cutoff:
                continue
            location = build_file_location(entry.uploaded_time, entry.id)
            try:
                self.blob_store.delete_blob(location)
            except StorageWriteError as e:
                raise ConsistencyError(f"Incomplete upload {entry.id} left a blob at {location} that could not be removed") from e
            self.file_entry_store.delete_entry(entry.id)
            self._record(entry, AuditAction.DELETED, SYSTEM_ACTOR)
            removed.append(entry.id)
        if removed:
            logger.info(f"🧹 Removed {len(removed)} incomplete upload(s): {removed}")
        return removed

    # --- internals ---

    def _finalize(self, file_id: str, location: str, size: int, material: Optional[CipherMaterial]) -> FileEntry:
        current = self.file_entry_store.get_entry_by_id(file_id)
        if current is None:
            self._compensate_blob(file_id, location)
            raise ConsistencyError(f"Provisional entry {file_id} disappeared before its upload was finalized")

        fields = current.model_dump()
        fields.update(file_location=location, size=size)
        if material is not None:
            fields["encryption_key"], fields["encryption_iv"] = material.encoded()
        finalized = FileEntry.model_validate(fields)

        try:
            self.file_entry_store.update_entry(finalized)
        except ValueError as e:
            self._compensate_blob(file_id, location)
            raise ConsistencyError(f"Provisional entry {file_id} disappeared before its upload was finalized") from e
        except Exception as e:
            logger.error(f"❌ Could not finalize {file_id}: {e}")
            self._compensate_blob(file_id, location)
            raise
        return finalized

    def _compensate_blob(self, file_id: str, location: str) -> None:
        try:
            self.blob_store.delete_blob(location)
        except StorageWriteError as e:
            raise ConsistencyError(f"Upload {file_id} failed and its blob at {location} could not be removed") from e

    def _discard_provisional(self, entry: FileEntry, actor: str) -> None:
        try:
            self.file_entry_store.delete_entry(entry.id)
        except Exception as e:
            raise ConsistencyError(f"Upload {entry.id} failed and its provisional entry could not be removed") from e
        self._record(entry, AuditAction.DELETED, actor)

    def _record(self, entry: FileEntry, action: AuditAction, actor: str) -> None:
        snapshot = AuditSnapshot(
            entry_id=str(uuid.uuid4()),
            object_id=entry.id,
            actor=actor,
            action=action,
            timestamp=self.clock(),
            log=entry.info().model_dump_json(),
        )
        self.audit_store.append(snapshot)
