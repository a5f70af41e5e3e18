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
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Optional

from file_catalog_backend.core.stores.blobs.base_blob_store import (
    BaseBlobStore,
    BlobNotFoundError,
    StorageReadError,
    StorageWriteError,
)

logger = logging.getLogger(__name__)

COPY_BUFFER_SIZE = 1024 * 1024


class FileSystemBlobStore(BaseBlobStore):
    """
    Stores each blob as a plain file under `root`, the location being the
    relative path. Writes go to a temporary file in the target folder which is
    then renamed over the target, so a reader never sees a partial blob.
    """

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)

    def _resolve(self, location: str) -> Path:
        if not location:
            raise ValueError("Blob location cannot be empty")
        root = self.root.resolve()
        target = (root / location).resolve()
        if root not in target.parents:
            raise ValueError(f"Blob location escapes the store root: {location}")
        return target

    def save_blob(self, location: str, content: BinaryIO) -> None:
        target = self._resolve(location)
        tmp_path: Optional[Path] = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(dir=target.parent, prefix=f".{target.name}.", suffix=".part", delete=False) as tmp:
                tmp_path = Path(tmp.name)
                shutil.copyfileobj(content, tmp, COPY_BUFFER_SIZE)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, target)
        except Exception as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            logger.error(f"❌ Failed to write blob '{location}': {e}")
            raise StorageWriteError(f"Failed to write blob '{location}': {e}") from e

        logger.info(f"📄 Stored blob {location} at {target}")

    def read_blob(self, location: str) -> bytes:
        target = self._resolve(location)
        try:
            return target.read_bytes()
        except FileNotFoundError as e:
            raise BlobNotFoundError(f"No blob stored at '{location}'") from e
        except OSError as e:
            logger.error(f"❌ Failed to read blob '{location}': {e}")
            raise StorageReadError(f"Failed to read blob '{location}': {e}") from e

    def delete_blob(self, location: str) -> None:
        target = self._resolve(location)
        if not target.exists():
            logger.warning(f"⚠️ Tried to delete blob {location}, but it does not exist at {target}")
            return
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"❌ Failed to delete blob '{location}': {e}")
            raise StorageWriteError(f"Failed to delete blob '{location}': {e}") from e
        logger.info(f"🗑️ Deleted blob {location}")

    def blob_exists(self, location: str) -> bool:
        return self._resolve(location).is_file()

    def clear(self) -> None:
        """
        Delete every blob previously saved in this store.
        Meant for unit-tests.
        """
        if self.root.exists():
            shutil.rmtree(self.root)
        self.root.mkdir(parents=True, exist_ok=True)
        logger.info("🧹 FileSystemBlobStore cleared")
