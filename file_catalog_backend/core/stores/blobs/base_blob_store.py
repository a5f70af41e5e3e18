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
from typing import BinaryIO


class BlobStoreError(Exception):
    """Base class for blob storage failures."""

    pass


class StorageWriteError(BlobStoreError):
    pass


class StorageReadError(BlobStoreError):
    pass


class BlobNotFoundError(StorageReadError):
    pass


class BaseBlobStore(ABC):
    """
    Byte storage addressed by a location string such as '2025/06/01/<file id>'.

    Blobs are opaque: the store never knows whether a blob is encrypted.
    """

    @abstractmethod
    def save_blob(self, location: str, content: BinaryIO) -> None:
        """
        Write the whole stream at `location`.

        The write is atomic: after a failure nothing is visible at `location`.

        Raises:
            StorageWriteError: If the stream could not be stored.
        """
        pass

    @abstractmethod
    def read_blob(self, location: str) -> bytes:
        """
        Raises:
            BlobNotFoundError: If nothing is stored at `location`.
            StorageReadError: For any other read failure.
        """
        pass

    @abstractmethod
    def delete_blob(self, location: str) -> None:
        """
        Idempotent: deleting a missing location is not an error.

        Raises:
            StorageWriteError: If the backend refused the deletion.
        """
        pass

    @abstractmethod
    def blob_exists(self, location: str) -> bool:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every blob (test-only helper)."""
        pass
