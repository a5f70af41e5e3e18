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
from typing import BinaryIO
from urllib.parse import urlparse

from minio import Minio
from minio.error import S3Error

from file_catalog_backend.core.stores.blobs.base_blob_store import (
    BaseBlobStore,
    BlobNotFoundError,
    StorageReadError,
    StorageWriteError,
)

logger = logging.getLogger(__name__)

MISSING_OBJECT_CODES = {"NoSuchKey", "NoSuchObject"}
MIN_PART_SIZE_MB = 5


class MinioBlobStore(BaseBlobStore):
    """
    MinIO (or any S3-compatible service) blob store. The location is used
    verbatim as the object name inside a single bucket.

    S3 puts are atomic: a single-part put is all-or-nothing, and an aborted
    multipart upload never becomes a visible object.
    """

    def __init__(self, endpoint: str, access_key: str, secret_key: str, bucket_name: str, secure: bool, part_size_mb: int = 10):
        """
        Initializes the MinIO client and ensures the bucket exists.
        """
        self.bucket_name = bucket_name
        self.part_size = max(part_size_mb, MIN_PART_SIZE_MB) * 1024 * 1024
        parsed = urlparse(endpoint)
        if "://" in endpoint and parsed.path not in ("", "/"):
            raise RuntimeError(
                f"❌ Invalid MinIO endpoint: '{endpoint}'.\n"
                "👉 The endpoint must not include a path. Use only scheme://host:port.\n"
                "   Example: 'http://localhost:9000', NOT 'http://localhost:9000/minio'"
            )

        clean_endpoint = endpoint.replace("https://", "").replace("http://", "")
        try:
            self.client = Minio(clean_endpoint, access_key=access_key, secret_key=secret_key, secure=secure)
        except ValueError as e:
            logger.error(f"❌ Failed to initialize MinIO client: {e}")
            raise

        if not self.client.bucket_exists(bucket_name):
            self.client.make_bucket(bucket_name)
            logger.info(f"Bucket '{bucket_name}' created successfully.")

    def save_blob(self, location: str, content: BinaryIO) -> None:
        try:
            self.client.put_object(
                self.bucket_name,
                location,
                content,
                length=-1,
                part_size=self.part_size,
                content_type="application/octet-stream",
            )
        except Exception as e:
            logger.error(f"❌ Failed to upload '{location}' to bucket '{self.bucket_name}': {e}")
            raise StorageWriteError(f"Upload failed for '{location}': {e}") from e
        logger.info(f"📤 Uploaded '{location}' to bucket '{self.bucket_name}'")

    def read_blob(self, location: str) -> bytes:
        response = None
        try:
            response = self.client.get_object(self.bucket_name, location)
            return response.read()
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                raise BlobNotFoundError(f"No object '{location}' in bucket '{self.bucket_name}'") from e
            logger.error(f"❌ Failed to read '{location}' from bucket '{self.bucket_name}': {e}")
            raise StorageReadError(f"Failed to read '{location}': {e}") from e
        except Exception as e:
            logger.error(f"❌ Failed to read '{location}' from bucket '{self.bucket_name}': {e}")
            raise StorageReadError(f"Failed to read '{location}': {e}") from e
        finally:
            if response is not None:
                response.close()
                response.release_conn()

    def delete_blob(self, location: str) -> None:
        # S3 DELETE on a missing key succeeds.
        try:
            self.client.remove_object(self.bucket_name, location)
        except Exception as e:
            logger.error(f"❌ Failed to delete '{location}' from bucket '{self.bucket_name}': {e}")
            raise StorageWriteError(f"Failed to delete '{location}': {e}") from e
        logger.info(f"🗑️ Deleted '{location}' from bucket '{self.bucket_name}'.")

    def blob_exists(self, location: str) -> bool:
        try:
            self.client.stat_object(self.bucket_name, location)
            return True
        except S3Error as e:
            if e.code in MISSING_OBJECT_CODES:
                return False
            raise StorageReadError(f"Failed to stat '{location}': {e}") from e

    def clear(self) -> None:
        for obj in self.client.list_objects(self.bucket_name, recursive=True):
            if obj.object_name is None:
                raise RuntimeError(f"MinIO object has no name: {obj}")
            self.client.remove_object(self.bucket_name, obj.object_name)
        logger.info(f"🧹 Bucket '{self.bucket_name}' cleared")
