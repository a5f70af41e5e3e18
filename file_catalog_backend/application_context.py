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
from pathlib import Path
from typing import Optional

from file_catalog_backend.common.structures import Configuration
from file_catalog_backend.common.utils import validate_settings_or_exit
from file_catalog_backend.config.minio_settings import MinioSettings
from file_catalog_backend.core.crypto.cipher_engine import CipherEngine
from file_catalog_backend.core.stores.audit.base_audit_store import BaseAuditStore
from file_catalog_backend.core.stores.audit.duckdb_audit_store import DuckdbAuditStore
from file_catalog_backend.core.stores.audit.local_audit_store import LocalAuditStore
from file_catalog_backend.core.stores.blobs.base_blob_store import BaseBlobStore
from file_catalog_backend.core.stores.blobs.filesystem_blob_store import FileSystemBlobStore
from file_catalog_backend.core.stores.blobs.minio_blob_store import MinioBlobStore
from file_catalog_backend.core.stores.file_entries.base_file_entry_store import BaseFileEntryStore
from file_catalog_backend.core.stores.file_entries.duckdb_file_entry_store import DuckdbFileEntryStore
from file_catalog_backend.core.stores.file_entries.local_file_entry_store import LocalFileEntryStore

logger = logging.getLogger(__name__)


class ApplicationContext:
    """
    Process-wide holder of the configuration and of the store singletons.
    Stores are built lazily, on first use, from the configuration.
    """

    _instance: Optional["ApplicationContext"] = None

    def __init__(self, config: Configuration):
        # Allow reuse if already initialized
        if ApplicationContext._instance is not None:
            return

        self.config = config
        self._blob_store: Optional[BaseBlobStore] = None
        self._file_entry_store: Optional[BaseFileEntryStore] = None
        self._audit_store: Optional[BaseAuditStore] = None
        self._cipher_engine: Optional[CipherEngine] = None
        ApplicationContext._instance = self
        self._log_config_summary()

    @classmethod
    def get_instance(cls) -> "ApplicationContext":
        """
        Get the singleton instance of ApplicationContext.
        Raises:
            RuntimeError: If the ApplicationContext is not initialized.
        """
        if cls._instance is None:
            raise RuntimeError("ApplicationContext is not initialized yet.")
        return cls._instance

    @classmethod
    def reset_instance(cls):
        """Reset the singleton instance (used in tests)."""
        cls._instance = None

    def get_config(self) -> Configuration:
        return self.config

    def get_blob_store(self) -> BaseBlobStore:
        if self._blob_store is not None:
            return self._blob_store

        storage = self.config.blob_storage
        if storage.type == "local":
            self._blob_store = FileSystemBlobStore(Path(storage.root_path).expanduser())
        elif storage.type == "minio":
            settings = validate_settings_or_exit(MinioSettings, "MinIO Settings")
            self._blob_store = MinioBlobStore(
                endpoint=storage.endpoint,
                access_key=settings.minio_access_key,
                secret_key=settings.minio_secret_key,
                bucket_name=storage.bucket_name,
                secure=storage.secure,
                part_size_mb=storage.part_size_mb,
            )
        else:
            raise ValueError(f"Unsupported blob storage backend: {storage.type}")
        return self._blob_store

    def get_file_entry_store(self) -> BaseFileEntryStore:
        if self._file_entry_store is not None:
            return self._file_entry_store

        storage = self.config.file_entry_storage
        if storage.type == "local":
            self._file_entry_store = LocalFileEntryStore(Path(storage.json_path).expanduser())
        elif storage.type == "duckdb":
            self._file_entry_store = DuckdbFileEntryStore(Path(storage.duckdb_path).expanduser())
        else:
            raise ValueError(f"Unsupported file entry storage backend: {storage.type}")
        return self._file_entry_store

    def get_audit_store(self) -> BaseAuditStore:
        if self._audit_store is not None:
            return self._audit_store

        storage = self.config.audit_storage
        if storage.type == "local":
            self._audit_store = LocalAuditStore(Path(storage.json_path).expanduser())
        elif storage.type == "duckdb":
            self._audit_store = DuckdbAuditStore(Path(storage.duckdb_path).expanduser())
        else:
            raise ValueError(f"Unsupported audit storage backend: {storage.type}")
        return self._audit_store

    def get_cipher_engine(self) -> CipherEngine:
        if self._cipher_engine is None:
            self._cipher_engine = CipherEngine(chunk_size=self.config.encryption.chunk_size)
        return self._cipher_engine

    def _log_config_summary(self):
        logger.info("🔧 Application configuration summary:")
        logger.info("--------------------------------------------------")
        logger.info(f"  📁 Blob storage backend: {self.config.blob_storage.type}")
        if self.config.blob_storage.type == "minio":
            logger.info(f"     ↳ Endpoint: {self.config.blob_storage.endpoint}")
            logger.info(f"     ↳ Bucket: {self.config.blob_storage.bucket_name}")
        logger.info(f"  🗃️ File entry storage backend: {self.config.file_entry_storage.type}")
        logger.info(f"  📜 Audit storage backend: {self.config.audit_storage.type}")
        bypass = self.config.encryption.decrypt_bypass_locations
        if bypass:
            logger.warning(f"  ⚠️ Decryption bypass enabled for {len(bypass)} location(s): {bypass}")
        logger.info(f"  🧹 Provisional upload grace period: {self.config.catalog.provisional_grace_period_seconds}s")
        logger.info("--------------------------------------------------")
