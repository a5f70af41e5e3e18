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

from pathlib import Path
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field

"""
Configuration structures, parsed from the YAML configuration file.
Secrets (MinIO credentials) are not part of it, see config/minio_settings.py.
"""


class AppConfig(BaseModel):
    name: Optional[str] = "File Catalog Backend"
    base_url: str = "/file-catalog/v1"
    address: str = "127.0.0.1"
    port: int = 8111
    log_level: str = "info"
    reload: bool = False
    reload_dir: str = "."
    authorized_origins: List[str] = Field(default_factory=list, description="CORS allowed origins")


###########################################################
#
#  --- Blob Storage Configuration
#


class LocalBlobStorage(BaseModel):
    type: Literal["local"]
    root_path: str = Field(default=str(Path("~/.file-catalog/blobs")), description="Local storage directory")


class MinioBlobStorage(BaseModel):
    type: Literal["minio"]
    endpoint: str = Field(default="localhost:9000", description="MinIO API URL")
    bucket_name: str = Field(default="file-catalog", description="Blob bucket name")
    secure: bool = Field(default=False, description="Use TLS (https)")
    part_size_mb: int = Field(default=10, ge=5, description="Multipart upload part size")


BlobStorageConfig = Annotated[Union[LocalBlobStorage, MinioBlobStorage], Field(discriminator="type")]

###########################################################
#
#  --- File Entry Storage Configuration
#


class LocalFileEntryStorage(BaseModel):
    type: Literal["local"]
    json_path: str = Field(default="~/.file-catalog/file-entries.json", description="Path to the JSON file.")


class DuckdbFileEntryStorage(BaseModel):
    type: Literal["duckdb"]
    duckdb_path: str = Field(default="~/.file-catalog/db.duckdb", description="Path to the DuckDB database file.")


FileEntryStorageConfig = Annotated[Union[LocalFileEntryStorage, DuckdbFileEntryStorage], Field(discriminator="type")]

###########################################################
#
#  --- Audit Storage Configuration
#


class LocalAuditStorage(BaseModel):
    type: Literal["local"]
    json_path: str = Field(default="~/.file-catalog/audit-log.json", description="Path to the JSON file.")


class DuckdbAuditStorage(BaseModel):
    type: Literal["duckdb"]
    duckdb_path: str = Field(default="~/.file-catalog/db.duckdb", description="Path to the DuckDB database file.")


AuditStorageConfig = Annotated[Union[LocalAuditStorage, DuckdbAuditStorage], Field(discriminator="type")]


class EncryptionConfig(BaseModel):
    decrypt_bypass_locations: List[str] = Field(
        default_factory=list,
        description="Blob locations served as-is even when the entry is flagged encrypted (fixture content only)",
    )
    chunk_size: int = Field(default=64 * 1024, gt=0, description="Plaintext bytes read per encryption step")


class CatalogConfig(BaseModel):
    provisional_grace_period_seconds: int = Field(
        default=3600,
        ge=0,
        description="Age after which an unfinished upload is removed by the sweep",
    )


class Configuration(BaseModel):
    app: AppConfig
    blob_storage: BlobStorageConfig
    file_entry_storage: FileEntryStorageConfig
    audit_storage: AuditStorageConfig
    encryption: EncryptionConfig = Field(default_factory=EncryptionConfig)
    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
