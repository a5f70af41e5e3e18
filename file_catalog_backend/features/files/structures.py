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
from typing import Optional

from pydantic import BaseModel, Field, model_validator

KEY_MATERIAL_FIELDS = {"encryption_key", "encryption_iv"}


def build_file_location(created: datetime, file_id: str) -> str:
    """
    Storage address of a file: 'YYYY/MM/DD/<file id>'.
    Unique because the id is.
    """
    return f"{created:%Y/%m/%d}/{file_id}"


class FileEntryInfo(BaseModel):
    """
    Business fields of a stored file. This is what the API returns and what
    every audit snapshot records. Encryption material is deliberately absent.
    """

    id: str = Field(..., description="Unique identifier assigned at creation")
    name: str = Field(..., description="User supplied display name")
    description: str = Field(default="", description="User supplied description")
    file_name: str = Field(..., description="Original client-side file name")
    file_location: str = Field(default="", description="Blob address; empty until the upload is finalized")
    size: int = Field(default=0, ge=0, description="Length of the original (plaintext) content in bytes")
    uploaded_time: datetime = Field(..., description="Creation timestamp")
    encrypted: bool = Field(default=False, description="Whether the blob holds ciphertext")

    @property
    def is_finalized(self) -> bool:
        return bool(self.file_location)


class FileEntry(FileEntryInfo):
    """
    Persisted file entry: business fields plus the per-file cipher material,
    stored as base64 text.
    """

    encryption_key: Optional[str] = None
    encryption_iv: Optional[str] = None

    @model_validator(mode="after")
    def _check_cipher_material(self) -> "FileEntry":
        has_key = self.encryption_key is not None
        has_iv = self.encryption_iv is not None
        if has_key != has_iv:
            raise ValueError("encryption_key and encryption_iv must be set together")
        if has_key and not self.encrypted:
            raise ValueError("Cipher material is only allowed on encrypted entries")
        if self.encrypted and self.is_finalized and not has_key:
            raise ValueError("A finalized encrypted entry must carry its cipher material")
        return self

    def info(self) -> FileEntryInfo:
        return FileEntryInfo.model_validate(self.model_dump(exclude=KEY_MATERIAL_FIELDS))


class UpdateFileEntryRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: str = ""
