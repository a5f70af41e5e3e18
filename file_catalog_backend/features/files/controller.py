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
from typing import List
from urllib.parse import quote

from fastapi import APIRouter, File, Form, Header, HTTPException, UploadFile
from fastapi.responses import Response

from file_catalog_backend.common.utils import log_exception
from file_catalog_backend.core.crypto.cipher_engine import CorruptOrMismatchedKeyError
from file_catalog_backend.core.stores.blobs.base_blob_store import BlobNotFoundError, BlobStoreError
from file_catalog_backend.features.audit.structures import AnnotatedRevision
from file_catalog_backend.features.files.service import (
    ConsistencyError,
    FileCatalogService,
    FileEntryNotFoundError,
    InvalidFileEntryRequest,
)
from file_catalog_backend.features.files.structures import FileEntryInfo, UpdateFileEntryRequest

logger = logging.getLogger(__name__)

DEFAULT_ACTOR = "anonymous"


def handle_exception(e: Exception) -> HTTPException | Exception:
    if isinstance(e, FileEntryNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    elif isinstance(e, InvalidFileEntryRequest):
        return HTTPException(status_code=400, detail=str(e))
    elif isinstance(e, BlobNotFoundError):
        return HTTPException(status_code=500, detail=f"File content is missing: {e}")
    elif isinstance(e, BlobStoreError):
        return HTTPException(status_code=503, detail=f"Storage unavailable: {e}")
    elif isinstance(e, CorruptOrMismatchedKeyError):
        return HTTPException(status_code=500, detail=f"File content could not be decrypted: {e}")
    elif isinstance(e, ConsistencyError):
        return HTTPException(status_code=500, detail=f"Storage inconsistency: {e}")

    return e  # Will be handled by generic_exception_handler as 500


class FilesController:
    """
    HTTP adapter over FileCatalogService.

    Endpoints:
    ----------
    - `GET    /files`                      list finalized files
    - `POST   /files`                      upload (multipart), optionally encrypted
    - `GET    /files/{file_id}`            file entry
    - `GET    /files/{file_id}/download`   plaintext content
    - `PUT    /files/{file_id}`            rename / describe
    - `DELETE /files/{file_id}`            delete entry and content
    - `GET    /files/{file_id}/auditlogs`  newest-first annotated history

    Business exceptions are mapped to HTTP errors here only. The acting user
    is taken from the optional `X-Actor` header.
    """

    def __init__(self, router: APIRouter):
        self.service = FileCatalogService()
        self._register_routes(router)

    def _register_routes(self, router: APIRouter):
        @router.get(
            "/files",
            tags=["Files"],
            response_model=List[FileEntryInfo],
            summary="List stored files",
        )
        def list_files():
            try:
                return [e.info() for e in self.service.list_files()]
            except Exception as e:
                log_exception(e)
                raise handle_exception(e)

        @router.post(
            "/files",
            tags=["Files"],
            response_model=FileEntryInfo,
            summary="Upload a file",
            description="Stores the uploaded content, encrypted with a per-file key when `encrypted` is true.",
        )
        def upload_file(
            file: UploadFile = File(...),
            name: str = Form(...),
            description: str = Form(""),
            encrypted: bool = Form(False),
            x_actor: str = Header(DEFAULT_ACTOR),
        ):
            try:
                entry = self.service.create_file(
                    name=name,
                    description=description,
                    file_name=file.filename or "",
                    content=file.file,
                    encrypted=encrypted,
                    size=file.size,
                    actor=x_actor,
                )
                return entry.info()
            except Exception as e:
                log_exception(e, f"upload of {file.filename}")
                raise handle_exception(e)

        @router.get(
            "/files/{file_id}",
            tags=["Files"],
            response_model=FileEntryInfo,
            summary="Get a file entry",
        )
        def get_file(file_id: str):
            try:
                return self.service.get_file(file_id).info()
            except Exception as e:
                log_exception(e, f"lookup of {file_id}")
                raise handle_exception(e)

        @router.get(
            "/files/{file_id}/download",
            tags=["Files"],
            summary="Download the original file content",
            response_class=Response,
            responses={200: {"content": {"application/octet-stream": {"schema": {"type": "string", "format": "binary"}}}}},
        )
        def download_file(file_id: str):
            try:
                content, file_name = self.service.download_file(file_id)
            except Exception as e:
                log_exception(e, f"download of {file_id}")
                raise handle_exception(e)
            return Response(
                content=content,
                media_type="application/octet-stream",
                headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
            )

        @router.put(
            "/files/{file_id}",
            tags=["Files"],
            response_model=FileEntryInfo,
            summary="Update the name and description of a file",
        )
        def update_file(file_id: str, update: UpdateFileEntryRequest, x_actor: str = Header(DEFAULT_ACTOR)):
            try:
                return self.service.update_file(file_id, update.name, update.description, actor=x_actor).info()
            except Exception as e:
                log_exception(e, f"update of {file_id}")
                raise handle_exception(e)

        @router.delete(
            "/files/{file_id}",
            tags=["Files"],
            summary="Delete a file and its content",
        )
        def delete_file(file_id: str, x_actor: str = Header(DEFAULT_ACTOR)):
            try:
                self.service.delete_file(file_id, actor=x_actor)
                return {"status": "success"}
            except Exception as e:
                log_exception(e, f"deletion of {file_id}")
                raise handle_exception(e)

        @router.get(
            "/files/{file_id}/auditlogs",
            tags=["Files"],
            response_model=List[AnnotatedRevision],
            summary="Get the change history of a file",
            description="Newest revision first. `highlight` flags the fields changed since the previous revision.",
        )
        def get_audit_logs(file_id: str):
            try:
                return self.service.get_audit_history(file_id)
            except Exception as e:
                log_exception(e, f"audit history of {file_id}")
                raise handle_exception(e)
