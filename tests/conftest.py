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

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from file_catalog_backend.application_context import ApplicationContext
from file_catalog_backend.common.structures import (
    AppConfig,
    CatalogConfig,
    Configuration,
    EncryptionConfig,
    LocalAuditStorage,
    LocalBlobStorage,
    LocalFileEntryStorage,
)
from file_catalog_backend.features.files.service import FileCatalogService
from file_catalog_backend.main import create_app

BASE_URL = "/file-catalog/v1"
CLOCK_START = datetime(2025, 6, 1, 8, 30, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock: every call returns a time one second later."""

    def __init__(self, start: datetime = CLOCK_START, step: timedelta = timedelta(seconds=1)):
        self.current = start
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


@pytest.fixture
def configuration(tmp_path) -> Configuration:
    return Configuration(
        app=AppConfig(base_url=BASE_URL, log_level="info"),
        blob_storage=LocalBlobStorage(type="local", root_path=str(tmp_path / "blobs")),
        file_entry_storage=LocalFileEntryStorage(type="local", json_path=str(tmp_path / "file-entries.json")),
        audit_storage=LocalAuditStorage(type="local", json_path=str(tmp_path / "audit-log.json")),
        encryption=EncryptionConfig(),
        catalog=CatalogConfig(provisional_grace_period_seconds=3600),
    )


@pytest.fixture(scope="function", autouse=True)
def app_context(configuration: Configuration):
    """
    Initializes the ApplicationContext with local stores under tmp_path.
    """
    ApplicationContext.reset_instance()
    context = ApplicationContext(configuration)
    yield context
    ApplicationContext.reset_instance()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def service(app_context: ApplicationContext, clock: TickingClock) -> FileCatalogService:
    return FileCatalogService(clock=clock)


@pytest.fixture(scope="function")
def client_fixture(app_context: ApplicationContext, configuration: Configuration):
    """
    TestClient for FastAPI app. ApplicationContext is preloaded.
    """
    app = create_app(configuration)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def blob_store(app_context: ApplicationContext):
    return app_context.get_blob_store()


@pytest.fixture
def file_entry_store(app_context: ApplicationContext):
    return app_context.get_file_entry_store()


@pytest.fixture
def audit_store(app_context: ApplicationContext):
    return app_context.get_audit_store()
