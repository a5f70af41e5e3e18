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

"""
File Catalog Backend – incomplete upload sweeper

One-shot process meant to be scheduled (cron, Kubernetes CronJob) next to
the API. It removes file entries whose upload never reached the finalize
step and that are older than `catalog.provisional_grace_period_seconds`.

Run it with the same configuration file as the API:

    CONFIG_FILE=./config/configuration.yaml python -m file_catalog_backend.main_sweeper
"""

import logging
import os

from file_catalog_backend.application_context import ApplicationContext
from file_catalog_backend.common.utils import parse_server_configuration
from file_catalog_backend.features.files.service import FileCatalogService
from file_catalog_backend.main import DEFAULT_CONFIG_FILE, configure_logging, load_environment

logger = logging.getLogger(__name__)


def main() -> int:
    load_environment()
    configuration = parse_server_configuration(os.environ.get("CONFIG_FILE", DEFAULT_CONFIG_FILE))
    configure_logging(configuration.app.log_level)
    ApplicationContext(configuration)

    removed = FileCatalogService().sweep_incomplete_uploads()
    logger.info(f"Sweep done, {len(removed)} incomplete upload(s) removed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
