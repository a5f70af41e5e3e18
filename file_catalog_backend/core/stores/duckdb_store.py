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

import duckdb

logger = logging.getLogger(__name__)


class DuckDBTableStore:
    """
    Shared DuckDB access with prefix-based table scoping, so that the file
    entry and audit stores can live in the same database file.
    One short-lived connection is opened per operation.
    """

    def __init__(self, db_path: Path, prefix: str):
        self.db_path = db_path
        self.prefix = prefix
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"DuckDBTableStore ({self.prefix}) initialized at {self.db_path}")

    def prefixed(self, table_name: str) -> str:
        if table_name.startswith(self.prefix):
            return table_name
        return f"{self.prefix}{table_name}"

    def connect(self) -> duckdb.DuckDBPyConnection:
        return duckdb.connect(str(self.db_path))
