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
import sys
import traceback
from typing import Dict, Optional, Type, TypeVar

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings

from file_catalog_backend.common.structures import Configuration

logger = logging.getLogger(__name__)

S = TypeVar("S", bound=BaseSettings)


def parse_server_configuration(configuration_path: str) -> Configuration:
    """
    Parses the server configuration from a YAML file.

    Args:
        configuration_path (str): The path to the configuration YAML file.

    Returns:
        Configuration: The parsed configuration object.
    """
    with open(configuration_path, "r") as f:
        try:
            config: Dict = yaml.safe_load(f)
        except yaml.YAMLError as e:
            print(f"Error while parsing configuration file {configuration_path}: {e}")
            sys.exit(1)
    return Configuration(**config)


def validate_settings_or_exit(settings_class: Type[S], name: str = "") -> S:
    """
    Load environment-backed settings, or log every missing variable and exit.
    """
    label = name or settings_class.__name__
    try:
        settings = settings_class()
        logger.info(f"{label} loaded successfully.")
        return settings
    except ValidationError as e:
        logger.critical(f"{label} is misconfigured:")
        for error in e.errors():
            field = error.get("loc")[0]
            info = settings_class.model_fields.get(field)
            alias = info.validation_alias if info and info.validation_alias else field
            msg = error.get("msg")
            logger.critical(f"  - Missing or invalid env var: {alias} ({msg})")
        sys.exit(1)


def log_exception(e: Exception, context_message: Optional[str] = None) -> str:
    """
    Logs an exception with full details (preserving caller's location)
    and returns a short summary string.

    Args:
        e (Exception): The exception to log.
        context_message (Optional[str]): Additional context for the logs.

    Returns:
        str: A human-readable summary of the exception.
    """
    error_type = type(e).__name__
    error_message = str(e)
    stack_trace = traceback.format_exc()

    cause = getattr(e, "__cause__", None) or getattr(e, "__context__", None)
    root_cause = repr(cause) if cause else error_message

    logger.error("Exception occurred: %s", error_type, stacklevel=2)
    if context_message:
        logger.error("🔍 Context: %s", context_message, stacklevel=2)
    logger.error("🧩 Error message: %s", error_message, stacklevel=2)
    logger.error("📦 Root cause: %s", root_cause, stacklevel=2)
    logger.error("🧵 Stack trace:\n%s", stack_trace, stacklevel=2)

    return f"{error_type}: {error_message}"
