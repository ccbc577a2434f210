"""
Shared configuration utilities for the Fleet Status API.

This module provides configuration management functionality
read from the Lambda environment at process startup.
"""

import os
import logging
from typing import Optional
from enum import Enum

logger = logging.getLogger(__name__)

class ConfigKey(Enum):
    """Environment variables used in the system."""
    DATA_TABLE_NAME = "DATA_TABLE_NAME"
    GET_LIMIT = "GET_LIMIT"
    CLOUDWATCH_NAMESPACE = "CLOUDWATCH_NAMESPACE"
    METRICS_ENABLED = "METRICS_ENABLED"
    LOG_LEVEL = "LOG_LEVEL"
    RECORD_SOURCE_TIMEOUT = "RECORD_SOURCE_TIMEOUT"

DEFAULT_DATA_TABLE_NAME = "fleet-device-records"
DEFAULT_GET_LIMIT = 5
DEFAULT_CLOUDWATCH_NAMESPACE = "FleetStatusAPI"
DEFAULT_RECORD_SOURCE_TIMEOUT = 10

class Config:
    """Configuration for the status Lambda function."""

    def get_env_var(self, key: ConfigKey, default: Optional[str] = None) -> Optional[str]:
        """Get environment variable."""
        return os.environ.get(key.value, default)

    def _get_positive_int(self, key: ConfigKey, default: int) -> int:
        raw = self.get_env_var(key)
        if raw is None or raw == "":
            return default
        try:
            value = int(raw)
        except ValueError:
            raise ValueError(f"{key.value} must be an integer, got: {raw}")
        if value < 1:
            raise ValueError(f"{key.value} must be a positive integer, got: {value}")
        return value

    @property
    def data_table_name(self) -> str:
        """Get record table name."""
        return self.get_env_var(ConfigKey.DATA_TABLE_NAME) or DEFAULT_DATA_TABLE_NAME

    @property
    def get_limit(self) -> int:
        """Maximum number of candidate records fetched per request."""
        return self._get_positive_int(ConfigKey.GET_LIMIT, DEFAULT_GET_LIMIT)

    @property
    def cloudwatch_namespace(self) -> str:
        """Get CloudWatch namespace for metrics."""
        return self.get_env_var(ConfigKey.CLOUDWATCH_NAMESPACE) or DEFAULT_CLOUDWATCH_NAMESPACE

    @property
    def metrics_enabled(self) -> bool:
        """Get whether counters are published to CloudWatch."""
        return self.get_env_var(ConfigKey.METRICS_ENABLED, "true").lower() == "true"

    @property
    def log_level(self) -> str:
        return self.get_env_var(ConfigKey.LOG_LEVEL, "INFO").upper()

    @property
    def record_source_timeout(self) -> int:
        """Connect/read timeout in seconds for record source calls."""
        return self._get_positive_int(ConfigKey.RECORD_SOURCE_TIMEOUT, DEFAULT_RECORD_SOURCE_TIMEOUT)
