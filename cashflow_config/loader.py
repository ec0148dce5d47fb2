"""
Configuration loader (``cashflow_config.loader``).

Responsibility
--------------
Reads one YAML file and parses it into the frozen dataclasses of
``cashflow_config.schema``.  Runtime callers go through
``cashflow_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML or a value of the wrong type  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from cashflow_kernel.exceptions import ConfigurationError

from cashflow_config.schema import (
    CashflowConfig,
    DatabaseConfig,
    LoggingConfig,
    ProjectionConfig,
)

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        ConfigurationError: if the file is not valid YAML or not a mapping.
    """
    with open(path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(str(path), f"invalid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any], default_id: str = "default") -> CashflowConfig:
    """Parse a raw mapping into a CashflowConfig, applying defaults."""
    return CashflowConfig(
        config_id=str(data.get("config_id", default_id)),
        database=parse_database(_section(data, "database")),
        logging=parse_logging(_section(data, "logging")),
        projection=parse_projection(_section(data, "projection")),
        checksum=compute_checksum(data),
    )


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    return DatabaseConfig(
        url=_string(data, "database.url", "url", defaults.url),
        echo=_boolean(data, "database.echo", "echo", defaults.echo),
        pool_size=_positive_int(data, "database.pool_size", "pool_size", defaults.pool_size),
        max_overflow=_non_negative_int(
            data, "database.max_overflow", "max_overflow", defaults.max_overflow,
        ),
        pool_timeout=_positive_int(
            data, "database.pool_timeout", "pool_timeout", defaults.pool_timeout,
        ),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = _string(data, "logging.level", "level", LoggingConfig().level).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(
            "logging.level", f"must be one of: {', '.join(sorted(_LOG_LEVELS))}",
        )
    return LoggingConfig(level=level)


def parse_projection(data: dict[str, Any]) -> ProjectionConfig:
    return ProjectionConfig(
        max_projection_days=_positive_int(
            data,
            "projection.max_projection_days",
            "max_projection_days",
            ProjectionConfig().max_projection_days,
        ),
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(name, "must be a mapping")
    return value


def _string(data: dict[str, Any], key: str, name: str, default: str) -> str:
    value = data.get(name, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(key, "must be a non-empty string")
    return value


def _boolean(data: dict[str, Any], key: str, name: str, default: bool) -> bool:
    value = data.get(name, default)
    if not isinstance(value, bool):
        raise ConfigurationError(key, "must be true or false")
    return value


def _non_negative_int(data: dict[str, Any], key: str, name: str, default: int) -> int:
    value = data.get(name, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(key, "must be a non-negative integer")
    return value


def _positive_int(data: dict[str, Any], key: str, name: str, default: int) -> int:
    value = _non_negative_int(data, key, name, default)
    if value < 1:
        raise ConfigurationError(key, "must be at least 1")
    return value
