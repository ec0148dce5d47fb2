"""
Cashflow runtime configuration schema.

Frozen dataclasses produced by ``cashflow_config.loader`` from YAML.
Callers obtain a ``CashflowConfig`` through ``get_active_config()`` and
never read configuration files themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings handed to ``init_engine_from_url``."""

    url: str = "sqlite:///cashflow.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class ProjectionConfig:
    """Bounds for calendar projection."""

    max_projection_days: int = 366


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CashflowConfig:
    """Complete runtime configuration.

    ``checksum`` is the SHA-256 of the canonical JSON of the parsed YAML,
    so two loads of the same file always agree.
    """

    config_id: str
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    projection: ProjectionConfig = field(default_factory=ProjectionConfig)
    checksum: str = ""
