"""
cashflow_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way components obtain settings.
    It reads one YAML file (the packaged ``defaults.yaml`` unless a path is
    given), validates it and returns a frozen ``CashflowConfig``.

Architecture position:
    Sits beside ``cashflow_kernel``; the kernel never imports from here.
    The orchestrator and CLI translate the config into constructor
    arguments.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ConfigurationError`` -- malformed YAML or an invalid value.

Audit relevance:
    Every successful load emits a ``cashflow_config_loaded`` log entry with
    the config id, source path and checksum, tying each sweep's log lines
    to the exact settings that governed it.
"""

from __future__ import annotations

from pathlib import Path

from cashflow_kernel.logging_config import get_logger

from cashflow_config.loader import load_yaml_file, parse_config
from cashflow_config.schema import (
    CashflowConfig,
    DatabaseConfig,
    LoggingConfig,
    ProjectionConfig,
)

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"


def get_active_config(config_path: Path | str | None = None) -> CashflowConfig:
    """Load, validate and return the active configuration.

    Args:
        config_path: YAML file to read. Defaults to the packaged
            ``defaults.yaml``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ConfigurationError: If any value is malformed.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    data = load_yaml_file(path)
    config = parse_config(data, default_id=path.stem)

    _logger.info(
        "cashflow_config_loaded",
        extra={
            "config_id": config.config_id,
            "source": str(path),
            "checksum": config.checksum,
            "max_projection_days": config.projection.max_projection_days,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "CashflowConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ProjectionConfig",
    "get_active_config",
]
