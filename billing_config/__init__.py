"""
billing_config -- single public entrypoint for loader configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_settings()``.  No other component reads settings files or
    environment variables directly.

Architecture position:
    Configuration.  Sits beside ``billing_kernel`` and below
    ``billing_ingestion`` and ``scripts/``.  The kernel MUST NEVER import
    from ``billing_config``.

Failure modes:
    - ``FileNotFoundError`` -- an explicit settings file does not exist.
    - ``ConfigurationError`` -- a settings value has the wrong type or an
      unknown name.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Mapping

from dotenv import find_dotenv, load_dotenv

from billing_config.loader import (
    apply_environment,
    default_settings,
    load_yaml_file,
    parse_settings,
)
from billing_config.schema import DatabaseSettings, IngestionDefaults, LoaderSettings

_logger = logging.getLogger("billing_kernel.config")


def get_settings(
    config_path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> LoaderSettings:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: Optional YAML settings file.
        environ: Environment mapping.  When omitted, a ``.env`` file in the
            working directory is loaded into ``os.environ`` (existing
            variables win) and ``os.environ`` is used.

    Guarantees:
        - Values resolve defaults, then the YAML file, then the environment.
        - A ``billing_settings_resolved`` log entry is emitted.
    """
    if environ is None:
        load_dotenv(find_dotenv(usecwd=True), override=False)
        environ = os.environ

    settings = default_settings()
    source = "defaults"
    if config_path is not None:
        settings = parse_settings(load_yaml_file(Path(config_path)), base=settings)
        source = str(config_path)
    settings = apply_environment(settings, environ)

    settings = replace(settings, source=source)
    _logger.debug(
        "billing_settings_resolved",
        extra={
            "settings_source": source,
            "has_database_url": settings.database.url is not None,
            "log_level": settings.log_level,
        },
    )
    return settings


__all__ = [
    "DatabaseSettings",
    "IngestionDefaults",
    "LoaderSettings",
    "get_settings",
]
