"""
Loader settings schema.

Frozen dataclasses describing everything the loader can be configured with.
YAML files and environment variables are parsed into these types by
``billing_config.loader``; nothing else in the repository reads either
source directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseSettings:
    """Connection URL and pool sizing for the target datastore."""

    url: str | None = None
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 60
    pool_recycle: int = 1800


# ---------------------------------------------------------------------------
# Ingestion defaults
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class IngestionDefaults:
    """CSV dialect and the values substituted for absent transaction fields."""

    delimiter: str = ","
    encoding: str = "utf-8"
    default_state: str = "Pending"
    default_platform: str | None = None
    default_transaction_type: str = "Payment"
    completed_state: str = "Completed"  # Used by report queries

    def source_options(self) -> dict[str, str]:
        """Options dict understood by the CSV source adapter."""
        return {"delimiter": self.delimiter, "encoding": self.encoding}


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoaderSettings:
    """Complete, validated loader configuration."""

    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    ingestion: IngestionDefaults = field(default_factory=IngestionDefaults)
    log_level: str = "INFO"
    source: str = "defaults"  # Where the settings came from, for logs
