"""
Typed exception hierarchy for the billing loader.

Every exception carries a ``code`` class attribute (machine-readable, safe to
hand to a CLI or web handler) and keeps its context as attributes rather than
only inside the message string.

    BillingLoaderError (base)
    |
    +-- SourceError
    |   +-- SourceFileNotFoundError
    |   +-- SourceReadError
    |
    +-- RowExtractionError
    +-- ReconcilerClosedError
    +-- ConfigurationError

Persistence failures are not wrapped: the loader rolls back and re-raises the
SQLAlchemy exception as it was raised.

Category        | Code                   | When Raised
----------------|------------------------|-------------------------------------
Source          | SOURCE_FILE_NOT_FOUND  | Input path missing before a run
                | SOURCE_READ_ERROR      | Input stream unreadable mid-run
Row             | ROW_EXTRACTION_ERROR   | One field of one row is malformed
Reconcile       | RECONCILER_CLOSED      | absorb() after finish()
Config          | CONFIGURATION_ERROR    | Invalid YAML / environment setting
"""

from pathlib import Path
from typing import Any


class BillingLoaderError(Exception):
    """
    Base exception for all billing loader errors.

    All subclasses must have a `code` class attribute.
    """

    code: str = "BILLING_LOADER_ERROR"


# Source (input stream) exceptions


class SourceError(BillingLoaderError):
    """Base exception for input-stream errors. Always fatal for the run."""

    code: str = "SOURCE_ERROR"


class SourceFileNotFoundError(SourceError):
    """The input file does not exist; raised before any transaction opens."""

    code: str = "SOURCE_FILE_NOT_FOUND"

    def __init__(self, path: Path | str):
        self.path = str(path)
        super().__init__(f"CSV file not found: {self.path}")


class SourceReadError(SourceError):
    """The input file exists but could not be read or decoded."""

    code: str = "SOURCE_READ_ERROR"

    def __init__(self, path: Path | str, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Error reading CSV file {self.path}: {reason}")


# Row-level exceptions


class RowExtractionError(BillingLoaderError):
    """
    A single field in a single row could not be extracted.

    Recovered locally by the row mapper: the affected entity is skipped for
    that row and ingestion continues.
    """

    code: str = "ROW_EXTRACTION_ERROR"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = repr(value)
        self.reason = reason
        super().__init__(f"Malformed field {field!r}: {reason}")


# Reconciliation exceptions


class ReconcilerClosedError(BillingLoaderError):
    """Rows were absorbed after the reconciler handed out its batch."""

    code: str = "RECONCILER_CLOSED"

    def __init__(self):
        super().__init__("Reconciler already finished; create a new one per run")


# Configuration exceptions


class ConfigurationError(BillingLoaderError):
    """A configuration value is missing or invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, setting: str, message: str):
        self.setting = setting
        super().__init__(f"Invalid setting {setting!r}: {message}")
