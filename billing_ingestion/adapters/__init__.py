"""Source adapters for billing exports (file I/O only, no DB)."""

from billing_ingestion.adapters.base import SourceAdapter, SourceProbe
from billing_ingestion.adapters.csv_adapter import CsvSourceAdapter

__all__ = [
    "SourceAdapter",
    "SourceProbe",
    "CsvSourceAdapter",
]
