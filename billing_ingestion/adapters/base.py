"""
Source adapters turn a billing export file into header-keyed row dicts.

The loader driver depends only on the SourceAdapter protocol, so a second
format can be added without touching mapping or loading.  Adapters do file
I/O only: no database access, no label interpretation.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Protocol, runtime_checkable


@runtime_checkable
class SourceAdapter(Protocol):
    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        """Stream the data rows, each keyed by its (trimmed) header label."""
        ...

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        """Count rows and return the header and the first few rows."""
        ...


@dataclass(frozen=True)
class SourceProbe:
    """What a file looks like before it is loaded."""

    row_count: int
    columns: tuple[str, ...]
    sample_rows: tuple[dict[str, Any], ...]
    encoding: str | None = None
    detected_delimiter: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """JSON-ready form printed by ``run_load.py --probe-only``."""
        return {
            "row_count": self.row_count,
            "columns": list(self.columns),
            "sample_rows": [dict(row) for row in self.sample_rows],
            "encoding": self.encoding,
            "delimiter": self.detected_delimiter,
        }
