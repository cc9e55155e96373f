"""
CSV source adapter.

Uses csv.DictReader. Configurable: delimiter, encoding, quoting, skip_rows.
Handles BOM via utf-8-sig when encoding is utf-8. Header labels are trimmed
so ``" Monto Pagado "`` and ``"Monto Pagado"`` address the same column.
Cells beyond the header width are dropped. Streams rows.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import IO, Any, Iterator

from billing_ingestion.adapters.base import SourceProbe

PROBE_SAMPLE_SIZE = 5

_QUOTING = {
    "minimal": csv.QUOTE_MINIMAL,
    "all": csv.QUOTE_ALL,
    "nonnumeric": csv.QUOTE_NONNUMERIC,
    "none": csv.QUOTE_NONE,
}


def _get_encoding(options: dict[str, Any]) -> str:
    enc = options.get("encoding", "utf-8")
    if enc.lower() in ("utf-8", "utf8"):
        return "utf-8-sig"  # Strip BOM if present
    return enc


def _get_quoting(options: dict[str, Any]) -> int:
    q = options.get("quoting", "minimal")
    if isinstance(q, int):
        return q
    return _QUOTING.get(str(q).lower(), csv.QUOTE_MINIMAL)


def _dict_reader(f: IO[str], options: dict[str, Any]) -> csv.DictReader:
    for _ in range(int(options.get("skip_rows", 0))):
        next(f, None)
    reader = csv.DictReader(
        f,
        delimiter=options.get("delimiter", ","),
        quoting=_get_quoting(options),
    )
    if reader.fieldnames is not None:
        reader.fieldnames = [name.strip() for name in reader.fieldnames]
    return reader


def _clean(row: dict[str | None, Any]) -> dict[str, Any]:
    # DictReader files overflow cells under the None key
    return {key: value for key, value in row.items() if key is not None}


class CsvSourceAdapter:
    """Read CSV files as one dict per row. Streams; does not load entire file."""

    def read(self, source_path: Path, options: dict[str, Any]) -> Iterator[dict[str, Any]]:
        with source_path.open("r", encoding=_get_encoding(options), newline="") as f:
            for row in _dict_reader(f, options):
                yield _clean(row)

    def probe(self, source_path: Path, options: dict[str, Any]) -> SourceProbe:
        encoding = _get_encoding(options)
        with source_path.open("r", encoding=encoding, newline="") as f:
            reader = _dict_reader(f, options)
            columns = tuple(reader.fieldnames or ())
            sample: list[dict[str, Any]] = []
            count = 0
            for row in reader:
                count += 1
                if len(sample) < PROBE_SAMPLE_SIZE:
                    sample.append(_clean(row))

        return SourceProbe(
            row_count=count,
            columns=columns,
            sample_rows=tuple(sample),
            encoding=encoding,
            detected_delimiter=options.get("delimiter", ","),
        )
