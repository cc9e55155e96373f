"""Row mapping: header coalescing, amount and date coercion (pure, no DB)."""

from billing_ingestion.mapping.coercion import cell_text, first_present, parse_amount
from billing_ingestion.mapping.dates import normalize_datetime
from billing_ingestion.mapping.row_mapper import RowMapper

__all__ = [
    "RowMapper",
    "cell_text",
    "first_present",
    "normalize_datetime",
    "parse_amount",
]
