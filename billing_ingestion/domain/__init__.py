"""Pure domain types for billing ingestion (no I/O)."""

from billing_ingestion.domain.types import (
    CustomerRecord,
    EntityKind,
    InvoiceRecord,
    LoadResult,
    LoadSummary,
    MappedRow,
    ReconciledBatch,
    TransactionRecord,
)

__all__ = [
    "CustomerRecord",
    "EntityKind",
    "InvoiceRecord",
    "LoadResult",
    "LoadSummary",
    "MappedRow",
    "ReconciledBatch",
    "TransactionRecord",
]
