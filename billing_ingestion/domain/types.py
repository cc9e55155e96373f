"""
billing_ingestion.domain.types -- Pure frozen dataclasses for the load pipeline.

ZERO I/O.  Records carry natural keys only; surrogate keys exist only inside
the loader's open transaction and come back out in ``LoadResult``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any


class EntityKind(str, Enum):
    """Partial entity kinds a single row can contribute."""

    CUSTOMER = "customer"
    INVOICE = "invoice"
    TRANSACTION = "transaction"


# =============================================================================
# Partial records (one row's view of an entity)
# =============================================================================


@dataclass(frozen=True)
class CustomerRecord:
    """Customer as seen on one row.  Natural key: identification_number."""

    identification_number: str
    name: str
    address: str
    phone: str
    email: str


@dataclass(frozen=True)
class InvoiceRecord:
    """Invoice as seen on one row.  Natural key: number."""

    number: str
    period: str
    invoiced_amount: Decimal
    amount_paid: Decimal
    customer_identification: str | None  # Same row's customer, for linkage


@dataclass(frozen=True)
class TransactionRecord:
    """Transaction as seen on one row.  Natural key: external_id."""

    external_id: str
    occurred_at: datetime
    amount: Decimal
    transaction_type: str
    state_name: str
    platform_name: str | None
    invoice_number: str | None  # Same row's invoice, for linkage


@dataclass(frozen=True)
class MappedRow:
    """Output of the row mapper: up to three partials plus what was skipped."""

    row_number: int
    customer: CustomerRecord | None = None
    invoice: InvoiceRecord | None = None
    transaction: TransactionRecord | None = None
    skipped: tuple[EntityKind, ...] = ()

    @property
    def is_empty(self) -> bool:
        return self.customer is None and self.invoice is None and self.transaction is None


# =============================================================================
# Reconciled batch (loader input)
# =============================================================================


@dataclass(frozen=True)
class ReconciledBatch:
    """Deduplicated entity collections in discovery order."""

    customers: tuple[CustomerRecord, ...] = ()
    invoices: tuple[InvoiceRecord, ...] = ()
    transactions: tuple[TransactionRecord, ...] = ()
    platforms: tuple[str, ...] = ()
    states: tuple[str, ...] = ()

    def counts(self) -> dict[str, int]:
        return {
            "customers": len(self.customers),
            "invoices": len(self.invoices),
            "transactions": len(self.transactions),
            "platforms": len(self.platforms),
            "states": len(self.states),
        }


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class LoadResult:
    """What the loader wrote, and the natural -> surrogate key maps it built."""

    states_inserted: int = 0
    platforms_inserted: int = 0
    transactions_inserted: int = 0
    transaction_platforms_inserted: int = 0
    invoices_inserted: int = 0
    customers_inserted: int = 0
    state_ids: dict[str, int] = field(default_factory=dict)
    platform_ids: dict[str, int] = field(default_factory=dict)
    transaction_ids: dict[str, int] = field(default_factory=dict)
    invoice_ids: dict[str, int] = field(default_factory=dict)
    customer_ids: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class LoadSummary:
    """Run-level result returned by the driver."""

    run_id: str
    source_file: str
    counts: dict[str, int]
    rows_read: int
    rows_skipped: int
    started_at: datetime | None = None
    result: LoadResult | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            **self.counts,
            "rows_read": self.rows_read,
            "rows_skipped": self.rows_skipped,
        }
