"""
Entity reconciler: mapped rows -> deduplicated entity collections.

First-seen-wins: the first row carrying a natural key defines the entity and
later rows with the same key are ignored, never merged.  Insertion order is
kept, since the loader's first-match linkage depends on discovery order.

One reconciler per run.  finish() hands out an immutable ReconciledBatch and
closes the reconciler; absorbing after that raises ReconcilerClosedError.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from billing_ingestion.domain.types import (
    CustomerRecord,
    InvoiceRecord,
    MappedRow,
    ReconciledBatch,
    TransactionRecord,
)
from billing_ingestion.mapping.row_mapper import RowMapper
from billing_kernel.exceptions import ReconcilerClosedError
from billing_kernel.logging_config import get_logger

logger = get_logger("ingestion.reconciler")


class EntityReconciler:
    """Accumulates mapped rows into first-seen-wins collections."""

    def __init__(self) -> None:
        self._customers: dict[str, CustomerRecord] = {}
        self._invoices: dict[str, InvoiceRecord] = {}
        self._transactions: dict[str, TransactionRecord] = {}
        # dicts used as insertion-ordered sets
        self._platforms: dict[str, None] = {}
        self._states: dict[str, None] = {}
        self._rows_absorbed = 0
        self._rows_skipped = 0
        self._closed = False

    @property
    def rows_absorbed(self) -> int:
        return self._rows_absorbed

    @property
    def rows_skipped(self) -> int:
        """Rows where at least one entity was skipped for a malformed cell."""
        return self._rows_skipped

    def absorb(self, mapped: MappedRow) -> None:
        """
        File one mapped row.

        Partials with a natural key already seen are dropped.  Every
        transaction partial contributes its state name and platform name
        (when it has one) to the reference sets, duplicates included.
        """
        if self._closed:
            raise ReconcilerClosedError()

        self._rows_absorbed += 1
        if mapped.skipped:
            self._rows_skipped += 1

        if mapped.customer is not None:
            self._customers.setdefault(mapped.customer.identification_number, mapped.customer)
        if mapped.invoice is not None:
            self._invoices.setdefault(mapped.invoice.number, mapped.invoice)
        if mapped.transaction is not None:
            transaction = mapped.transaction
            self._transactions.setdefault(transaction.external_id, transaction)
            self._states.setdefault(transaction.state_name, None)
            if transaction.platform_name is not None:
                self._platforms.setdefault(transaction.platform_name, None)

    def absorb_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        mapper: RowMapper,
        first_row_number: int = 1,
    ) -> None:
        """Map and absorb raw rows; row numbers start at ``first_row_number``."""
        for row_number, row in enumerate(rows, start=first_row_number):
            self.absorb(mapper.map_row(row, row_number))

    def finish(self) -> ReconciledBatch:
        """Close the reconciler and return the finished collections."""
        if self._closed:
            raise ReconcilerClosedError()
        self._closed = True

        batch = ReconciledBatch(
            customers=tuple(self._customers.values()),
            invoices=tuple(self._invoices.values()),
            transactions=tuple(self._transactions.values()),
            platforms=tuple(self._platforms),
            states=tuple(self._states),
        )
        logger.info(
            "batch_reconciled",
            extra={
                **batch.counts(),
                "rows_absorbed": self._rows_absorbed,
                "rows_skipped": self._rows_skipped,
            },
        )
        return batch
