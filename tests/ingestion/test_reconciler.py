"""Tests for first-seen-wins reconciliation."""

from datetime import datetime
from decimal import Decimal

import pytest

from billing_ingestion.domain.types import (
    CustomerRecord,
    InvoiceRecord,
    MappedRow,
    TransactionRecord,
)
from billing_ingestion.mapping.row_mapper import RowMapper
from billing_ingestion.reconcile.reconciler import EntityReconciler
from billing_kernel.exceptions import ReconcilerClosedError


def _customer(ident: str, name: str = "Ana") -> CustomerRecord:
    return CustomerRecord(
        identification_number=ident,
        name=name,
        address="N/A",
        phone="N/A",
        email=f"customer{ident}@example.com",
    )


def _invoice(number: str, customer: str | None = None, paid: str = "0") -> InvoiceRecord:
    return InvoiceRecord(
        number=number,
        period="2024-06",
        invoiced_amount=Decimal("100.00"),
        amount_paid=Decimal(paid),
        customer_identification=customer,
    )


def _transaction(
    external_id: str,
    state: str = "Pending",
    platform: str | None = None,
    invoice: str | None = None,
    amount: str = "10.00",
) -> TransactionRecord:
    return TransactionRecord(
        external_id=external_id,
        occurred_at=datetime(2024, 6, 1, 10, 0, 0),
        amount=Decimal(amount),
        transaction_type="Payment",
        state_name=state,
        platform_name=platform,
        invoice_number=invoice,
    )


class TestFirstSeenWins:
    def test_duplicate_customer_keeps_first(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, customer=_customer("123456", "First")))
        reconciler.absorb(MappedRow(row_number=2, customer=_customer("123456", "Second")))

        batch = reconciler.finish()
        assert len(batch.customers) == 1
        assert batch.customers[0].name == "First"

    def test_duplicate_invoice_and_transaction_keep_first(self):
        reconciler = EntityReconciler()
        reconciler.absorb(
            MappedRow(row_number=1, invoice=_invoice("INV-1", paid="10"), transaction=_transaction("TX-1", amount="1"))
        )
        reconciler.absorb(
            MappedRow(row_number=2, invoice=_invoice("INV-1", paid="99"), transaction=_transaction("TX-1", amount="2"))
        )

        batch = reconciler.finish()
        assert [i.amount_paid for i in batch.invoices] == [Decimal("10")]
        assert [t.amount for t in batch.transactions] == [Decimal("1")]

    def test_discovery_order_is_kept(self):
        reconciler = EntityReconciler()
        for ident in ("3", "1", "2", "1"):
            reconciler.absorb(MappedRow(row_number=1, customer=_customer(ident)))
        batch = reconciler.finish()
        assert [c.identification_number for c in batch.customers] == ["3", "1", "2"]


class TestReferenceSets:
    def test_states_and_platforms_deduplicated(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, transaction=_transaction("TX-1", "Completed", "Web")))
        reconciler.absorb(MappedRow(row_number=2, transaction=_transaction("TX-2", "Completed", "Web")))
        reconciler.absorb(MappedRow(row_number=3, transaction=_transaction("TX-3", "Pending", "Mobile")))

        batch = reconciler.finish()
        assert set(batch.states) == {"Completed", "Pending"}
        assert set(batch.platforms) == {"Web", "Mobile"}

    def test_duplicate_transaction_rows_still_contribute_names(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, transaction=_transaction("TX-1", "Completed", "Web")))
        reconciler.absorb(MappedRow(row_number=2, transaction=_transaction("TX-1", "Failed", "Mobile")))

        batch = reconciler.finish()
        assert len(batch.transactions) == 1
        assert set(batch.states) == {"Completed", "Failed"}
        assert set(batch.platforms) == {"Web", "Mobile"}

    def test_transaction_without_platform_adds_no_platform(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, transaction=_transaction("TX-1")))
        batch = reconciler.finish()
        assert batch.platforms == ()
        assert batch.states == ("Pending",)

    def test_rows_without_transaction_add_no_names(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, customer=_customer("1")))
        batch = reconciler.finish()
        assert batch.states == ()
        assert batch.platforms == ()


class TestLifecycle:
    def test_counts(self):
        reconciler = EntityReconciler()
        reconciler.absorb(
            MappedRow(
                row_number=1,
                customer=_customer("1"),
                invoice=_invoice("INV-1", "1"),
                transaction=_transaction("TX-1", "Completed", "Web", "INV-1"),
            )
        )
        assert reconciler.finish().counts() == {
            "customers": 1,
            "invoices": 1,
            "transactions": 1,
            "platforms": 1,
            "states": 1,
        }

    def test_absorb_after_finish_raises(self):
        reconciler = EntityReconciler()
        reconciler.finish()
        with pytest.raises(ReconcilerClosedError):
            reconciler.absorb(MappedRow(row_number=1, customer=_customer("1")))

    def test_finish_twice_raises(self):
        reconciler = EntityReconciler()
        reconciler.finish()
        with pytest.raises(ReconcilerClosedError):
            reconciler.finish()

    def test_batch_collections_are_tuples(self):
        reconciler = EntityReconciler()
        reconciler.absorb(MappedRow(row_number=1, customer=_customer("1")))
        batch = reconciler.finish()
        assert isinstance(batch.customers, tuple)
        assert isinstance(batch.states, tuple)

    def test_absorb_rows_maps_and_counts_skips(self, deterministic_clock, captured_logs):
        rows = [
            {"identification_number": "1", "invoice_number": "INV-1"},
            {"identification_number": "1", "email": ["bad"]},
            {"transaction_id": "TX-1", "transaction_state": "Completed"},
        ]
        reconciler = EntityReconciler()
        reconciler.absorb_rows(rows, RowMapper(clock=deterministic_clock))

        assert reconciler.rows_absorbed == 3
        assert reconciler.rows_skipped == 1
        batch = reconciler.finish()
        assert batch.counts() == {
            "customers": 1,
            "invoices": 1,
            "transactions": 1,
            "platforms": 0,
            "states": 1,
        }
        reconciled = [r for r in captured_logs() if r["message"] == "batch_reconciled"]
        assert reconciled and reconciled[0]["rows_skipped"] == 1
