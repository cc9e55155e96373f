"""
Dependency-ordered loader: ReconciledBatch -> six tables, one transaction.

Stages, in order, inside a single session_scope():

    references            insert-if-absent states and platforms, re-read ids
    transactions          insert, capture generated ids
    transaction_platforms join rows for transactions naming a known platform
    invoices              link to the first transaction carrying the number
    customers             link to the first invoice carrying the identification

Surrogate keys only exist once a stage has been flushed, so each stage
flushes before the next resolves its links.  Links resolve through natural
key indexes built in discovery order, which gives the same answer as a
first-match scan.  A missing link is stored as NULL, never an error.

Any exception rolls the whole run back.  The failing stage is logged as
``load_stage_failed`` and the exception propagates with its type unchanged,
carrying a ``load stage: <name>`` note.

Not safe for concurrent runs against the same tables; callers serialize.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from sqlalchemy import Table, insert, select
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session, sessionmaker

from billing_ingestion.domain.types import LoadResult, ReconciledBatch
from billing_kernel.db.engine import session_scope
from billing_kernel.logging_config import LogContext, get_logger
from billing_kernel.models import (
    Customer,
    Invoice,
    Platform,
    State,
    Transaction,
    TransactionPlatform,
)

logger = get_logger("ingestion.dependency_loader")


@dataclass(frozen=True)
class ReferenceKeys:
    """Name -> surrogate key lookups for states and platforms."""

    state_ids: dict[str, int] = field(default_factory=dict)
    platform_ids: dict[str, int] = field(default_factory=dict)
    states_inserted: int = 0
    platforms_inserted: int = 0


# -----------------------------------------------------------------------------
# Insert-if-absent
# -----------------------------------------------------------------------------


def _insert_ignoring_duplicates(session: Session, table: Table, column: str, names: list[str]):
    """INSERT that skips rows whose unique ``column`` value already exists."""
    rows = [{column: name} for name in names]
    dialect = session.get_bind().dialect.name

    if dialect == "postgresql":
        stmt = postgresql.insert(table).on_conflict_do_nothing(index_elements=[column])
    elif dialect == "sqlite":
        stmt = sqlite.insert(table).on_conflict_do_nothing(index_elements=[column])
    elif dialect in ("mysql", "mariadb"):
        stmt = mysql.insert(table).prefix_with("IGNORE")
    else:
        stmt = insert(table)
    session.execute(stmt, rows)


def _ensure_names(session: Session, model, names: Iterable[str]) -> tuple[dict[str, int], int]:
    """Insert missing names into a reference table; return (name -> id, inserted count)."""
    wanted = list(dict.fromkeys(names))
    if not wanted:
        return {}, 0

    existing = set(session.scalars(select(model.name).where(model.name.in_(wanted))))
    missing = [name for name in wanted if name not in existing]
    if missing:
        table = model.__table__
        _insert_ignoring_duplicates(session, table, model.name.property.columns[0].name, missing)

    lookup = {
        name: key
        for name, key in session.execute(
            select(model.name, model.id).where(model.name.in_(wanted))
        )
    }
    return lookup, len(missing)


def ensure_reference_rows(
    session: Session,
    states: Iterable[str],
    platforms: Iterable[str],
) -> ReferenceKeys:
    """
    Insert-if-absent every state and platform name, then re-read their keys.

    Idempotent: calling it again with the same names inserts nothing.
    Does not commit; the caller owns the transaction.
    """
    state_ids, states_inserted = _ensure_names(session, State, states)
    platform_ids, platforms_inserted = _ensure_names(session, Platform, platforms)
    return ReferenceKeys(
        state_ids=state_ids,
        platform_ids=platform_ids,
        states_inserted=states_inserted,
        platforms_inserted=platforms_inserted,
    )


# -----------------------------------------------------------------------------
# Loader
# -----------------------------------------------------------------------------


@contextmanager
def _stage(name: str) -> Iterator[None]:
    with LogContext.bind(stage=name):
        try:
            yield
        except Exception as exc:
            logger.error(
                "load_stage_failed",
                extra={"failed_stage": name, "error_type": type(exc).__name__},
                exc_info=True,
            )
            exc.add_note(f"load stage: {name}")
            raise


class DependencyOrderedLoader:
    """
    Persists a reconciled batch in foreign-key dependency order.

    Owns its unit of work: every load() opens one session_scope() and
    commits only after all five stages succeed.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def load(self, batch: ReconciledBatch) -> LoadResult:
        """
        Write the batch.

        Raises:
            Whatever the datastore raised (IntegrityError, OperationalError,
            ...), after the transaction has been rolled back.
        """
        with session_scope(self._session_factory) as session:
            result = self._load(session, batch)

        logger.info(
            "load_committed",
            extra={
                "states_inserted": result.states_inserted,
                "platforms_inserted": result.platforms_inserted,
                "transactions_inserted": result.transactions_inserted,
                "transaction_platforms_inserted": result.transaction_platforms_inserted,
                "invoices_inserted": result.invoices_inserted,
                "customers_inserted": result.customers_inserted,
            },
        )
        return result

    def _load(self, session: Session, batch: ReconciledBatch) -> LoadResult:
        with _stage("references"):
            refs = ensure_reference_rows(session, batch.states, batch.platforms)
            self._completed("references", states=refs.states_inserted, platforms=refs.platforms_inserted)

        with _stage("transactions"):
            transactions = [
                Transaction(
                    external_id=record.external_id,
                    occurred_at=record.occurred_at,
                    amount=record.amount,
                    transaction_type=record.transaction_type,
                    state_id=refs.state_ids.get(record.state_name),
                )
                for record in batch.transactions
            ]
            session.add_all(transactions)
            session.flush()
            transaction_ids = {t.external_id: t.id for t in transactions}
            self._completed("transactions", rows=len(transactions))

        with _stage("transaction_platforms"):
            links = [
                TransactionPlatform(
                    transaction_id=transaction_ids[record.external_id],
                    platform_id=refs.platform_ids[record.platform_name],
                )
                for record in batch.transactions
                if record.platform_name is not None and record.platform_name in refs.platform_ids
            ]
            session.add_all(links)
            session.flush()
            self._completed("transaction_platforms", rows=len(links))

        with _stage("invoices"):
            transaction_by_invoice: dict[str, int] = {}
            for record in batch.transactions:
                if record.invoice_number is not None:
                    transaction_by_invoice.setdefault(
                        record.invoice_number, transaction_ids[record.external_id]
                    )
            invoices = [
                Invoice(
                    number=record.number,
                    period=record.period,
                    invoiced_amount=record.invoiced_amount,
                    amount_paid=record.amount_paid,
                    transaction_id=transaction_by_invoice.get(record.number),
                )
                for record in batch.invoices
            ]
            session.add_all(invoices)
            session.flush()
            invoice_ids = {i.number: i.id for i in invoices}
            self._completed("invoices", rows=len(invoices))

        with _stage("customers"):
            invoice_by_customer: dict[str, int] = {}
            for record in batch.invoices:
                if record.customer_identification is not None:
                    invoice_by_customer.setdefault(
                        record.customer_identification, invoice_ids[record.number]
                    )
            customers = [
                Customer(
                    identification_number=record.identification_number,
                    name=record.name,
                    address=record.address,
                    phone=record.phone,
                    email=record.email,
                    invoice_id=invoice_by_customer.get(record.identification_number),
                )
                for record in batch.customers
            ]
            session.add_all(customers)
            session.flush()
            self._completed("customers", rows=len(customers))

        return LoadResult(
            states_inserted=refs.states_inserted,
            platforms_inserted=refs.platforms_inserted,
            transactions_inserted=len(transactions),
            transaction_platforms_inserted=len(links),
            invoices_inserted=len(invoices),
            customers_inserted=len(customers),
            state_ids=dict(refs.state_ids),
            platform_ids=dict(refs.platform_ids),
            transaction_ids=transaction_ids,
            invoice_ids=invoice_ids,
            customer_ids={c.identification_number: c.id for c in customers},
        )

    @staticmethod
    def _completed(stage: str, **counts: int) -> None:
        logger.info("stage_completed", extra={"completed_stage": stage, **counts})
