"""
Module: billing_kernel.selectors.report_selector
Responsibility: Read-only reporting queries over the loaded billing tables:
    what each customer has paid, which invoices are still open, what went
    through a given platform, and a dashboard roll-up.
Architecture position: Kernel > Selectors.  May import from models/, db/ and
    selectors/base.py.  MUST NOT import from billing_ingestion.

Invariants enforced:
    - Amounts are Decimal quantized to two places (never float).
    - Every query uses outer joins along the nullable links, so unlinked
      customers, invoices and transactions still appear where relevant.

Failure modes:
    - Returns empty tuples and zero totals on an empty database.
"""

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from billing_kernel.db.types import round_money
from billing_kernel.models import (
    Customer,
    Invoice,
    Platform,
    State,
    Transaction,
    TransactionPlatform,
)
from billing_kernel.selectors.base import BaseSelector


def _money(value) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return round_money(Decimal(str(value)))


@dataclass(frozen=True)
class CustomerPaidTotal:
    """Completed payments attributed to one customer."""

    identification_number: str
    name: str
    email: str
    total_paid: Decimal
    completed_transactions: int


@dataclass(frozen=True)
class PendingInvoice:
    """An invoice whose invoiced amount exceeds the amount paid."""

    number: str
    period: str
    invoiced_amount: Decimal
    amount_paid: Decimal
    customer_identification: str | None
    customer_name: str | None
    transaction_external_id: str | None
    state_name: str | None
    platform_names: tuple[str, ...]

    @property
    def pending_amount(self) -> Decimal:
        return self.invoiced_amount - self.amount_paid


@dataclass(frozen=True)
class PlatformTransaction:
    """One transaction made through a platform."""

    external_id: str
    occurred_at: datetime
    amount: Decimal
    transaction_type: str
    state_name: str | None
    invoice_number: str | None
    customer_name: str | None


@dataclass(frozen=True)
class PlatformTransactions:
    """All transactions for a platform plus their total."""

    platform_name: str
    transactions: tuple[PlatformTransaction, ...]
    total_amount: Decimal

    @property
    def count(self) -> int:
        return len(self.transactions)


@dataclass(frozen=True)
class NamedTotal:
    """Transaction count and amount grouped under a state or platform name."""

    name: str
    count: int
    total_amount: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    """Table counts and headline amounts."""

    customers: int
    invoices: int
    transactions: int
    platforms: int
    states: int
    completed_amount: Decimal
    pending_amount: Decimal
    by_state: tuple[NamedTotal, ...]
    by_platform: tuple[NamedTotal, ...]


class ReportSelector(BaseSelector):
    """
    Selector for billing reports.

    Contract:
        The "completed" state is identified by name; callers pass the name
        their exports use (``IngestionDefaults.completed_state``).
    """

    def __init__(self, session: Session):
        super().__init__(session)

    def total_paid_by_customer(self, completed_state: str) -> tuple[CustomerPaidTotal, ...]:
        """
        Sum of completed transaction amounts per customer.

        Customers with no completed transaction are included with zero.
        Ordered by total paid (descending), then identification number.
        """
        is_completed = State.name == completed_state
        total = func.coalesce(
            func.sum(case((is_completed, Transaction.amount), else_=0)), 0
        )
        completed_count = func.count(case((is_completed, Transaction.id)))
        stmt = (
            select(
                Customer.identification_number,
                Customer.name,
                Customer.email,
                total.label("total_paid"),
                completed_count.label("completed_transactions"),
            )
            .select_from(Customer)
            .outerjoin(Invoice, Customer.invoice_id == Invoice.id)
            .outerjoin(Transaction, Invoice.transaction_id == Transaction.id)
            .outerjoin(State, Transaction.state_id == State.id)
            .group_by(
                Customer.id,
                Customer.identification_number,
                Customer.name,
                Customer.email,
            )
        )
        results = [
            CustomerPaidTotal(
                identification_number=row.identification_number,
                name=row.name,
                email=row.email,
                total_paid=_money(row.total_paid),
                completed_transactions=int(row.completed_transactions or 0),
            )
            for row in self.session.execute(stmt)
        ]
        results.sort(key=lambda r: (-r.total_paid, r.identification_number))
        return tuple(results)

    def pending_invoices(self) -> tuple[PendingInvoice, ...]:
        """
        Invoices with an outstanding balance, with customer, state and platforms.

        Ordered by period (descending), pending amount (descending), number.
        """
        stmt = (
            select(
                Invoice.number,
                Invoice.period,
                Invoice.invoiced_amount,
                Invoice.amount_paid,
                Customer.identification_number,
                Customer.name.label("customer_name"),
                Transaction.id.label("transaction_id"),
                Transaction.external_id,
                State.name.label("state_name"),
            )
            .select_from(Invoice)
            .outerjoin(Customer, Customer.invoice_id == Invoice.id)
            .outerjoin(Transaction, Invoice.transaction_id == Transaction.id)
            .outerjoin(State, Transaction.state_id == State.id)
            .where(Invoice.invoiced_amount > func.coalesce(Invoice.amount_paid, 0))
        )
        rows = list(self.session.execute(stmt))
        platforms = self._platform_names_by_transaction(
            {row.transaction_id for row in rows if row.transaction_id is not None}
        )

        results = [
            PendingInvoice(
                number=row.number,
                period=row.period,
                invoiced_amount=_money(row.invoiced_amount),
                amount_paid=_money(row.amount_paid),
                customer_identification=row.identification_number,
                customer_name=row.customer_name,
                transaction_external_id=row.external_id,
                state_name=row.state_name,
                platform_names=platforms.get(row.transaction_id, ()),
            )
            for row in rows
        ]
        results.sort(key=lambda r: r.number)
        results.sort(key=lambda r: (r.period, r.pending_amount), reverse=True)
        return tuple(results)

    def transactions_by_platform(self, platform_name: str) -> PlatformTransactions:
        """Transactions made through ``platform_name``, newest first."""
        stmt = (
            select(
                Transaction.external_id,
                Transaction.occurred_at,
                Transaction.amount,
                Transaction.transaction_type,
                State.name.label("state_name"),
                Invoice.number.label("invoice_number"),
                Customer.name.label("customer_name"),
            )
            .select_from(Transaction)
            .join(TransactionPlatform, TransactionPlatform.transaction_id == Transaction.id)
            .join(Platform, TransactionPlatform.platform_id == Platform.id)
            .outerjoin(State, Transaction.state_id == State.id)
            .outerjoin(Invoice, Invoice.transaction_id == Transaction.id)
            .outerjoin(Customer, Customer.invoice_id == Invoice.id)
            .where(Platform.name == platform_name)
            .order_by(Transaction.occurred_at.desc(), Transaction.external_id)
        )
        transactions = tuple(
            PlatformTransaction(
                external_id=row.external_id,
                occurred_at=row.occurred_at,
                amount=_money(row.amount),
                transaction_type=row.transaction_type,
                state_name=row.state_name,
                invoice_number=row.invoice_number,
                customer_name=row.customer_name,
            )
            for row in self.session.execute(stmt)
        )
        total = sum((t.amount for t in transactions), Decimal("0.00"))
        return PlatformTransactions(
            platform_name=platform_name,
            transactions=transactions,
            total_amount=_money(total),
        )

    def platform_names(self) -> tuple[str, ...]:
        """All platform names, sorted."""
        stmt = select(Platform.name).order_by(Platform.name)
        return tuple(self.session.scalars(stmt))

    def dashboard_summary(self, completed_state: str) -> DashboardSummary:
        """Counts per table, completed and pending amounts, per-state and per-platform totals."""

        def count(model) -> int:
            return int(self.session.scalar(select(func.count()).select_from(model)) or 0)

        completed_amount = self.session.scalar(
            select(func.sum(Transaction.amount))
            .select_from(Transaction)
            .join(State, Transaction.state_id == State.id)
            .where(State.name == completed_state)
        )
        pending_amount = self.session.scalar(
            select(func.sum(Invoice.invoiced_amount - func.coalesce(Invoice.amount_paid, 0)))
            .where(Invoice.invoiced_amount > func.coalesce(Invoice.amount_paid, 0))
        )

        by_state_stmt = (
            select(
                State.name,
                func.count(Transaction.id).label("transaction_count"),
                func.sum(Transaction.amount).label("total_amount"),
            )
            .select_from(State)
            .outerjoin(Transaction, Transaction.state_id == State.id)
            .group_by(State.id, State.name)
        )
        by_platform_stmt = (
            select(
                Platform.name,
                func.count(Transaction.id).label("transaction_count"),
                func.sum(Transaction.amount).label("total_amount"),
            )
            .select_from(Platform)
            .outerjoin(TransactionPlatform, TransactionPlatform.platform_id == Platform.id)
            .outerjoin(Transaction, TransactionPlatform.transaction_id == Transaction.id)
            .group_by(Platform.id, Platform.name)
        )

        return DashboardSummary(
            customers=count(Customer),
            invoices=count(Invoice),
            transactions=count(Transaction),
            platforms=count(Platform),
            states=count(State),
            completed_amount=_money(completed_amount),
            pending_amount=_money(pending_amount),
            by_state=self._named_totals(by_state_stmt),
            by_platform=self._named_totals(by_platform_stmt),
        )

    def _named_totals(self, stmt) -> tuple[NamedTotal, ...]:
        totals = [
            NamedTotal(name=row.name, count=int(row.transaction_count or 0), total_amount=_money(row.total_amount))
            for row in self.session.execute(stmt)
        ]
        totals.sort(key=lambda t: (-t.count, t.name))
        return tuple(totals)

    def _platform_names_by_transaction(self, transaction_ids: set[int]) -> dict[int, tuple[str, ...]]:
        if not transaction_ids:
            return {}
        stmt = (
            select(TransactionPlatform.transaction_id, Platform.name)
            .select_from(TransactionPlatform)
            .join(Platform, TransactionPlatform.platform_id == Platform.id)
            .where(TransactionPlatform.transaction_id.in_(transaction_ids))
            .order_by(Platform.name)
        )
        names: dict[int, list[str]] = defaultdict(list)
        for transaction_id, name in self.session.execute(stmt):
            names[transaction_id].append(name)
        return {key: tuple(value) for key, value in names.items()}
