"""
Module: billing_kernel.models.invoice
Responsibility: Invoices, optionally linked to the transaction that paid them.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - number_invoice is unique.
    - id_transaction_int is nullable: an invoice with no matching
      transaction row in the export is stored unlinked.
"""

from decimal import Decimal

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import (
    MoneyType,
    NaturalKeyType,
    ShortTextType,
    SurrogateKeyType,
)


class Invoice(Base):
    """An invoice keyed by its invoice number."""

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(
        "id_invoice_int", SurrogateKeyType, primary_key=True, autoincrement=True
    )
    number: Mapped[str] = mapped_column("number_invoice", NaturalKeyType, unique=True, nullable=False)
    period: Mapped[str] = mapped_column("invoice_period", ShortTextType, nullable=False)
    invoiced_amount: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    amount_paid: Mapped[Decimal] = mapped_column(MoneyType, nullable=False, default=Decimal("0"))
    transaction_id: Mapped[int | None] = mapped_column(
        "id_transaction_int",
        SurrogateKeyType,
        ForeignKey("transactions.id_transaction_int"),
        nullable=True,
    )

    @property
    def outstanding(self) -> Decimal:
        return (self.invoiced_amount or Decimal("0")) - (self.amount_paid or Decimal("0"))

    def __repr__(self) -> str:
        return f"<Invoice {self.number}: {self.invoiced_amount}>"
