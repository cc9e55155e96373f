"""
Module: billing_kernel.models.transaction
Responsibility: Payment transactions and their platform links.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - id_of_transaction (the export's transaction id) is unique.
    - A transaction points at most at one state; the state FK is nullable
      so an unrecognized state name never blocks a load.
    - transaction_platforms holds at most one row per (transaction, platform).
"""

from datetime import datetime
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


class Transaction(Base):
    """One payment transaction, keyed by the export's transaction id."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(
        "id_transaction_int", SurrogateKeyType, primary_key=True, autoincrement=True
    )
    external_id: Mapped[str] = mapped_column(
        "id_of_transaction", NaturalKeyType, unique=True, nullable=False
    )
    occurred_at: Mapped[datetime] = mapped_column("date_time", nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        "amount_transaction", MoneyType, nullable=False, default=Decimal("0")
    )
    transaction_type: Mapped[str] = mapped_column("type_transaction", ShortTextType, nullable=False)
    state_id: Mapped[int | None] = mapped_column(
        "id_state_int",
        SurrogateKeyType,
        ForeignKey("states.id_state_int"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Transaction {self.external_id}: {self.amount}>"


class TransactionPlatform(Base):
    """Join row: the platform a transaction was made through."""

    __tablename__ = "transaction_platforms"

    transaction_id: Mapped[int] = mapped_column(
        "id_transaction_int",
        SurrogateKeyType,
        ForeignKey("transactions.id_transaction_int"),
        primary_key=True,
    )
    platform_id: Mapped[int] = mapped_column(
        "id_platform_int",
        SurrogateKeyType,
        ForeignKey("platforms.id_platform_int"),
        primary_key=True,
    )

    def __repr__(self) -> str:
        return f"<TransactionPlatform {self.transaction_id}->{self.platform_id}>"
