"""
Module: billing_kernel.models.customer
Responsibility: Customers, optionally linked to their invoice.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - identification_number is unique.
    - id_invoice_int is nullable: a customer with no invoice in the export is
      stored unlinked.
"""

from datetime import datetime

from sqlalchemy import ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import NaturalKeyType, ShortTextType, SurrogateKeyType


class Customer(Base):
    """A customer keyed by identification number."""

    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(
        "id_customer_int", SurrogateKeyType, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column("name_customer", ShortTextType, nullable=False)
    identification_number: Mapped[str] = mapped_column(NaturalKeyType, unique=True, nullable=False)
    address: Mapped[str] = mapped_column(ShortTextType, nullable=False)
    phone: Mapped[str] = mapped_column(ShortTextType, nullable=False)
    email: Mapped[str] = mapped_column(ShortTextType, nullable=False)
    invoice_id: Mapped[int | None] = mapped_column(
        "id_invoice_int",
        SurrogateKeyType,
        ForeignKey("invoices.id_invoice_int"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<Customer {self.identification_number}: {self.name}>"
