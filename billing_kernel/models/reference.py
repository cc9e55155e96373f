"""
Module: billing_kernel.models.reference
Responsibility: Lookup tables for transaction states and payment platforms.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Names are unique; the loader inserts them with insert-if-absent so a
      re-run never duplicates a row.

Failure modes:
    - IntegrityError on a plain INSERT of an existing name.
"""

from sqlalchemy.orm import Mapped, mapped_column

from billing_kernel.db.base import Base
from billing_kernel.db.types import ReferenceNameType, SurrogateKeyType


class State(Base):
    """Transaction state (e.g. "Completed", "Pending")."""

    __tablename__ = "states"

    id: Mapped[int] = mapped_column(
        "id_state_int", SurrogateKeyType, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(
        "state_transaction", ReferenceNameType, unique=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<State {self.name}>"


class Platform(Base):
    """Payment platform a transaction was made through (e.g. "Web")."""

    __tablename__ = "platforms"

    id: Mapped[int] = mapped_column(
        "id_platform_int", SurrogateKeyType, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(
        "name_platform", ReferenceNameType, unique=True, nullable=False
    )

    def __repr__(self) -> str:
        return f"<Platform {self.name}>"
