"""
Module: billing_kernel.db.types
Responsibility: Column types shared by the billing models, so every table
    declares amounts, names and surrogate keys identically.
Architecture position: Kernel > DB.  May be imported by models/ and
    selectors/.  MUST NOT import from either.

Invariants enforced:
    - No floats for money: amounts are Decimal stored as Numeric(38, 2).
      round_money() quantizes in the default 28-digit decimal context, so
      every amount parse_amount() can return (at most 26 integer digits)
      fits the column.
    - Surrogate keys are datastore-generated integers.  BIGINT on servers,
      INTEGER on SQLite (only ``INTEGER PRIMARY KEY`` autoincrements there).
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import BigInteger, Integer, Numeric, String

MONEY_PRECISION = 38
MONEY_DECIMAL_PLACES = 2

# Monetary amount (invoice and transaction amounts)
MoneyType = Numeric(MONEY_PRECISION, MONEY_DECIMAL_PLACES)

# Generated primary / foreign key
SurrogateKeyType = BigInteger().with_variant(Integer(), "sqlite")

# Natural keys from the export (identification, invoice, transaction ids)
NaturalKeyType = String(100)

# Reference names (state, platform)
ReferenceNameType = String(100)

# Free text columns (names, addresses, emails)
ShortTextType = String(255)


def round_money(value: Decimal) -> Decimal:
    """Quantize an amount to the stored precision (half-up)."""
    return value.quantize(Decimal(1).scaleb(-MONEY_DECIMAL_PLACES), rounding=ROUND_HALF_UP)
