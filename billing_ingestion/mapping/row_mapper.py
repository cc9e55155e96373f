"""
Row mapper: one raw export row -> customer, invoice and transaction partials.

Exports arrive with either of two header vocabularies, the localized
(Spanish) labels or snake_case machine labels, and the mapper reads both
without configuration.  For every attribute the localized label is tried
first, then the machine label, then a default.  Blank cells count as absent.

A row without an identification number, invoice number or transaction id
simply has no partial of that kind.  A malformed cell skips only the entity
that needed it: the skip is logged as ``row_entity_skipped`` and recorded
in ``MappedRow.skipped``.  map_row() never raises for bad cell content.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Mapping

from billing_config.schema import IngestionDefaults
from billing_ingestion.domain.types import (
    CustomerRecord,
    EntityKind,
    InvoiceRecord,
    MappedRow,
    TransactionRecord,
)
from billing_ingestion.mapping.coercion import first_present, parse_amount
from billing_ingestion.mapping.dates import normalize_datetime
from billing_kernel.domain.clock import Clock, SystemClock
from billing_kernel.exceptions import RowExtractionError
from billing_kernel.logging_config import get_logger

logger = get_logger("ingestion.row_mapper")

# -----------------------------------------------------------------------------
# Header labels: (localized, machine), in lookup order
# -----------------------------------------------------------------------------

IDENTIFICATION = ("Número de Identificación", "identification_number")
CUSTOMER_NAME = ("Nombre del Cliente", "customer_name")
ADDRESS = ("Dirección", "address")
PHONE = ("Teléfono", "phone")
EMAIL = ("Correo Electrónico", "email")

INVOICE_NUMBER = ("Número de Factura", "invoice_number")
INVOICE_PERIOD = ("Periodo de Facturación", "invoice_period")
INVOICED_AMOUNT = ("Monto Facturado", "invoiced_amount")
AMOUNT_PAID = ("Monto Pagado", "amount_paid")

TRANSACTION_ID = ("ID de la Transacción", "transaction_id")
TRANSACTION_DATE = ("Fecha y Hora de la Transacción", "transaction_date")
TRANSACTION_AMOUNT = ("Monto de la Transacción", "transaction_amount")
TRANSACTION_TYPE = ("Tipo de Transacción", "transaction_type")
TRANSACTION_STATE = ("Estado de la Transacción", "transaction_state")
PLATFORM = ("Plataforma Utilizada", "platform")

NOT_AVAILABLE = "N/A"


def _amount(row: Mapping[str, Any], labels: tuple[str, str]) -> Decimal:
    for label in labels:
        value = row.get(label)
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        return parse_amount(value, field=label)
    return parse_amount(None)


class RowMapper:
    """
    Maps raw rows to partial entity records.

    Args:
        defaults: Fallback transaction type, state and platform.
        clock: Used when a transaction timestamp is missing or unparsable.
    """

    def __init__(self, defaults: IngestionDefaults | None = None, clock: Clock | None = None):
        self._defaults = defaults or IngestionDefaults()
        self._clock = clock or SystemClock()

    def map_row(self, row: Mapping[str, Any], row_number: int) -> MappedRow:
        skipped: list[EntityKind] = []
        customer = self._guarded(EntityKind.CUSTOMER, row_number, skipped, self._customer, row)
        invoice = self._guarded(EntityKind.INVOICE, row_number, skipped, self._invoice, row)
        transaction = self._guarded(
            EntityKind.TRANSACTION, row_number, skipped, self._transaction, row
        )
        return MappedRow(
            row_number=row_number,
            customer=customer,
            invoice=invoice,
            transaction=transaction,
            skipped=tuple(skipped),
        )

    def _guarded(
        self,
        kind: EntityKind,
        row_number: int,
        skipped: list[EntityKind],
        build: Callable[[Mapping[str, Any]], Any],
        row: Mapping[str, Any],
    ):
        try:
            return build(row)
        except RowExtractionError as exc:
            skipped.append(kind)
            logger.warning(
                "row_entity_skipped",
                extra={
                    "row_number": row_number,
                    "entity": kind.value,
                    "field": exc.field,
                    "reason": exc.reason,
                },
            )
            return None

    @staticmethod
    def _link_key(row: Mapping[str, Any], labels: tuple[str, str]) -> str | None:
        # A malformed key is reported by the entity that owns it
        try:
            return first_present(row, labels)
        except RowExtractionError:
            return None

    def _customer(self, row: Mapping[str, Any]) -> CustomerRecord | None:
        identification = first_present(row, IDENTIFICATION)
        if identification is None:
            return None
        return CustomerRecord(
            identification_number=identification,
            name=first_present(row, CUSTOMER_NAME) or f"Customer {identification}",
            address=first_present(row, ADDRESS) or NOT_AVAILABLE,
            phone=first_present(row, PHONE) or NOT_AVAILABLE,
            email=first_present(row, EMAIL) or f"customer{identification}@example.com",
        )

    def _invoice(self, row: Mapping[str, Any]) -> InvoiceRecord | None:
        number = first_present(row, INVOICE_NUMBER)
        if number is None:
            return None
        return InvoiceRecord(
            number=number,
            period=first_present(row, INVOICE_PERIOD) or NOT_AVAILABLE,
            invoiced_amount=_amount(row, INVOICED_AMOUNT),
            amount_paid=_amount(row, AMOUNT_PAID),
            customer_identification=self._link_key(row, IDENTIFICATION),
        )

    def _transaction(self, row: Mapping[str, Any]) -> TransactionRecord | None:
        external_id = first_present(row, TRANSACTION_ID)
        if external_id is None:
            return None
        return TransactionRecord(
            external_id=external_id,
            occurred_at=normalize_datetime(first_present(row, TRANSACTION_DATE), self._clock),
            amount=_amount(row, TRANSACTION_AMOUNT),
            transaction_type=(
                first_present(row, TRANSACTION_TYPE) or self._defaults.default_transaction_type
            ),
            state_name=first_present(row, TRANSACTION_STATE) or self._defaults.default_state,
            platform_name=first_present(row, PLATFORM) or self._defaults.default_platform,
            invoice_number=self._link_key(row, INVOICE_NUMBER),
        )
