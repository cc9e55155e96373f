"""Tests for the bilingual row mapper."""

from datetime import datetime
from decimal import Decimal

import pytest

from billing_config.schema import IngestionDefaults
from billing_ingestion.domain.types import EntityKind
from billing_ingestion.mapping.row_mapper import RowMapper


@pytest.fixture
def mapper(deterministic_clock):
    return RowMapper(IngestionDefaults(), clock=deterministic_clock)


MACHINE_ROW = {
    "transaction_id": "TX-9",
    "transaction_date": "2024/05/02 09:15:00",
    "transaction_amount": "250.75",
    "transaction_state": "Failed",
    "transaction_type": "Refund",
    "customer_name": "Luis Pérez",
    "identification_number": "987654",
    "address": "Av. 1",
    "phone": "555-0199",
    "email": "luis@example.com",
    "platform": "Mobile",
    "invoice_number": "INV-9",
    "invoice_period": "2024-05",
    "invoiced_amount": "300",
    "amount_paid": "250.75",
}


class TestLocalizedLabels:
    def test_full_row_maps_all_three_partials(self, mapper, scenario_row):
        mapped = mapper.map_row(scenario_row, 1)

        assert mapped.row_number == 1
        assert mapped.skipped == ()
        assert mapped.customer.identification_number == "123456"
        assert mapped.customer.name == "Ana Gómez"
        assert mapped.customer.email == "ana@example.com"

        assert mapped.invoice.number == "INV-1"
        assert mapped.invoice.period == "2024-06"
        assert mapped.invoice.invoiced_amount == Decimal("100.00")
        assert mapped.invoice.amount_paid == Decimal("40.00")
        assert mapped.invoice.customer_identification == "123456"

        tx = mapped.transaction
        assert tx.external_id == "TX-1"
        assert tx.occurred_at == datetime(2024, 6, 1, 14, 30, 0)
        assert tx.amount == Decimal("40.00")
        assert tx.state_name == "Completed"
        assert tx.platform_name == "Web"
        assert tx.transaction_type == "Invoice payment"
        assert tx.invoice_number == "INV-1"

    def test_localized_label_beats_machine_label(self, mapper, scenario_row):
        row = {**scenario_row, "customer_name": "Machine Name", "platform": "Kiosk"}
        mapped = mapper.map_row(row, 1)
        assert mapped.customer.name == "Ana Gómez"
        assert mapped.transaction.platform_name == "Web"

    def test_blank_localized_value_falls_back(self, mapper, scenario_row):
        row = {**scenario_row, "Nombre del Cliente": "", "customer_name": "Machine Name"}
        assert mapper.map_row(row, 1).customer.name == "Machine Name"


class TestMachineLabels:
    def test_machine_vocabulary_maps_without_configuration(self, mapper):
        mapped = mapper.map_row(MACHINE_ROW, 3)

        assert mapped.customer.identification_number == "987654"
        assert mapped.invoice.number == "INV-9"
        assert mapped.invoice.invoiced_amount == Decimal("300.00")
        assert mapped.transaction.external_id == "TX-9"
        assert mapped.transaction.occurred_at == datetime(2024, 5, 2, 9, 15, 0)
        assert mapped.transaction.state_name == "Failed"
        assert mapped.transaction.platform_name == "Mobile"
        assert mapped.transaction.transaction_type == "Refund"


class TestDefaults:
    def test_customer_defaults(self, mapper):
        mapped = mapper.map_row({"identification_number": "42"}, 1)
        customer = mapped.customer
        assert customer.name == "Customer 42"
        assert customer.address == "N/A"
        assert customer.phone == "N/A"
        assert customer.email == "customer42@example.com"

    def test_invoice_defaults(self, mapper):
        invoice = mapper.map_row({"invoice_number": "INV-2"}, 1).invoice
        assert invoice.period == "N/A"
        assert invoice.invoiced_amount == Decimal("0")
        assert invoice.amount_paid == Decimal("0")
        assert invoice.customer_identification is None

    def test_transaction_defaults(self, mapper, deterministic_clock):
        tx = mapper.map_row({"transaction_id": "TX-2"}, 1).transaction
        assert tx.state_name == "Pending"
        assert tx.transaction_type == "Payment"
        assert tx.platform_name is None
        assert tx.amount == Decimal("0")
        assert tx.occurred_at == deterministic_clock.local_now()
        assert tx.invoice_number is None

    def test_configured_defaults_are_used(self, deterministic_clock):
        defaults = IngestionDefaults(
            default_state="Pendiente",
            default_platform="Unknown",
            default_transaction_type="Pago",
        )
        tx = RowMapper(defaults, clock=deterministic_clock).map_row({"transaction_id": "TX-3"}, 1).transaction
        assert tx.state_name == "Pendiente"
        assert tx.platform_name == "Unknown"
        assert tx.transaction_type == "Pago"

    def test_unparsable_amount_is_zero(self, mapper, scenario_row):
        row = {**scenario_row, "Monto de la Transacción": "cuarenta"}
        assert mapper.map_row(row, 1).transaction.amount == Decimal("0")


class TestMissingKeys:
    def test_row_without_transaction_id_has_no_transaction(self, mapper, scenario_row):
        row = {**scenario_row, "ID de la Transacción": ""}
        mapped = mapper.map_row(row, 1)
        assert mapped.transaction is None
        assert mapped.customer is not None
        assert mapped.invoice is not None
        assert mapped.skipped == ()

    def test_row_without_any_key_is_empty(self, mapper):
        mapped = mapper.map_row({"Nombre del Cliente": "Nobody"}, 1)
        assert mapped.is_empty
        assert mapped.skipped == ()


class TestMalformedCells:
    def test_malformed_cell_skips_only_owning_entity(self, mapper, scenario_row, captured_logs):
        row = {**scenario_row, "Correo Electrónico": ["a@example.com", "b@example.com"]}
        mapped = mapper.map_row(row, 7)

        assert mapped.customer is None
        assert mapped.invoice is not None
        assert mapped.transaction is not None
        assert mapped.skipped == (EntityKind.CUSTOMER,)

        skips = [r for r in captured_logs() if r["message"] == "row_entity_skipped"]
        assert len(skips) == 1
        assert skips[0]["level"] == "WARNING"
        assert skips[0]["row_number"] == 7
        assert skips[0]["entity"] == "customer"
        assert skips[0]["field"] == "Correo Electrónico"

    def test_malformed_key_skips_entity_but_not_links(self, mapper, scenario_row):
        row = {**scenario_row, "Número de Factura": {"n": "INV-1"}}
        mapped = mapper.map_row(row, 2)
        assert mapped.invoice is None
        assert mapped.transaction is not None
        assert mapped.transaction.invoice_number is None
        assert mapped.skipped == (EntityKind.INVOICE,)

    def test_malformed_amount_skips_transaction(self, mapper, scenario_row):
        row = {**scenario_row, "Monto de la Transacción": b"40"}
        mapped = mapper.map_row(row, 2)
        assert mapped.transaction is None
        assert EntityKind.TRANSACTION in mapped.skipped

    @pytest.mark.parametrize("date_text", ["0001-01-01T00:00:00+05:00", "9999-12-31T23:30:00-05:00"])
    def test_offset_date_beyond_calendar_uses_clock(self, mapper, deterministic_clock, date_text):
        row = {"transaction_id": "TX-1", "transaction_date": date_text, "transaction_amount": "40.00"}
        mapped = mapper.map_row(row, 3)

        assert mapped.skipped == ()
        assert mapped.transaction.occurred_at == deterministic_clock.local_now()
        assert mapped.transaction.amount == Decimal("40.00")

    def test_amount_beyond_decimal_range_is_zero(self, mapper):
        row = {
            "transaction_id": "TX-1",
            "transaction_date": "2024-06-01 14:30:00",
            "transaction_amount": "9e99999999999999999999",
        }
        mapped = mapper.map_row(row, 3)

        assert mapped.skipped == ()
        assert mapped.transaction.amount == Decimal("0")
        assert mapped.transaction.occurred_at == datetime(2024, 6, 1, 14, 30)
