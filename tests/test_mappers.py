"""Tests for database mappers."""

import json
import pytest
from datetime import date, datetime, UTC
from decimal import Decimal

from fifocogs.database.models import (
    Account as ORMAccount,
    Book as ORMBook,
    Group as ORMGroup,
    Record as ORMRecord,
)
from fifocogs.database.mappers import (
    account_to_domain,
    book_to_domain,
    record_to_domain,
    record_to_properties,
)
from fifocogs.domain.entities import (
    AccountType,
    CreditNote,
    LiquidationLogEntry,
    PurchaseLogEntry,
)


def _orm_account(id, name, type):
    return ORMAccount(id=id, book_id=1, name=name, type=type, properties={}, archived=False)


def _orm_record(credit, debit, properties, amount="10"):
    return ORMRecord(
        id=7,
        book_id=1,
        date=date(2024, 1, 10),
        amount=Decimal(amount),
        credit_account=credit,
        debit_account=debit,
        description="",
        properties=properties,
        checked=False,
        locked=False,
        posted=True,
        created_at=datetime.now(UTC),
    )


BUY = _orm_account(1, "Buy", "INCOMING")
SELL = _orm_account(2, "Sell", "OUTGOING")
WIDGET = _orm_account(3, "Widget", "ASSET")
SUPPLIER = _orm_account(4, "Acme", "LIABILITY")


class TestBookMapper:
    """Tests for Book mapper."""

    def test_book_to_domain(self):
        orm_book = ORMBook(
            id=1,
            name="Inventory",
            fraction_digits=0,
            date_pattern="dd/MM/yyyy",
            collection="shop",
            properties={"inventory_book": "TRUE"},
            pending_tasks=0,
        )
        book = book_to_domain(orm_book)
        assert book.is_inventory
        assert book.fraction_digits == 0
        assert book.collection == "shop"


class TestAccountMapper:
    """Tests for Account mapper."""

    def test_account_to_domain(self):
        orm_account = _orm_account(3, "Widget", "ASSET")
        orm_account.groups = [
            ORMGroup(id=1, book_id=1, name="Goods", properties={"exc_code": "USD"}, hidden=False)
        ]
        account = account_to_domain(orm_account)
        assert account.type is AccountType.ASSET
        assert account.groups[0].properties["exc_code"] == "USD"


class TestRecordMapper:
    """Tests for Record mapper."""

    def test_purchase_defaults_to_amount(self):
        """Test missing snapshots fall back to the record amount and cost."""
        record = record_to_domain(_orm_record(BUY, WIDGET, {"total_cost": "20.00"}))

        assert record.is_purchase
        assert record.purchase.original_quantity == Decimal("10")
        assert record.purchase.good_purchase_cost == Decimal("20.00")
        assert record.purchase.liquidation_log == ()
        assert record.sale is None

    def test_purchase_logs(self):
        properties = {
            "total_cost": "12.00",
            "original_quantity": "10",
            "liquidation_log": json.dumps(
                [{"id": "9", "dt": "2024-01-20", "qt": "4", "uc": "2"}]
            ),
            "credit_note": json.dumps({"quantity": "1", "amount": "3.00"}),
            "parent_id": "5",
            "order": "2",
        }
        record = record_to_domain(_orm_record(BUY, WIDGET, properties, amount="6"))

        assert record.order == 2
        assert record.purchase.parent_id == "5"
        assert record.purchase.credit_note == CreditNote(Decimal("1"), Decimal("3.00"))
        assert record.purchase.liquidation_log == (
            LiquidationLogEntry("9", date(2024, 1, 20), Decimal("4"), Decimal("2")),
        )

    def test_single_log_object_accepted(self):
        properties = {"purchase_log": json.dumps({"id": "3", "qt": "1", "uc": "5"})}
        record = record_to_domain(_orm_record(WIDGET, SELL, properties))
        assert record.sale.purchase_log == (PurchaseLogEntry("3", Decimal("1"), Decimal("5")),)

    def test_sale(self):
        properties = {"sale_invoice": "INV-1", "sale_amount": "99.90", "order": "x"}
        record = record_to_domain(_orm_record(WIDGET, SELL, properties))

        assert record.is_sale
        assert record.sale.sale_invoice == "INV-1"
        assert record.sale.sale_amount == Decimal("99.90")
        assert record.sale.total_cost is None
        assert record.order is None

    def test_cost_of_sale_is_not_a_sale(self):
        """Test a cost-of-sale record is classified by its quantity sold."""
        cost_of_sales = _orm_account(5, "Cost of sales", "OUTGOING")
        record = record_to_domain(
            _orm_record(WIDGET, cost_of_sales, {"quantity_sold": "4", "sale_invoice": "INV-1"})
        )

        assert record.cost_of_sale.quantity_sold == Decimal("4")
        assert record.sale is None

    def test_invoice(self):
        properties = {"good": "Widget", "purchase_code": "PO-1", "quantity": " "}
        record = record_to_domain(_orm_record(WIDGET, SUPPLIER, properties))

        assert record.invoice.good == "Widget"
        assert record.invoice.purchase_code == "PO-1"
        assert record.invoice.quantity is None

    def test_plain_record(self):
        record = record_to_domain(_orm_record(WIDGET, SUPPLIER, {}))
        assert record.purchase is None
        assert record.invoice is None


class TestPropertiesMapper:
    """Tests for flattening records back into properties."""

    def test_round_trip_of_sale(self):
        properties = {
            "total_cost": "16.00",
            "purchase_log": json.dumps(
                [{"id": "1", "qt": "5", "uc": "2"}, {"id": "2", "qt": "2", "uc": "3"}]
            ),
            "sale_invoice": "INV-1",
        }
        record = record_to_domain(_orm_record(WIDGET, SELL, properties, amount="7"))

        flattened = record_to_properties(record)

        assert flattened["total_cost"] == "16.00"
        assert json.loads(flattened["purchase_log"]) == json.loads(properties["purchase_log"])
        assert "sale_amount" not in flattened
        assert "order" not in flattened

    @pytest.mark.parametrize("key", ["additional_costs", "credit_note", "parent_id"])
    def test_unset_purchase_fields_omitted(self, key):
        record = record_to_domain(_orm_record(BUY, WIDGET, {"total_cost": "5"}))
        assert key not in record_to_properties(record)
