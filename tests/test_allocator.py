"""Tests for FIFO allocation of a single sale."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from fifocogs.domain.allocator import Allocator
from fifocogs.domain.batch import BatchProcessor
from fifocogs.domain.entities import Book


@pytest.fixture
def batch(temp_store):
    return BatchProcessor(temp_store)


@pytest.fixture
def allocator(batch):
    return Allocator(Book(id=1, name="Inventory", fraction_digits=2), batch)


def test_full_consumption_of_equal_quantity(allocator, batch, buy, sell):
    """Test a purchase exactly matching the sale is consumed, not split."""
    purchase = buy("5", "10.00", "2024-01-01")
    sale = sell("5", "2024-01-02")
    purchases = [purchase]

    allocation = allocator.allocate(sale, purchases)

    assert allocation.fully_allocated
    assert allocation.purchases_consumed == 1
    assert allocation.purchases_split == 0
    assert batch.pending_creates == []
    assert purchases[0].checked is True
    assert allocation.sale.checked is True
    assert allocation.sale.sale.total_cost == Decimal("10.00")


def test_stops_once_sale_is_allocated(allocator, batch, buy, sell):
    """Test later purchases are left untouched."""
    first = buy("5", "10.00", "2024-01-01")
    second = buy("5", "10.00", "2024-01-02")
    sale = sell("5", "2024-01-03")

    allocator.allocate(sale, [first, second])

    assert second.id not in [r.id for r in batch.pending_updates]


def test_checked_purchases_are_skipped(allocator, buy, sell):
    consumed = replace(buy("5", "10.00", "2024-01-01"), checked=True)
    open_purchase = buy("5", "20.00", "2024-01-02")
    sale = sell("5", "2024-01-03")

    allocation = allocator.allocate(sale, [consumed, open_purchase])

    assert [e.purchase_id for e in allocation.purchase_log] == [str(open_purchase.id)]
    assert allocation.cost == Decimal("20.00")


def test_purchases_updated_in_place_for_next_sale(allocator, buy, sell):
    """Test a second sale sees the residual left by the first."""
    purchase = buy("10", "20.00", "2024-01-01")
    purchases = [purchase]

    allocator.allocate(sell("4", "2024-01-02"), purchases)
    second = allocator.allocate(sell("4", "2024-01-03"), purchases)

    assert purchases[0].amount == Decimal("2")
    assert purchases[0].purchase.total_cost == Decimal("4.00")
    assert second.cost == Decimal("8")


def test_shortfall_leaves_sale_unchecked(allocator, batch, buy, sell):
    purchase = buy("3", "6.00", "2024-01-01")
    sale = sell("5", "2024-01-02")

    allocation = allocator.allocate(sale, [purchase])

    assert not allocation.fully_allocated
    assert allocation.remaining_quantity == Decimal("2")
    assert sale.id not in [r.id for r in batch.pending_updates]


def test_remaining_below_precision_counts_as_allocated(allocator, buy, sell):
    """Test a remainder rounding to zero at book precision completes the sale."""
    purchase = buy("10", "10.00", "2024-01-01")
    sale = replace(sell("10", "2024-01-02"), amount=Decimal("10.004"))

    allocation = allocator.allocate(sale, [purchase])

    assert allocation.fully_allocated
    assert allocation.sale.checked is True


def test_locked_purchase_aborts(allocator, batch, temp_store, buy, sell, ledger):
    purchase = buy("10", "20.00", "2024-01-01")
    temp_store.set_record_locked(ledger.inventory_id, purchase.id, True)
    purchase = temp_store.get_record(ledger.inventory_id, purchase.id)

    allocation = allocator.allocate(sell("4", "2024-01-02"), [purchase])

    assert allocation.aborted
    assert not allocation.fully_allocated
    assert batch.has_lock_conflict()


def test_locked_sale_aborts(allocator, batch, buy, sell):
    purchase = buy("10", "20.00", "2024-01-01")
    sale = replace(sell("4", "2024-01-02"), locked=True)

    allocation = allocator.allocate(sale, [purchase])

    assert allocation.aborted
    assert batch.pending_updates == []


def test_liquidation_log_records_consumed_quantity(allocator, batch, buy, sell):
    purchase = buy("10", "20.00", "2024-01-01")
    sale = sell("4", "2024-01-02")

    allocator.allocate(sale, [purchase])

    split = batch.pending_creates[0]
    entry = split.purchase.liquidation_log[0]
    assert entry.sale_id == str(sale.id)
    assert entry.date == date(2024, 1, 2)
    assert entry.quantity == Decimal("4")
    assert entry.unit_cost == Decimal("2")


def test_sale_cost_rounded_to_cost_precision(batch, buy, sell):
    """Test the sale total is rounded while log unit costs are kept exact."""
    allocator = Allocator(
        Book(id=1, name="Inventory", fraction_digits=2), batch, cost_fraction_digits=2
    )
    purchase = buy("3", "20.00", "2024-01-01")

    allocation = allocator.allocate(sell("1", "2024-01-02"), [purchase])

    assert allocation.cost == Decimal("6.67")
    assert allocation.sale.sale.total_cost == Decimal("6.67")
    assert allocation.purchase_log[0].unit_cost == Decimal("20.00") / Decimal("3")
    assert batch.pending_creates[0].purchase.total_cost == Decimal("20.00") / Decimal("3")
