"""Shared pytest fixtures for fifocogs tests."""

import tempfile
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
import pytest

from fifocogs.database.factories import create_sqlite_store
from fifocogs.domain.cost_of_sales import CostOfSalesService
from fifocogs.domain.ledger import AccountService, BookService
from fifocogs.domain.rebuild import LocalRebuildQueue, RebuildService
from fifocogs.domain.records import RecordService


@dataclass(frozen=True)
class Ledger:
    """IDs of a seeded collection: one inventory book and one USD book."""

    inventory_id: int
    financial_id: int
    good_id: int
    good: str = "Widget"


@pytest.fixture
def temp_store():
    """Create a temporary SQLite ledger store for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    # Cleanup
    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def book_service(temp_store):
    """Create a BookService with a temporary store."""
    return BookService(temp_store)


@pytest.fixture
def account_service(temp_store):
    """Create an AccountService with a temporary store."""
    return AccountService(temp_store)


@pytest.fixture
def record_service(temp_store):
    """Create a RecordService with a temporary store."""
    return RecordService(temp_store)


@pytest.fixture
def rebuild_queue():
    """Create an empty in-process rebuild queue."""
    return LocalRebuildQueue()


@pytest.fixture
def cogs_service(temp_store, rebuild_queue):
    """Create a CostOfSalesService feeding the test rebuild queue."""
    return CostOfSalesService(temp_store, rebuild_queue=rebuild_queue)


@pytest.fixture
def rebuild_service(temp_store, cogs_service):
    """Create a RebuildService recalculating through cogs_service."""
    return RebuildService(temp_store, cogs_service)


@pytest.fixture
def ledger(book_service, account_service):
    """Seed a collection with an inventory book, a USD book and a Widget good."""
    inventory_id = book_service.create_book("Inventory", collection="shop", inventory=True)
    financial_id = book_service.create_book("Shop USD", collection="shop", exc_code="USD")
    account_service.create_group(inventory_id, "Goods USD", exc_code="USD")
    good_id = account_service.create_account(
        inventory_id, "Widget", "ASSET", groups=["Goods USD"]
    )
    return Ledger(inventory_id=inventory_id, financial_id=financial_id, good_id=good_id)


@pytest.fixture
def buy(record_service, ledger):
    """Record a Widget purchase: buy(quantity, cost, day, **options)."""

    def _buy(quantity, cost, day, **options):
        return record_service.record_purchase(
            ledger.inventory_id,
            options.pop("good", ledger.good),
            quantity=Decimal(quantity),
            cost=Decimal(cost),
            record_date=day if isinstance(day, date) else date.fromisoformat(day),
            **options,
        )

    return _buy


@pytest.fixture
def sell(record_service, ledger):
    """Record a Widget sale: sell(quantity, day, **options)."""

    def _sell(quantity, day, **options):
        return record_service.record_sale(
            ledger.inventory_id,
            options.pop("good", ledger.good),
            quantity=Decimal(quantity),
            record_date=day if isinstance(day, date) else date.fromisoformat(day),
            **options,
        )

    return _sell


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
