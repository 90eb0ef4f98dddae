"""Integration tests for end-to-end CLI workflows."""

import json
from decimal import Decimal

import pytest

from fifocogs.cli.main import cli
from fifocogs.utils.query import build_account_query


def _invoke(cli_runner, temp_store, *args, input=None):
    return cli_runner.invoke(cli, ["--db-path", temp_store.database_path, *args], input=input)


def _created_id(output):
    # Output looks like "Created book 'Inventory' (ID: 1)"
    return output.split("ID:")[1].strip().rstrip(")")


@pytest.fixture
def books(cli_runner, temp_store):
    """Set up an inventory book, a USD book and a Widget good through the CLI."""
    result = _invoke(cli_runner, temp_store, "book", "create", "Inventory", "--collection", "shop", "--inventory")
    assert result.exit_code == 0, result.output
    inventory_id = _created_id(result.output)

    result = _invoke(cli_runner, temp_store, "book", "create", "Shop USD", "--collection", "shop", "--exc-code", "USD")
    assert result.exit_code == 0, result.output
    financial_id = _created_id(result.output)

    result = _invoke(cli_runner, temp_store, "group", "create", inventory_id, "Goods USD", "--exc-code", "USD")
    assert result.exit_code == 0, result.output
    result = _invoke(cli_runner, temp_store, "account", "create", inventory_id, "Widget", "--group", "Goods USD")
    assert result.exit_code == 0, result.output
    assert "Created account 'Widget'" in result.output
    return inventory_id, financial_id


def test_full_workflow(cli_runner, temp_store, books):
    """Test complete workflow: books → purchases → sale → cost of sales → listing."""
    inventory_id, financial_id = books

    result = _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "5", "--cost", "10.00", "--date", "2024-01-01",
    )
    assert result.exit_code == 0, result.output
    assert "Recorded purchase" in result.output

    result = _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "5", "--cost", "15.00", "--date", "2024-01-02",
    )
    assert result.exit_code == 0, result.output

    result = _invoke(
        cli_runner, temp_store, "record", "sale", inventory_id, "Widget",
        "--quantity", "7", "--date", "2024-01-10", "--invoice", "INV-1",
    )
    assert result.exit_code == 0, result.output
    assert "Recorded sale" in result.output

    result = _invoke(cli_runner, temp_store, "cogs", "validate", inventory_id)
    assert result.exit_code == 0, result.output
    assert "Ready" in result.output

    result = _invoke(
        cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31"
    )
    assert result.exit_code == 0, result.output
    assert "Widget: Calculating cost of sales" in result.output
    assert "total cost 16.00" in result.output

    result = _invoke(cli_runner, temp_store, "record", "list", financial_id, "Widget")
    assert result.exit_code == 0, result.output
    assert "Widget >> Cost of sales | 16.00" in result.output
    assert "#cost_of_sale" in result.output

    result = _invoke(cli_runner, temp_store, "record", "list", inventory_id, "Widget")
    assert result.exit_code == 0, result.output
    assert "split from" in result.output

    temp_store.disconnect()
    posted = temp_store.query_records(int(financial_id), build_account_query("Cost of sales"))
    assert len(posted) == 1
    assert posted[0].cost_of_sale.quantity_sold == Decimal("7")
    assert posted[0].cost_of_sale.sale_invoice == "INV-1"


def test_calculate_json(cli_runner, temp_store, books):
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-01",
    )
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "4", "--date", "2024-01-02")

    result = _invoke(
        cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31", "--json"
    )

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["outcome"] == "in-progress"
    assert data["purchasesSplit"] == 1
    assert Decimal(data["totalCost"]) == Decimal("8")


def test_oversold_exits_with_error(cli_runner, temp_store, books):
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-01",
    )
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "12", "--date", "2024-01-02")

    result = _invoke(cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31")

    assert result.exit_code == 1
    assert "sold quantity is greater than purchased quantity" in result.output


def test_backdated_purchase_rebuilt_after_calculate(cli_runner, temp_store, books):
    """Test a flagged account is rebuilt in the same invocation."""
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-10",
    )
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "4", "--date", "2024-01-20")
    result = _invoke(cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31")
    assert result.exit_code == 0, result.output

    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "5", "--cost", "5.00", "--date", "2024-01-05",
    )
    result = _invoke(cli_runner, temp_store, "account", "list", inventory_id)
    assert "needs rebuild" in result.output

    result = _invoke(cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31")

    assert result.exit_code == 0, result.output
    assert "Rebuilding cost of sales" in result.output
    assert "total cost 4" in result.output

    result = _invoke(cli_runner, temp_store, "account", "list", inventory_id)
    assert "needs rebuild" not in result.output


def test_no_rebuild_leaves_flag(cli_runner, temp_store, books):
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-10",
    )
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "4", "--date", "2024-01-20")
    _invoke(cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31")
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "1", "--date", "2024-01-15")

    result = _invoke(
        cli_runner, temp_store, "cogs", "calculate", inventory_id, "Widget", "--to-date", "2024-01-31", "--no-rebuild"
    )

    assert result.exit_code == 0, result.output
    assert "Rebuilding cost of sales" in result.output
    result = _invoke(cli_runner, temp_store, "account", "list", inventory_id)
    assert "needs rebuild" in result.output


def test_rebuild_command(cli_runner, temp_store, books):
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-10",
    )
    _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "4", "--date", "2024-01-20")

    result = _invoke(cli_runner, temp_store, "cogs", "rebuild", inventory_id, "Widget")

    assert result.exit_code == 0, result.output
    assert "Widget: Calculating cost of sales" in result.output


def test_validate_pending_tasks(cli_runner, temp_store, books):
    inventory_id, _ = books
    temp_store.set_pending_tasks(int(inventory_id), 2)
    temp_store.disconnect()

    result = _invoke(cli_runner, temp_store, "cogs", "validate", inventory_id)

    assert result.exit_code == 1
    assert "pending tasks" in result.output


def test_calculate_unknown_account(cli_runner, temp_store, books):
    inventory_id, _ = books
    result = _invoke(cli_runner, temp_store, "cogs", "calculate", inventory_id, "Gadget")
    assert result.exit_code == 1
    assert "Error" in result.output


def test_sale_of_unknown_good(cli_runner, temp_store, books):
    inventory_id, _ = books
    result = _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Gadget", "--quantity", "1")
    assert result.exit_code == 1
    assert "Account 'Gadget' not found" in result.output


def test_invalid_quantity(cli_runner, temp_store, books):
    inventory_id, _ = books
    result = _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget", "--quantity", "ten", "--cost", "1"
    )
    assert result.exit_code == 1
    assert "Invalid quantity" in result.output


def test_day_first_book_dates(cli_runner, temp_store):
    result = _invoke(
        cli_runner, temp_store, "book", "create", "Inventory", "--inventory", "--date-pattern", "dd/MM/yyyy"
    )
    assert result.exit_code == 0, result.output
    book_id = _created_id(result.output)
    _invoke(cli_runner, temp_store, "account", "create", book_id, "Widget")

    result = _invoke(
        cli_runner, temp_store, "record", "purchase", book_id, "Widget",
        "--quantity", "1", "--cost", "2", "--date", "03/02/2024",
    )
    assert result.exit_code == 0, result.output

    result = _invoke(cli_runner, temp_store, "record", "list", book_id, "Widget")
    assert "03/02/2024" in result.output


def test_delete_sale(cli_runner, temp_store, books):
    inventory_id, _ = books
    _invoke(
        cli_runner, temp_store, "record", "purchase", inventory_id, "Widget",
        "--quantity", "10", "--cost", "20.00", "--date", "2024-01-10",
    )
    result = _invoke(cli_runner, temp_store, "record", "sale", inventory_id, "Widget", "--quantity", "4", "--date", "2024-01-20")
    sale_id = result.output.split("Recorded sale ")[1].split(":")[0]

    result = _invoke(cli_runner, temp_store, "record", "delete", inventory_id, sale_id, input="n\n")
    assert result.exit_code == 1

    result = _invoke(cli_runner, temp_store, "record", "delete", inventory_id, sale_id, "--force")
    assert result.exit_code == 0, result.output
    assert "Deleted 1 record" in result.output


def test_book_list(cli_runner, temp_store, books):
    result = _invoke(cli_runner, temp_store, "book", "list", "--collection", "shop")
    assert result.exit_code == 0
    assert "Inventory" in result.output
    assert "Shop USD" in result.output


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "FIFO cost of goods sold" in result.output
